"""Run the album manager: ``python -m album_manager``."""

import argparse
import logging

from . import AlbumManager
from .albums import InMemory
from .assistant import Echo
from .config import get_settings
from .engine import Streaming


def parse_args(argv=None):
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="album_manager",
        description="Browser UI for an album catalog and its chat assistant",
    )
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--debug", action="store_true", default=settings.debug)
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use an in-memory catalog and an echo assistant instead of the backend",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Render assistant replies as they stream in",
    )
    return parser.parse_args(argv)


def build_app(args) -> AlbumManager:
    kwargs = {}
    if args.offline:
        kwargs.update(albums=InMemory(), assistant=Echo())
    if args.stream:
        kwargs["engine"] = Streaming()
    return AlbumManager(**kwargs)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = build_app(args)
    logging.getLogger(__name__).info(
        "Serving album manager on http://%s:%s (backend %s)",
        args.host,
        args.port,
        "offline" if args.offline else app.settings.api_url,
    )
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
