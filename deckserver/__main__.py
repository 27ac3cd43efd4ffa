"""Run the deck server: ``python -m deckserver --port :1958 --dir decks``."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from .config import ServerConfig, parse_port
from .main import create_app

logger = logging.getLogger("deckserver")


def build_config(argv: list[str] | None = None) -> ServerConfig:
    parser = argparse.ArgumentParser(description="Remote control for slide deck presentations.")
    try:
        config = ServerConfig.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    parser.add_argument("--host", default=config.host, help="address to listen on")
    parser.add_argument("--port", default=str(config.port), help="http service port, e.g. 1958 or :1958")
    parser.add_argument("--dir", default=str(config.deck_dir), help="directory for decks")
    parser.add_argument("--log-level", default=config.log_level, help="logging level")
    args = parser.parse_args(argv)
    try:
        config.port = parse_port(args.port)
    except ValueError as exc:
        parser.error(str(exc))
    config.host = args.host
    config.deck_dir = Path(args.dir).expanduser().resolve()
    config.log_level = args.log_level.upper()
    try:
        config.validate()
    except ValueError as exc:
        parser.error(str(exc))
    return config


def main(argv: list[str] | None = None) -> None:
    config = build_config(argv)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Startup... serving %s on %s:%d", config.deck_dir, config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
