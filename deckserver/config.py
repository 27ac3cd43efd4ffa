"""Runtime configuration for the deck server."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from slideshow import ControllerConfig

__all__ = ["DEFAULT_FILE_PATTERN", "ServerConfig", "parse_port"]

DEFAULT_PORT = 1958
DEFAULT_FILE_PATTERN = r"\.xml$|\.mov$|\.mp4$|\.m4v$|\.avi$"


def parse_port(value: Optional[str]) -> int:
    """Parse ``1958`` or the ``:1958`` address form into a port number."""

    if value is None:
        return DEFAULT_PORT
    text = value.strip()
    if not text:
        return DEFAULT_PORT
    if ":" in text:
        text = text.rsplit(":", 1)[1]
    try:
        port = int(text)
    except ValueError as exc:
        raise ValueError(f"Invalid port: {value!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range: {port}")
    return port


@dataclass(slots=True)
class ServerConfig:
    """Configuration container for the deck server."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    deck_dir: Path = field(default_factory=lambda: Path("."))
    deck_command: str = "vgdeck"
    loop_flag: str = "-loop"
    media_command: str = "omxplayer"
    media_args: Tuple[str, ...] = ("-o", "both")
    file_pattern: str = DEFAULT_FILE_PATTERN
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        env = os.environ if environ is None else environ
        config = cls()
        config.host = env.get("SEX_HOST", config.host)
        config.port = parse_port(env.get("SEX_PORT"))
        config.deck_dir = Path(env.get("SEX_DECK_DIR", str(config.deck_dir)))
        config.deck_command = env.get("SEX_DECK_COMMAND", config.deck_command)
        config.media_command = env.get("SEX_MEDIA_COMMAND", config.media_command)
        config.log_level = env.get("SEX_LOG_LEVEL", config.log_level).upper()
        return config

    def validate(self) -> None:
        """Raise :class:`ValueError` when the server cannot run with this configuration."""

        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range: {self.port}")
        if not self.deck_dir.is_dir():
            raise ValueError(f"Deck directory does not exist: {self.deck_dir}")

    def controller_config(self) -> ControllerConfig:
        return ControllerConfig(
            deck_command=self.deck_command,
            loop_flag=self.loop_flag,
            media_command=self.media_command,
            media_args=tuple(self.media_args),
        )
