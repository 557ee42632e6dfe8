from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from layered_config.models import LoadEvent

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_EVENT_LEVELS = {
    "config.load_failed": logging.ERROR,
    "config.default_file_created": logging.INFO,
    "config.default_file_skipped": logging.INFO,
}


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 5


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "data/logs/layered-config.log"
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    file: Optional[FileLoggingSettings] = None


def init_logging(settings: LoggingSettings = LoggingSettings()) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(settings.level.upper())
    if getattr(root, "_layered_config_configured", False):
        return

    formatter = logging.Formatter(_FORMAT)
    console = logging.StreamHandler(stream=sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.file is not None:
        log_path = Path(settings.file.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_path,
            when="midnight",
            backupCount=settings.file.rotation.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    setattr(root, "_layered_config_configured", True)


class LoggingObserver:
    """Forwards loader events to a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("layered_config")

    def on_event(self, event: LoadEvent) -> None:
        level = _EVENT_LEVELS.get(event.name, logging.DEBUG)
        details = " ".join(f"{k}={v}" for k, v in event.fields.items())
        self._logger.log(level, "%s %s", event.name, details)
