from __future__ import annotations

import logging
import sys

from pydantic import BaseModel, ConfigDict, Field

from layered_config import CreatedDefaultFile, Environment, Failure, FileSource, load_config
from layered_config.logging import LoggingObserver, LoggingSettings, init_logging


class SmokeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api_token: str
    dry_run: bool = False
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def default_config(cls) -> SmokeConfig:
        return cls(api_token="REPLACE_ME")


def main() -> int:
    init_logging()
    config_file = FileSource.yaml("examples/config.yaml", required=False)
    outcome = load_config(
        SmokeConfig,
        [Environment(prefix="SMOKE__", nested_delimiter="__"), config_file],
        config_file,
        observer=LoggingObserver(),
    )

    logger = logging.getLogger("smoke")
    if isinstance(outcome, CreatedDefaultFile):
        logger.info("Created %s. Set api_token and rerun.", outcome.path)
        return 2
    if isinstance(outcome, Failure):
        logger.error("Loading config failed with: %s", outcome.error)
        return 1

    config = outcome.value
    init_logging(config.logging)
    logger.info("Config loaded dry_run=%s", config.dry_run)
    logger.info("Logging level=%s", config.logging.level)
    return 0


if __name__ == "__main__":
    sys.exit(main())
