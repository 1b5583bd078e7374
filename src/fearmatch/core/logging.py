"""
Logging configuration.

We use a YAML logging config (`src/fearmatch/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `FEARMATCH_LOG_LEVEL`).

Library code only creates module loggers; configuring handlers is the job of
the entrypoint (CLI) or the embedding application.
"""

from __future__ import annotations

import logging.config

from fearmatch.config.settings import get_logging_config, get_settings


def configure_logging() -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = get_settings()
    config = dict(get_logging_config())

    level = settings.app.log_level.upper()
    config.setdefault("root", {})["level"] = level
    for logger_cfg in config.get("loggers", {}).values():
        if isinstance(logger_cfg, dict):
            logger_cfg["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
