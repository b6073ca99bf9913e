"""Logging setup for applications embedding the pipeline."""

import logging

from kogrammar.config import Settings, settings as default_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from *settings* (JSON lines unless in dev mode)."""
    cfg = settings or default_settings
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    if not cfg.dev_mode:
        logging.basicConfig(
            level=level,
            format='{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}',
        )
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        )

    # httpx logs every request at INFO; keep it quiet unless debugging
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
