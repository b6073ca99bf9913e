"""Korean spell-check correction resolution pipeline."""

from kogrammar.logging_config import configure_logging

__version__ = "0.1.0"

__all__ = ["configure_logging"]
