import logging
import os

ENV_LOG_LEVEL = "SAVESTASH_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(default_level: int = logging.INFO) -> int:
    """Level named by ``SAVESTASH_LOG_LEVEL`` (``debug``, ``WARNING``, ``10``...).

    Unset or unrecognised values fall back to ``default_level``.
    """
    raw = os.getenv(ENV_LOG_LEVEL, "").strip()
    if not raw:
        return default_level
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default_level


def configure_logging(default_level: int = logging.INFO) -> None:
    """Configure the root logger for command-line use.

    The library itself never configures logging; only ``savestash.cli`` calls this.
    """
    logging.basicConfig(level=resolve_level(default_level), format=LOG_FORMAT)
