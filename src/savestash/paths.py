from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import PlatformDirs

logger = logging.getLogger(__name__)

APP_NAME = "savestash"

# Environment variable override (useful for tests and portable installs)
ENV_STORE_DIR = "SAVESTASH_DIR"


def default_store_dir(app_name: str = APP_NAME) -> Path:
    """Directory the file backend uses when none is configured.

    ``$SAVESTASH_DIR`` wins; otherwise ``<user data dir>/store`` as resolved by
    platformdirs for ``app_name``.
    """
    override = os.getenv(ENV_STORE_DIR)
    if override:
        return Path(override).expanduser().resolve()
    dirs = PlatformDirs(appname=app_name, appauthor=False)
    return Path(dirs.user_data_dir).expanduser().resolve() / "store"
