"""
Persistent path management for the pick'em ledger.

Data lives in a stable per-user location so the store and logs survive
between runs, whatever directory the tools are launched from.

Path Layout:
  PICKEM_DATA_DIR if set, otherwise
  Windows:  %APPDATA%\\Pickem_Ledger\\
  macOS:    ~/Library/Application Support/Pickem_Ledger/
  Linux:    $XDG_DATA_HOME/Pickem_Ledger/ or ~/.local/share/Pickem_Ledger/

Subdirectories:
  - store/    -> one <key>.json file per persisted key
  - logs/     -> run.log
  - exports/  -> season report workbooks
"""

import os
import sys
import logging
from pathlib import Path


APP_DIR_NAME = 'Pickem_Ledger'


# ==============================================================================
# PERSISTENT DATA ROOT
# ==============================================================================

def get_data_root() -> Path:
    """
    Get the persistent data root directory for the ledger.

    Returns:
        Path to the app data directory (not created here)
    """
    override = os.getenv('PICKEM_DATA_DIR')
    if override:
        return Path(override).expanduser()

    if os.name == 'nt':
        appdata = os.getenv('APPDATA')
        if appdata:
            return Path(appdata) / APP_DIR_NAME
        return Path.home() / 'Documents' / APP_DIR_NAME
    if sys.platform == 'darwin':
        return Path.home() / 'Library' / 'Application Support' / APP_DIR_NAME

    xdg_data = os.getenv('XDG_DATA_HOME')
    if xdg_data:
        return Path(xdg_data) / APP_DIR_NAME
    return Path.home() / '.local' / 'share' / APP_DIR_NAME


# ==============================================================================
# DIRECTORY PATHS
# ==============================================================================

DATA_ROOT = get_data_root()

STORE_DIR = DATA_ROOT / 'store'
LOG_DIR = DATA_ROOT / 'logs'
EXPORT_DIR = DATA_ROOT / 'exports'

RUN_LOG_PATH = LOG_DIR / 'run.log'
REPORT_FILE_PATH = EXPORT_DIR / 'Pickem_Season_Report.xlsx'


def ensure_directories() -> None:
    """Create the data root and its subdirectories if missing."""
    for _dir in [DATA_ROOT, STORE_DIR, LOG_DIR, EXPORT_DIR]:
        _dir.mkdir(parents=True, exist_ok=True)


ensure_directories()


# ==============================================================================
# LOGGING SETUP
# ==============================================================================

def setup_file_logging(level: int = logging.INFO) -> logging.FileHandler:
    """
    Attach a handler writing run.log to the root logger.

    Returns:
        The FileHandler, so callers can remove it again
    """
    file_handler = logging.FileHandler(RUN_LOG_PATH, mode='a', encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)
    if root_logger.level > level or root_logger.level == logging.NOTSET:
        root_logger.setLevel(level)

    return file_handler


def get_store_path_message() -> str:
    """User-friendly message about where the season is stored."""
    return f"Season store location: {STORE_DIR}"


__all__ = [
    'APP_DIR_NAME',
    'DATA_ROOT',
    'STORE_DIR',
    'LOG_DIR',
    'EXPORT_DIR',
    'RUN_LOG_PATH',
    'REPORT_FILE_PATH',
    'get_data_root',
    'ensure_directories',
    'setup_file_logging',
    'get_store_path_message',
]
