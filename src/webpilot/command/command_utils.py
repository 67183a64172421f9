"""
Here we put util functions related to logging and configuration for webpilot commands.
"""

import importlib.resources as importlib_resources
import logging
from pathlib import Path

from webpilot.common.logger import setup_logging


def get_package_root():
    """
    Determines the root path of the 'webpilot' package.
    """
    package_root = Path(importlib_resources.files("webpilot"))
    return package_root.resolve()


def get_log_dir():
    """
    Determines a suitable path for the log file.
    Logs are stored in the user's home directory under '.webpilot/logs/'.
    """
    home_dir = Path.home()
    log_dir = home_dir / '.webpilot' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_command_logger(log_filename, project_root=None, verbose=False):
    """
    Configures logging for a command from the packaged logging config,
    writing to `~/.webpilot/logs/<log_filename>`.
    """
    root = project_root or get_package_root()
    config_path = root / 'configs' / 'logging_config.yaml'
    log_file_path = get_log_dir() / log_filename
    setup_logging(
        config_file_path=config_path,
        log_file_path=log_file_path,
        verbose=verbose,
    )
    return logging.getLogger(log_filename.rsplit('.', 1)[0])
