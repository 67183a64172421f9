# logger.py
import logging
import logging.config
from pathlib import Path

from webpilot.util.file_utils import from_json_or_yaml


def setup_logging(
    config_file_path=None,
    log_file_path=None,
    verbose=False,
):
    """
    Loads logging config from 'config_file_path' (YAML or JSON) and sets up logging.
    Optionally override the file handler's filename, and set root logger to DEBUG if 'verbose'.
    """
    config = from_json_or_yaml(config_file_path)

    handlers = config.get("handlers") or {}
    if log_file_path and "file_handler" in handlers:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers["file_handler"]["filename"] = str(log_file_path)

    logging.config.dictConfig(config)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    return logging.getLogger(__name__)
