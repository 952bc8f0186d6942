import logging
import logging.config
from pathlib import Path
from typing import Optional

import yaml

from ..config.settings import settings

DEFAULT_LOGGING_CONFIG_PATH = Path(settings.LOGGING_CONFIG_PATH)
PACKAGE_LOGGER = "tool_navigator"


def setup_logging(config_path: Optional[Path] = None, level: Optional[str] = None) -> None:
    """
    Configure logging from the YAML dictConfig file.

    Args:
        config_path (Path, optional): Logging configuration file. Defaults to
            LOGGING_CONFIG_PATH from settings.
        level (str, optional): Level forced on the ``tool_navigator`` logger
            after the file is applied (e.g. "DEBUG" for the CLI's --verbose).
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_LOGGING_CONFIG_PATH
    if config_path.exists():
        try:
            with open(config_path, 'rt', encoding='utf-8') as f:
                log_config = yaml.safe_load(f)
            logging.config.dictConfig(log_config)
            logging.getLogger(PACKAGE_LOGGER).info(f"Logging configured from {config_path}")
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(PACKAGE_LOGGER).error(
                f"Invalid logging configuration {config_path}: {e}. Using basicConfig."
            )
    else:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(PACKAGE_LOGGER).warning(
            f"Logging configuration file not found at {config_path}. Using basicConfig."
        )

    if level:
        logging.getLogger(PACKAGE_LOGGER).setLevel(level.upper())
