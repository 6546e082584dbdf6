from __future__ import annotations

"""Central logging configuration for POM Toolkit.

Import and call :func:`setup_logging` once at start-up of whatever process
drives manifest generation. Library modules only create module loggers.
"""

import logging
import logging.config
import os
from typing import Optional

from pom_toolkit.config import ConfigManager

__all__ = ["setup_logging"]

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config_manager: Optional[ConfigManager] = None) -> None:
    """Configure logging from the YAML configuration, with a console fallback."""
    log_dir = os.environ.get("POM_TOOLKIT_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "pom_toolkit.log")

    try:
        config_manager = config_manager or ConfigManager()
        logging_config = config_manager.get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.getLogger("pom_toolkit").info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig wraps handler/formatter problems in ValueError
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': _FORMAT,
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - POM_TOOLKIT_DEBUG_MERGE=true -> DEBUG for the merge engine
    - POM_TOOLKIT_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_merge = os.environ.get('POM_TOOLKIT_DEBUG_MERGE', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('POM_TOOLKIT_DEBUG_MODULES', '').strip()
    targets = []
    if debug_merge:
        targets.append('pom_toolkit.core.merge')
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])

    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
