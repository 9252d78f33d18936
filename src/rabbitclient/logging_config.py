"""
Logging configuration for applications using rabbitclient.

The library itself only creates module level loggers under ``rabbitclient``;
this module provides an opt-in console setup for scripts and services.
"""

import logging
import sys
from typing import Optional

from rabbitclient.config import SERVICE_NAME


def setup_logging(
    level: int = logging.INFO,
    component_name: Optional[str] = None,
    force_setup: bool = False,
    enable_console: bool = True,
) -> None:
    """
    Setup logging configuration for rabbitclient users.

    Args:
        level: Logging level (default: INFO)
        component_name: Name shown in front of each record (e.g. 'publisher')
        force_setup: Whether to force reconfiguration even if already setup
        enable_console: Whether to enable console logging (default: True)
    """
    # Check if logging has already been configured
    root_logger = logging.getLogger()
    if root_logger.handlers and not force_setup:
        # Logging already configured, just ensure our level is set
        root_logger.setLevel(level)
        logging.getLogger(SERVICE_NAME).setLevel(level)
        return

    # Clear any existing handlers if we're forcing setup
    if force_setup:
        root_logger.handlers.clear()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(create_formatter(component_name))
        root_logger.addHandler(console_handler)

    root_logger.setLevel(level)

    # amqpstorm logs every frame problem at INFO/DEBUG
    logging.getLogger("amqpstorm").setLevel(logging.WARNING)

    logging.getLogger(SERVICE_NAME).setLevel(level)


def create_formatter(component_name: Optional[str] = None) -> logging.Formatter:
    """
    Create the standard formatter.

    Args:
        component_name: Name of the component for log identification

    Returns:
        Configured logging formatter
    """
    if component_name:
        prefix = f"[{component_name}] "
    else:
        prefix = ""

    return logging.Formatter(
        f"%(asctime)s - {prefix}%(name)s - %(levelname)s - %(message)s"
    )
