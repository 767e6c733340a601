"""
Configuration module for polytrans.

This module provides centralized configuration settings and logging setup
used throughout the package.

Submodules:
    settings: All configuration constants and defaults.
    logging_config: Centralized logging configuration.
"""

from .settings import *
from .logging_config import setup_logging
