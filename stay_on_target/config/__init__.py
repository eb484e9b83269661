"""Configuration module for Stay on Target.

This module provides configuration loading and error handling utilities.
"""

from .exceptions import ChartGenerationError, ConfigError
from .loader import config_to_options

__all__ = ["config_to_options", "ConfigError", "ChartGenerationError"]
