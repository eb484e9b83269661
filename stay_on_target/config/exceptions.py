"""Configuration exceptions for Stay on Target.

This module provides custom exception classes for configuration-related errors.
"""


class ConfigError(Exception):
    """
    Exception raised for errors in the configuration.
    """


class ChartGenerationError(Exception):
    """
    Exception raised for errors during chart generation.

    Wraps errors from matplotlib and pandas, and file errors while saving,
    so callers can report a failed chart without catching library errors.
    """
