"""Type utilities for configuration processing.

Conversions raise `ConfigError` naming the offending key, as it is written
in the configuration file.
"""

import datetime

from .exceptions import ConfigError


def force_list(val) -> list:
    """
    Ensure the value is a list.
    """
    return list(val) if isinstance(val, (list, tuple)) else [val]


def force_float(key, value) -> float:
    """
    Convert value to float, raise ConfigError on failure.
    """
    if isinstance(value, bool):
        raise ConfigError(
            f"Value `{value}` for key `{expand_key(key)}` is not a number"
        )
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Could not convert value `{value}` for key `{expand_key(key)}` to decimal"
        ) from None


def force_positive_float(key, value) -> float:
    """
    Convert value to a float greater than zero, raise ConfigError otherwise.
    """
    number = force_float(key, value)
    if not number > 0:
        raise ConfigError(
            f"Value `{value}` for key `{expand_key(key)}` must be greater than zero"
        )
    return number


def force_date(key, value) -> datetime.date:
    """
    Ensure value is a datetime.date, raise ConfigError otherwise.

    YAML already turns unquoted `2024-01-31` into a date; quoted strings in
    the same format are accepted too.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    raise ConfigError(f"Value `{value}` for key `{expand_key(key)}` is not a date")


def expand_key(key) -> str:
    """
    Expand config key for display.
    """
    return str(key).replace("_", " ").lower()
