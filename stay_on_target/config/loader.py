"""Configuration loader for Stay on Target."""

import logging
import os.path

import yaml

from .exceptions import ConfigError
from .type_utils import (
    expand_key,
    force_date,
    force_list,
    force_positive_float,
)
from .yaml_utils import ordered_load

logger = logging.getLogger(__name__)

REQUIRED_TARGET_KEYS = [
    "title",
    "query",
    "estimate_field",
    "estimate_to_days",
    "start_date",
    "end_date",
]


def _create_default_options():
    """Create default options dictionary."""
    return {
        "connection": {
            "domain": None,
            "username": None,
            "token": None,
            "jira_client_options": {},
        },
        "settings": {
            "title": None,
            "query": None,
            "estimate_field": None,
            "estimate_to_days": 1.0,
            "start_date": None,
            "end_date": None,
            "page_size": 100,
            "truncate_converged_tail": True,
            "burnup_data": [],
            "burnup_chart": None,
            "burnup_chart_title": None,
            "date_format": "%d/%m/%Y",
        },
    }


def _parse_connection_config(config, options):
    """Parse connection configuration."""
    if "connection" not in config:
        return

    conn_config = config["connection"]
    conn_options = options["connection"]

    # Jira API tokens are used in place of passwords
    field_mappings = [
        ("domain", "domain"),
        ("username", "username"),
        ("password", "token"),
        ("token", "token"),
        ("jira client options", "jira_client_options"),
    ]

    for config_key, option_key in field_mappings:
        if config_key in conn_config:
            conn_options[option_key] = conn_config[config_key]


def _parse_target_config(config, options):
    """Parse the forecast target: query, estimate field, conversion and window."""
    if "target" not in config:
        return

    target = config["target"]
    settings = options["settings"]

    for key in ["title", "query", "estimate_field"]:
        if expand_key(key) in target and target[expand_key(key)] is not None:
            settings[key] = str(target[expand_key(key)])

    # `Days per estimate` is the wording used on the web form
    for config_key in ["days per estimate", "estimate to days"]:
        if config_key in target:
            settings["estimate_to_days"] = force_positive_float(
                config_key, target[config_key]
            )

    for key in ["start_date", "end_date"]:
        if expand_key(key) in target:
            settings[key] = force_date(key, target[expand_key(key)])

    if expand_key("page_size") in target:
        page_size = target[expand_key("page_size")]
        if (
            isinstance(page_size, bool)
            or not isinstance(page_size, int)
            or page_size < 1
        ):
            raise ConfigError(
                f"Value `{page_size}` for key `page size` must be a positive integer"
            )
        settings["page_size"] = page_size


def _parse_output_config(config, options):
    """Parse output configuration."""
    if "output" not in config:
        return

    output_config = config["output"]
    settings = options["settings"]

    if expand_key("output_directory") in output_config:
        options["output_directory"] = output_config[expand_key("output_directory")]

    # Output files are always written to the output directory
    if "data" in output_config:
        settings["burnup_data"] = [
            os.path.basename(f) for f in force_list(output_config["data"])
        ]

    if "chart" in output_config:
        settings["burnup_chart"] = os.path.basename(output_config["chart"])

    if "chart title" in output_config:
        settings["burnup_chart_title"] = str(output_config["chart title"])

    if "date format" in output_config:
        settings["date_format"] = str(output_config["date format"])

    if "truncate converged tail" in output_config:
        settings["truncate_converged_tail"] = bool(
            output_config["truncate converged tail"]
        )


def validate_settings(settings):
    """Check that everything needed to run a forecast is present and coherent."""
    missing = [
        expand_key(key) for key in REQUIRED_TARGET_KEYS if settings.get(key) is None
    ]
    if missing:
        raise ConfigError(
            f"Missing required `Target` settings: {', '.join(missing)}"
        ) from None

    if settings["start_date"] > settings["end_date"]:
        raise ConfigError(
            f"`Start date` ({settings['start_date'].isoformat()}) must not be after "
            f"`End date` ({settings['end_date'].isoformat()})"
        )


def config_to_options(data, cwd=None, extended=False, _visited_files=None):
    """
    Parse YAML config data and return options dict.
    """
    if _visited_files is None:
        _visited_files = set()

    try:
        config = ordered_load(data, yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ConfigError("Unable to parse YAML configuration file.") from e

    if config is None:
        raise ConfigError("Configuration file is empty") from None

    options = _create_default_options()

    if "extends" in config:
        if cwd is None:
            raise ConfigError("`extends` is not supported here.")

        extends_filename = os.path.abspath(
            os.path.normpath(
                os.path.join(cwd, config["extends"].replace("/", os.path.sep))
            )
        )

        if not os.path.exists(extends_filename):
            raise ConfigError(
                f"File `{extends_filename}` referenced in `extends` not found."
            ) from None

        if extends_filename in _visited_files:
            raise ConfigError(
                f"Circular extends reference detected: {extends_filename}"
            ) from None

        _visited_files.add(extends_filename)

        logger.debug("Extending file %s", extends_filename)
        with open(extends_filename, encoding="utf-8") as extends_file:
            options = config_to_options(
                extends_file.read(),
                cwd=os.path.dirname(extends_filename),
                extended=True,
                _visited_files=_visited_files,
            )

    _parse_connection_config(config, options)
    _parse_target_config(config, options)
    _parse_output_config(config, options)

    if not extended:
        validate_settings(options["settings"])

    return options
