"""JIRA client utilities for Stay on Target.

Shared by the command line and the web application to turn a connection
configuration into an authenticated `jira.JIRA` client.
"""

import logging
import os

from jira import JIRA

logger = logging.getLogger(__name__)


def normalize_value(value):
    """Strip whitespace and surrounding quotes from a connection value.

    Docker's `--env-file` keeps the quotes written in `.env` files, which
    breaks authentication. Returns None for values that end up empty.
    """
    if not value:
        return None
    value = str(value).strip()
    while value and (value[0] in "\"'" or value[-1] in "\"'"):
        stripped = value.strip("\"'").strip()
        if stripped == value:
            break
        value = stripped
    return value or None


def normalize_domain(domain):
    """Turn a bare Jira domain (`example.atlassian.net`) into a server URL."""
    if domain and "://" not in domain:
        return f"https://{domain}"
    return domain


def get_jira_connection_params(connection):
    """Extract JIRA connection parameters from connection configuration.

    Values missing from the configuration fall back to the `JIRA_URL`,
    `JIRA_USERNAME` and `JIRA_TOKEN` environment variables.

    Raises:
        ValueError: If any parameter is still missing
    """
    url = normalize_value(connection.get("domain") or os.environ.get("JIRA_URL"))
    username = normalize_value(
        connection.get("username") or os.environ.get("JIRA_USERNAME")
    )
    token = normalize_value(connection.get("token") or os.environ.get("JIRA_TOKEN"))

    missing_params = [
        name
        for name, value in (("url", url), ("username", username), ("token", token))
        if not value
    ]
    if missing_params:
        raise ValueError(
            f"Missing required JIRA connection parameters: "
            f"{', '.join(missing_params)}. "
            f"Provide them via connection config or environment variables "
            f"(JIRA_URL, JIRA_USERNAME, JIRA_TOKEN)."
        )

    return normalize_domain(url), username, token


def create_jira_client(connection):
    """Create a JIRA client with the given connection options."""
    url, username, token = get_jira_connection_params(connection)

    jira_options = {"server": url, "rest_api_version": 3}
    jira_options.update(connection.get("jira_client_options") or {})

    logger.info("Connecting to %s", url)

    try:
        return JIRA(
            options=jira_options,
            basic_auth=(username, token),
        )
    except Exception as e:
        logger.error("Failed to create JIRA client: %s", e)
        raise
