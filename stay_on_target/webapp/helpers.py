"""Helper functions for the web application."""

import logging

import pandas as pd
from bokeh.models import Span
from bokeh.plotting import figure

from ..burnup_data import (
    PROJECTED_RESOLVED_COLUMN,
    PROJECTED_SCOPE_COLUMN,
    RESOLVED_COLUMN,
    SCOPE_COLUMN,
    forecast_to_dataframe,
)
from ..config import ConfigError
from ..config.loader import validate_settings
from ..config.type_utils import force_date, force_positive_float
from ..jira_client import create_jira_client

logger = logging.getLogger(__name__)

# Form field name -> human readable label
FORM_FIELDS = {
    "jiraDomain": "Jira Domain",
    "jiraUsername": "Jira Username",
    "jiraToken": "Jira API Token",
    "targetTitle": "Target title",
    "jqlQuery": "JQL Query",
    "estimateField": "Estimate Field",
    "estimateToDays": "Days / Estimate",
    "startDate": "Start Date",
    "endDate": "End Date",
}

# Query string parameter -> settings key
BURNUP_PARAMS = {
    "title": "title",
    "jql": "query",
    "estimateField": "estimate_field",
    "estimateToDays": "estimate_to_days",
    "start": "start_date",
    "end": "end_date",
}

JIRA_AUTH_KEYS = ("domain", "username", "token")

LINE_STYLES = {
    SCOPE_COLUMN: {"color": "navy", "line_dash": "solid"},
    RESOLVED_COLUMN: {"color": "green", "line_dash": "solid"},
    PROJECTED_SCOPE_COLUMN: {"color": "navy", "line_dash": "dashed"},
    PROJECTED_RESOLVED_COLUMN: {"color": "green", "line_dash": "dashed"},
}


def parse_burnup_params(params):
    """Turn burnup page query string parameters into forecast settings.

    Raises:
        ConfigError: If a parameter is missing or invalid
    """
    missing = [name for name in BURNUP_PARAMS if not params.get(name)]
    if missing:
        raise ConfigError(f"Missing configuration: {', '.join(missing)}")

    settings = {
        "title": params["title"],
        "query": params["jql"],
        "estimate_field": params["estimateField"],
        "estimate_to_days": force_positive_float(
            "days per estimate", params["estimateToDays"]
        ),
        "start_date": force_date("start date", params["start"]),
        "end_date": force_date("end date", params["end"]),
    }
    validate_settings(settings)
    return settings


def validate_configure_form(form):
    """Return a list of error messages for the configuration form."""
    errors = [
        f"{label} is required."
        for name, label in FORM_FIELDS.items()
        if not (form.get(name) or "").strip()
    ]
    if errors:
        return errors

    try:
        parse_burnup_params(configure_form_to_params(form))
    except ConfigError as e:
        errors.append(str(e))
    return errors


def configure_form_to_params(form):
    """Map configuration form fields to burnup page query string parameters."""
    return {
        "title": form.get("targetTitle", "").strip(),
        "jql": form.get("jqlQuery", "").strip(),
        "estimateField": form.get("estimateField", "").strip(),
        "estimateToDays": form.get("estimateToDays", "").strip(),
        "start": form.get("startDate", "").strip(),
        "end": form.get("endDate", "").strip(),
    }


def configure_form_to_jira_auth(form):
    """Extract the JIRA credentials from the configuration form."""
    return {
        "domain": form.get("jiraDomain", "").strip(),
        "username": form.get("jiraUsername", "").strip(),
        "token": form.get("jiraToken", "").strip(),
    }


def has_jira_auth(jira_auth):
    return bool(jira_auth) and all(jira_auth.get(k) for k in JIRA_AUTH_KEYS)


def get_jira_client(jira_auth):
    """Create a JIRA client from credentials saved in the session."""
    return create_jira_client(
        {
            "domain": jira_auth.get("domain"),
            "username": jira_auth.get("username"),
            "token": jira_auth.get("token"),
            "jira_client_options": {},
        }
    )


def build_burnup_figure(result, title=None):
    """Plot a forecast result on a Bokeh figure.

    Actual series are drawn solid and projections dashed; today is marked
    with a vertical line when it falls inside the window.
    """
    data = forecast_to_dataframe(result)

    p = figure(
        title=title or "Burnup",
        x_axis_type="datetime",
        width=1000,
        height=600,
        sizing_mode="stretch_width",
    )

    for column, style in LINE_STYLES.items():
        series = data[column].dropna()
        if series.empty:
            continue
        p.line(
            list(series.index),
            list(series.values),
            legend_label=column,
            line_width=2,
            **style,
        )

    if result.start_day <= result.today <= result.end_day:
        today_ms = pd.Timestamp(result.today).timestamp() * 1000
        p.add_layout(
            Span(
                location=today_ms,
                dimension="height",
                line_color="grey",
                line_dash="dotted",
            )
        )

    p.legend.location = "top_left"
    p.xaxis.axis_label = "Date"
    p.yaxis.axis_label = "Days of work"
    return p
