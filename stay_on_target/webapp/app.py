"""Web application for Stay on Target.

A configuration form captures the JIRA credentials and the forecast target;
the burnup page fetches the matching issues and draws the forecast with
Bokeh.
"""

import logging
import os
import secrets

import jinja2
import requests
from bokeh.embed import components
from bokeh.resources import CDN
from dotenv import load_dotenv
from flask import (
    Flask,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from jira.exceptions import JIRAError

from ..config import ConfigError
from ..querymanager import QueryManager
from ..runner import run_forecast
from ..utils import current_day, parse_day
from .helpers import (
    build_burnup_figure,
    configure_form_to_jira_auth,
    configure_form_to_params,
    get_jira_client,
    has_jira_auth,
    parse_burnup_params,
    validate_configure_form,
)

load_dotenv()

app = Flask("stay-on-target")
app.jinja_loader = jinja2.PackageLoader("stay_on_target.webapp", "templates")

logger = logging.getLogger(__name__)

app.secret_key = os.environ.get("FLASK_SECRET_KEY")
if not app.secret_key:
    logger.warning(
        "FLASK_SECRET_KEY environment variable not set. "
        "Using a random key for this session only. "
        "Set FLASK_SECRET_KEY for production use."
    )
    app.secret_key = secrets.token_hex(32)


@app.after_request
def add_security_headers(response):
    """Add security headers to all responses."""
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
    )
    return response


@app.route("/", methods=["GET", "POST"])
def configure():
    """Show the configuration form, or save it and go to the burnup page."""
    if request.method == "POST":
        errors = validate_configure_form(request.form)
        if errors:
            for error in errors:
                flash(error, "danger")
            return (
                render_template(
                    "configure.html",
                    values=configure_form_to_params(request.form),
                    jira_auth=configure_form_to_jira_auth(request.form),
                ),
                400,
            )

        session["jira_auth"] = configure_form_to_jira_auth(request.form)
        return redirect(url_for("burnup", **configure_form_to_params(request.form)))

    values = {
        "title": request.args.get("title", ""),
        "jql": request.args.get("jql", 'project = "TODO"'),
        "estimateField": request.args.get("estimateField", ""),
        "estimateToDays": request.args.get("estimateToDays", "1"),
        "start": request.args.get("start", ""),
        "end": request.args.get("end", ""),
    }
    return render_template(
        "configure.html", values=values, jira_auth=session.get("jira_auth", {})
    )


@app.route("/burnup")
def burnup():
    """Forecast the configured target and draw its burnup chart."""
    jira_auth = session.get("jira_auth", {})

    try:
        settings = parse_burnup_params(request.args)
        today = request.args.get("today")
        today = parse_day(today) if today else None
    except (ConfigError, ValueError) as e:
        flash(f"{e}. Please check the configuration.", "warning")
        return redirect(url_for("configure", **request.args))

    if not has_jira_auth(jira_auth):
        flash("Missing JIRA credentials. Please check the configuration.", "warning")
        return redirect(url_for("configure", **request.args))

    title = settings["title"]
    try:
        query_manager = QueryManager(get_jira_client(jira_auth), settings)
        result = run_forecast(query_manager, settings, today or current_day())
    except (JIRAError, requests.exceptions.RequestException) as e:
        logger.error("JIRA error while forecasting `%s`: %s", title, e)
        flash(f"JIRA error: {getattr(e, 'text', None) or e}", "danger")
        return render_template("burnup.html", title=title, script="", div="")
    except (ConfigError, ValueError) as e:
        logger.error("Error while forecasting `%s`: %s", title, e)
        flash(str(e), "danger")
        return render_template("burnup.html", title=title, script="", div="")

    script, div = components(build_burnup_figure(result, title))
    return render_template(
        "burnup.html",
        title=title,
        script=script,
        div=div,
        resources=CDN.render(),
        completion=result.projected_completion.label(),
        rates=result.rates,
    )
