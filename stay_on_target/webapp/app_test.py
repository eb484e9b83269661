"""Tests for the Flask web application.

This module contains unit tests for the web application routes.
"""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
from jira.exceptions import JIRAError

from ..test_classes import FauxJIRA
from .app import app as webapp

BURNUP_PARAMS = {
    "title": "Release 1",
    "jql": 'project = "TEST"',
    "estimateField": "Story Points",
    "estimateToDays": "0.5",
    "start": "2024-01-01",
    "end": "2024-01-21",
}

FORM = {
    "jiraDomain": "example.atlassian.net",
    "jiraUsername": "user@example.com",
    "jiraToken": "secret",
    "targetTitle": "Release 1",
    "jqlQuery": 'project = "TEST"',
    "estimateField": "Story Points",
    "estimateToDays": "0.5",
    "startDate": "2024-01-01",
    "endDate": "2024-01-21",
}

JIRA_AUTH = {
    "domain": "example.atlassian.net",
    "username": "user@example.com",
    "token": "secret",
}


@pytest.fixture(name="flask_app")
def flask_app_fixture():
    """Create and configure a test Flask app."""
    webapp.config["TESTING"] = True
    webapp.config["SECRET_KEY"] = "test-secret-key"
    return webapp


@pytest.fixture(name="test_client")
def client_fixture(flask_app):
    """Create a test client for the Flask app."""
    return flask_app.test_client()


@pytest.fixture(name="logged_in_client")
def logged_in_client_fixture(test_client):
    """A test client with JIRA credentials in its session."""
    with test_client.session_transaction() as sess:
        sess["jira_auth"] = dict(JIRA_AUTH)
    return test_client


@pytest.fixture(name="fake_jira_client")
def fake_jira_client_fixture(mocker, base_fields, raw_issues):
    """Serve issues from a fake JIRA instead of connecting."""
    return mocker.patch(
        "stay_on_target.webapp.app.get_jira_client",
        return_value=FauxJIRA(base_fields, raw_issues),
    )


def test_configure_renders(test_client):
    """The configuration form is shown with defaults filled in."""
    response = test_client.get("/")

    assert response.status_code == 200
    assert b'name="jqlQuery"' in response.data
    assert b'value="project = &#34;TODO&#34;"' in response.data
    assert b'name="estimateToDays" value="1"' in response.data


def test_configure_prefills_from_query_string(test_client):
    """Values come back from the burnup page's query string."""
    response = test_client.get("/", query_string=BURNUP_PARAMS)

    assert response.status_code == 200
    assert b'value="Release 1"' in response.data
    assert b'value="2024-01-21"' in response.data


def test_security_headers_added(test_client):
    """Ensure standard security headers are present on responses."""
    response = test_client.get("/")

    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert (
        response.headers.get("Strict-Transport-Security")
        == "max-age=31536000; includeSubDomains"
    )


class TestConfigureForm:
    """Test cases for submitting the configuration form."""

    def test_valid_form_redirects_to_burnup(self, test_client):
        """A complete form saves credentials and shows the burnup page."""
        response = test_client.post("/", data=FORM)

        assert response.status_code == 302
        location = urlparse(response.headers["Location"])
        assert location.path == "/burnup"
        assert parse_qs(location.query) == {
            key: [value] for key, value in BURNUP_PARAMS.items()
        }

        with test_client.session_transaction() as sess:
            assert sess["jira_auth"] == JIRA_AUTH

    def test_credentials_are_not_in_the_url(self, test_client):
        """The API token stays in the session."""
        response = test_client.post("/", data=FORM)

        assert "secret" not in response.headers["Location"]

    def test_missing_fields(self, test_client):
        """Every missing field is reported."""
        response = test_client.post(
            "/", data=dict(FORM, jiraToken="", estimateField=" ")
        )

        assert response.status_code == 400
        assert b"Jira API Token is required." in response.data
        assert b"Estimate Field is required." in response.data

        with test_client.session_transaction() as sess:
            assert "jira_auth" not in sess

    def test_start_after_end(self, test_client):
        """A window ending before it starts is rejected."""
        response = test_client.post(
            "/", data=dict(FORM, startDate="2024-02-01", endDate="2024-01-01")
        )

        assert response.status_code == 400
        assert b"must not be after" in response.data

    def test_invalid_conversion(self, test_client):
        """Days per estimate must be a positive number."""
        response = test_client.post("/", data=dict(FORM, estimateToDays="0"))

        assert response.status_code == 400
        assert b"greater than zero" in response.data


class TestBurnupRoute:
    """Test cases for the burnup route."""

    def test_burnup(self, logged_in_client, fake_jira_client):
        """The forecast is drawn with its completion date and rates."""
        response = logged_in_client.get(
            "/burnup", query_string=dict(BURNUP_PARAMS, today="2024-01-05")
        )

        assert response.status_code == 200
        assert b"<h1>Release 1</h1>" in response.data
        assert b"Projected completion: <strong>25/01/2024</strong>" in response.data
        assert b"0.25 / 0.50 days per day" in response.data
        assert b"Bokeh" in response.data

        fake_jira_client.assert_called_once_with(JIRA_AUTH)

    def test_burnup_links_back_to_configuration(
        self, logged_in_client, fake_jira_client
    ):
        """The configuration link keeps the current parameters."""
        response = logged_in_client.get("/burnup", query_string=BURNUP_PARAMS)

        assert b"Change configuration" in response.data
        assert b"estimateField=Story" in response.data

    def test_missing_params_redirect_to_configure(self, logged_in_client):
        """Incomplete parameters go back to the configuration form."""
        response = logged_in_client.get(
            "/burnup", query_string={"title": "Release 1"}
        )

        assert response.status_code == 302
        assert urlparse(response.headers["Location"]).path == "/"

        response = logged_in_client.get("/")
        assert b"Missing configuration: jql" in response.data

    def test_invalid_today_redirects_to_configure(self, logged_in_client):
        """An unparseable `today` parameter is a configuration problem."""
        response = logged_in_client.get(
            "/burnup", query_string=dict(BURNUP_PARAMS, today="yesterday")
        )

        assert response.status_code == 302

    def test_missing_credentials_redirect_to_configure(self, test_client):
        """Without credentials in the session the form is shown again."""
        response = test_client.get("/burnup", query_string=BURNUP_PARAMS)

        assert response.status_code == 302
        location = urlparse(response.headers["Location"])
        assert location.path == "/"
        assert parse_qs(location.query)["title"] == ["Release 1"]

    def test_jira_error(self, logged_in_client):
        """JIRA errors are reported on the page."""
        with patch(
            "stay_on_target.webapp.app.get_jira_client",
            side_effect=JIRAError(status_code=401, text="Unauthorized"),
        ):
            response = logged_in_client.get("/burnup", query_string=BURNUP_PARAMS)

        assert response.status_code == 200
        assert b"JIRA error: Unauthorized" in response.data
        assert b"Projected completion" not in response.data

    def test_unknown_estimate_field(self, logged_in_client, fake_jira_client):
        """Configuration problems found while forecasting are reported."""
        response = logged_in_client.get(
            "/burnup", query_string=dict(BURNUP_PARAMS, estimateField="Size")
        )

        assert response.status_code == 200
        assert b"JIRA field with name `Size` does not exist" in response.data

    def test_server_without_paged_search(self, logged_in_client, fake_jira_client):
        """Servers without token-paged search are reported on the page."""
        jira = fake_jira_client.return_value
        jira.enhanced_search_issues = lambda *args, **kwargs: None

        response = logged_in_client.get("/burnup", query_string=BURNUP_PARAMS)

        assert response.status_code == 200
        assert b"only available on Jira Cloud" in response.data
        assert b"Projected completion" not in response.data
