"""Tests for query management in Stay on Target."""

import pytest
import requests
from jira.exceptions import JIRAError

from .config import ConfigError
from .querymanager import QueryManager, is_transient_error
from .test_classes import FauxJIRA, faux_jira_error


def test_no_fields_from_jira(base_settings):
    with pytest.raises(ConfigError):
        QueryManager(FauxJIRA([], []), base_settings)


def test_field_name_to_id(query_manager):
    assert query_manager.field_name_to_id("Story Points") == "customfield_002"
    assert query_manager.field_name_to_id("story points") == "customfield_002"
    assert query_manager.field_name_to_id("customfield_002") == "customfield_002"


def test_field_name_to_id_unknown(query_manager):
    with pytest.raises(ConfigError):
        query_manager.field_name_to_id("Size")


def test_find_raw_items_follows_pages(query_manager, faux_jira, raw_issues):
    issues = query_manager.find_raw_items('project = "TEST"', "customfield_002")

    assert issues == raw_issues
    assert [c["nextPageToken"] for c in faux_jira.search_calls] == [
        None,
        "page-2",
        "page-4",
    ]
    for call in faux_jira.search_calls:
        assert call["jql"] == 'project = "TEST"'
        assert call["maxResults"] == 2
        assert call["json_result"] is True
        assert call["fields"] == ["created", "resolutiondate", "customfield_002"]


def test_find_raw_items_single_page(base_fields, raw_issues, base_settings):
    jira = FauxJIRA(base_fields, raw_issues)
    query_manager = QueryManager(jira, dict(base_settings, page_size=100))

    assert query_manager.find_raw_items("filter = 1", "customfield_002") == raw_issues
    assert len(jira.search_calls) == 1


def test_find_raw_items_empty(base_fields, base_settings):
    query_manager = QueryManager(FauxJIRA(base_fields, []), base_settings)

    assert query_manager.find_raw_items("filter = 1", "customfield_002") == []


def test_find_raw_items_without_paged_search(mocker, query_manager, faux_jira):
    """Servers that answer token-paged search with nothing are a config problem."""
    mocker.patch.object(faux_jira, "enhanced_search_issues", return_value=None)

    with pytest.raises(ConfigError, match="only available on Jira Cloud"):
        query_manager.find_raw_items("project = X", "customfield_002")
    faux_jira.enhanced_search_issues.assert_called_once()


def test_transient_page_failures_are_retried(base_fields, raw_issues, base_settings):
    jira = FauxJIRA(
        base_fields,
        raw_issues,
        failures=[
            faux_jira_error(503),
            requests.exceptions.ConnectionError("reset"),
        ],
    )
    query_manager = QueryManager(jira, base_settings)

    assert query_manager.find_raw_items("filter = 1", "customfield_002") == raw_issues
    assert len(jira.search_calls) == 5


def test_retries_give_up(base_fields, raw_issues, base_settings):
    jira = FauxJIRA(
        base_fields,
        raw_issues,
        failures=[faux_jira_error(429), faux_jira_error(502), faux_jira_error(500)],
    )
    query_manager = QueryManager(jira, base_settings)

    with pytest.raises(JIRAError):
        query_manager.find_raw_items("filter = 1", "customfield_002")
    assert len(jira.search_calls) == 3


def test_bad_query_is_not_retried(base_fields, raw_issues, base_settings):
    jira = FauxJIRA(
        base_fields,
        raw_issues,
        failures=[faux_jira_error(400, "Error in the JQL Query")],
    )
    query_manager = QueryManager(jira, base_settings)

    with pytest.raises(JIRAError):
        query_manager.find_raw_items("project = = 1", "customfield_002")
    assert len(jira.search_calls) == 1


@pytest.mark.parametrize(
    "exception, expected",
    [
        (faux_jira_error(429), True),
        (faux_jira_error(503), True),
        (faux_jira_error(401), False),
        (faux_jira_error(None), False),
        (requests.exceptions.Timeout(), True),
        (ValueError("boom"), False),
    ],
)
def test_is_transient_error(exception, expected):
    assert is_transient_error(exception) is expected
