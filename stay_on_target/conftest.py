"""Test configuration and fixtures for Stay on Target.

This module provides fake JIRA data and settings shared by the tests.
"""

import datetime

import pytest

from .models import WorkItem
from .querymanager import QueryManager
from .test_classes import FauxJIRA

D0 = datetime.date(2024, 1, 1)


def day(offset):
    """The day `offset` days after D0."""
    return D0 + datetime.timedelta(days=offset)


def raw_issue(key, created, resolved=None, estimate=None, field="customfield_002"):
    """A raw issue record as returned by the JIRA search API."""
    fields = {"created": created, "resolutiondate": resolved}
    if estimate is not None:
        fields[field] = estimate
    return {"key": key, "fields": fields}


def work_item(key, size, created, resolved=None):
    """A `WorkItem` with days given as offsets from D0."""
    return WorkItem(
        key=key,
        size_days=size,
        created_day=day(created),
        resolved_day=None if resolved is None else day(resolved),
    )


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    """Do not actually wait between retries."""
    monkeypatch.setattr("stay_on_target.utils.time.sleep", lambda _seconds: None)


@pytest.fixture(name="base_fields")
def minimal_fields():
    """A `fields` list with the standard fields and one estimate field."""
    return [
        {"id": "summary", "name": "Summary"},
        {"id": "issuetype", "name": "Issue type"},
        {"id": "status", "name": "Status"},
        {"id": "created", "name": "Created"},
        {"id": "resolutiondate", "name": "Resolved"},
        {"id": "customfield_001", "name": "Team"},
        {"id": "customfield_002", "name": "Story Points"},
    ]


@pytest.fixture(name="base_settings")
def minimal_settings():
    """Forecast settings as produced by the configuration loader."""
    return {
        "title": "Release 1",
        "query": 'project = "TEST"',
        "estimate_field": "Story Points",
        "estimate_to_days": 0.5,
        "start_date": D0,
        "end_date": day(20),
        "page_size": 2,
        "truncate_converged_tail": True,
        "burnup_data": [],
        "burnup_chart": None,
        "burnup_chart_title": None,
        "date_format": "%d/%m/%Y",
    }


@pytest.fixture(name="raw_issues")
def sample_raw_issues():
    """Issues as they come back from JIRA, including some that are unusable."""
    return [
        raw_issue(
            "A-1", "2024-01-01T09:00:00.000+0000", "2024-01-03T17:00:00.000+0000", 4
        ),
        raw_issue("A-2", "2024-01-01T10:00:00.000+0000", None, 8),
        raw_issue("A-3", "2024-01-03T11:30:00.000-0500", None, 2),
        raw_issue("A-4", "2024-01-02T12:00:00.000+0000", None),
        raw_issue("A-5", "2024-01-02T12:00:00.000+0000", None, 0),
    ]


@pytest.fixture(name="faux_jira")
def fake_jira(base_fields, raw_issues):
    """A fake JIRA serving `raw_issues`."""
    return FauxJIRA(base_fields, raw_issues)


@pytest.fixture(name="query_manager")
def fake_query_manager(faux_jira, base_settings):
    """A query manager over the fake JIRA."""
    return QueryManager(faux_jira, base_settings)
