"""Query management module for Stay on Target.

This module resolves the configured estimate field against the fields known
to JIRA and drains a JQL search, page by page, into raw issue records.
"""

import json
import logging

import requests
from jira.exceptions import JIRAError

from .config import ConfigError
from .normalizer import CREATED_FIELD, RESOLVED_FIELD
from .utils import retry_with_backoff

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


def is_transient_error(exception):
    """Whether a failed page request is worth retrying."""
    if isinstance(exception, JIRAError):
        return getattr(exception, "status_code", None) in RETRYABLE_STATUS_CODES
    return isinstance(
        exception, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
    )


class QueryManager:
    """Manage and execute queries"""

    settings = {
        "page_size": 100,
    }

    def __init__(self, jira, settings):
        self.jira = jira
        self.settings = self.settings.copy()
        self.settings.update(settings)

        logger.debug("Resolving JIRA fields")
        self.jira_fields = self.jira.fields()

        if len(self.jira_fields) == 0:
            raise ConfigError(
                (
                    "No field data retrieved from JIRA. "
                    "This likely means a problem with the JIRA API."
                )
            ) from None

        self.jira_fields_to_names = {
            field["id"]: field["name"] for field in self.jira_fields
        }

    def field_name_to_id(self, name):
        """Convert a field name to its JIRA field ID.

        Field ids (e.g. `customfield_10016`) are accepted as they are; names
        are matched case-insensitively.

        Raises:
            ConfigError: If no field has that id or name
        """
        if name in self.jira_fields_to_names:
            return name

        try:
            return next(
                f["id"] for f in self.jira_fields if f["name"].lower() == name.lower()
            )
        except StopIteration:
            logger.debug(
                "Failed to look up %s in JIRA fields: %s",
                name,
                json.dumps(self.jira_fields),
            )

            raise ConfigError(
                f"JIRA field with name `{name}` does not exist"
            ) from None

    @retry_with_backoff(
        max_attempts=3,
        base_delay=2.0,
        exceptions=(
            JIRAError,
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
        ),
        should_retry=is_transient_error,
    )
    def _fetch_page(self, jql, fields, next_page_token):
        """Fetch one page of search results as the raw JSON response."""
        return self.jira.enhanced_search_issues(
            jql,
            nextPageToken=next_page_token,
            maxResults=self.settings["page_size"],
            fields=fields,
            json_result=True,
        )

    def find_raw_items(self, jql, estimate_field_id):
        """Return the raw issue records matching `jql`.

        Only the creation date, resolution date and estimate fields are
        requested. Pages are followed through `nextPageToken` until the
        search is exhausted.

        Args:
            jql: JQL query string
            estimate_field_id: Id of the field holding the size estimate

        Returns:
            List of issue records (`{"key": ..., "fields": {...}}`)
        """
        fields = [CREATED_FIELD, RESOLVED_FIELD, estimate_field_id]

        logger.info("Fetching issues with query `%s`", jql)

        issues = []
        next_page_token = None
        try:
            while True:
                page = self._fetch_page(jql, fields, next_page_token)
                if page is None:
                    # The jira client returns no result for cloud-only calls
                    # made against a Server or Data Center instance.
                    logger.error("JIRA server does not support paged issue search")
                    raise ConfigError(
                        "Issue search with nextPageToken is only available "
                        "on Jira Cloud"
                    )
                issues.extend(page.get("issues", []))
                next_page_token = page.get("nextPageToken")
                if not next_page_token:
                    break
                logger.debug("Fetched %d issues so far", len(issues))
        except JIRAError as e:
            logger.error(
                "JIRA API error while fetching issues with query `%s`: %s (Status: %s)",
                jql,
                getattr(e, "text", str(e)),
                getattr(e, "status_code", "Unknown"),
            )
            raise

        logger.info("Fetched %d issues", len(issues))
        if len(issues) == 0:
            logger.warning(
                "Query returned 0 issues. This may indicate: "
                "1. The JQL query doesn't match any issues "
                "2. Authentication/authorization issues "
                "3. The query needs adjustment"
            )
        return issues
