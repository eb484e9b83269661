"""Turn raw Jira issue records into `WorkItem`s.

Issues without a usable estimate or creation date do not represent real
scope, so they are skipped rather than reported as errors.
"""

import logging
import math
from numbers import Real

from .models import WorkItem
from .utils import to_day

logger = logging.getLogger(__name__)

CREATED_FIELD = "created"
RESOLVED_FIELD = "resolutiondate"


def _raw_record(raw_item):
    # jira.Issue objects carry the REST payload in `.raw`
    record = getattr(raw_item, "raw", raw_item)
    return record if isinstance(record, dict) else None


def _estimate(fields, estimate_field):
    value = fields.get(estimate_field)
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    return None if math.isnan(value) else value


def normalize_item(raw_item, estimate_field, estimate_to_days_factor):
    """Convert one raw issue record into a `WorkItem`.

    Returns None when the record cannot be used.
    """
    record = _raw_record(raw_item)
    if record is None:
        logger.debug("Skipping item that is not an issue record: %r", raw_item)
        return None

    key = record.get("key")
    fields = record.get("fields") or {}

    estimate = _estimate(fields, estimate_field)
    if estimate is None:
        logger.debug("Skipping %s: no numeric `%s` estimate", key, estimate_field)
        return None

    size_days = estimate * estimate_to_days_factor
    if not size_days > 0:
        logger.debug("Skipping %s: size of %s days", key, size_days)
        return None

    try:
        created_day = to_day(fields.get(CREATED_FIELD))
        resolved_day = to_day(fields.get(RESOLVED_FIELD))
    except ValueError as e:
        logger.debug("Skipping %s: %s", key, e)
        return None

    if created_day is None:
        logger.debug("Skipping %s: no creation date", key)
        return None

    return WorkItem(
        key=key,
        size_days=size_days,
        created_day=created_day,
        resolved_day=resolved_day,
    )


def normalize(raw_items, estimate_field, estimate_to_days_factor):
    """Convert raw issue records into validated `WorkItem`s.

    Args:
        raw_items: Iterable of Jira issue records, as REST JSON dicts or
            objects exposing one as `.raw`
        estimate_field: Id of the field holding the size estimate
        estimate_to_days_factor: Multiplier turning an estimate into days

    Returns:
        List of `WorkItem`s, in input order, for the usable records

    Raises:
        TypeError: If `raw_items` is not a collection
    """
    if raw_items is None:
        raise TypeError("Expected a collection of issue records, got None")

    items = []
    skipped = 0
    for raw_item in raw_items:
        item = normalize_item(raw_item, estimate_field, estimate_to_days_factor)
        if item is None:
            skipped += 1
        else:
            items.append(item)

    logger.info("Normalized %d work items (%d skipped)", len(items), skipped)
    return items
