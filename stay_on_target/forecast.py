"""Linear burnup forecast.

Builds a day-by-day timeline of cumulative scope and resolved work from a
list of `WorkItem`s, projects both series forward from today using their
average daily rate since the start of the window, and derives a projected
completion date.

The engine is a pure function of its arguments: it never reads the clock,
never mutates the items it is given and returns identical results for
identical inputs.
"""

import datetime
import logging
import math
from typing import Iterable, List, Sequence

from .models import (
    ForecastResult,
    ProjectedCompletion,
    RateEstimate,
    TimelineStep,
    WorkItem,
)

logger = logging.getLogger(__name__)

ONE_DAY = datetime.timedelta(days=1)


class InvalidInputRange(ValueError):
    """Raised when the forecast window ends before it starts."""


def estimate_rates(
    items: Sequence[WorkItem], start_day: datetime.date, today: datetime.date
) -> RateEstimate:
    """Average daily growth of scope and resolved work since `start_day`.

    Items created or resolved on `start_day` itself count towards the
    initial totals. When today is not after `start_day` there is no
    observed window and both rates are zero.
    """
    resolved_items = [i for i in items if i.is_resolved]

    elapsed_days = (today - start_day).days
    initial_scope = sum(i.size_days for i in items if i.created_day <= start_day)
    initial_resolved = sum(
        i.size_days for i in resolved_items if i.resolved_day <= start_day
    )
    total_scope = sum(i.size_days for i in items)
    total_resolved = sum(i.size_days for i in resolved_items)

    if elapsed_days > 0:
        scope_rate = (total_scope - initial_scope) / elapsed_days
        resolved_rate = (total_resolved - initial_resolved) / elapsed_days
    else:
        logger.debug(
            "Today (%s) is not after the start (%s); using zero rates",
            today,
            start_day,
        )
        scope_rate = 0.0
        resolved_rate = 0.0

    return RateEstimate(
        elapsed_days=elapsed_days,
        initial_scope_days=float(initial_scope),
        initial_resolved_days=float(initial_resolved),
        total_scope_days=float(total_scope),
        total_resolved_days=float(total_resolved),
        scope_rate=float(scope_rate),
        resolved_rate=float(resolved_rate),
    )


def project_completion(
    rates: RateEstimate, today: datetime.date
) -> ProjectedCompletion:
    """Work out when resolved work catches up with scope.

    Normalized work items always have a positive size, so zero total scope
    means there are no items and nothing to complete: the verdict is "never".
    """
    if rates.total_scope_days == 0:
        return ProjectedCompletion.never()

    if rates.total_resolved_days >= rates.total_scope_days:
        return ProjectedCompletion.already_complete()

    if rates.resolved_rate > rates.scope_rate:
        days_remaining = math.ceil(
            rates.remaining_days / (rates.resolved_rate - rates.scope_rate)
        )
        return ProjectedCompletion.on(today + datetime.timedelta(days=days_remaining))

    return ProjectedCompletion.never()


def _days(start_day, end_day):
    day = start_day
    while day <= end_day:
        yield day
        day += ONE_DAY


def build_timeline(
    items: Sequence[WorkItem],
    start_day: datetime.date,
    end_day: datetime.date,
    today: datetime.date,
    rates: RateEstimate,
    truncate_converged_tail: bool = True,
) -> List[TimelineStep]:
    """Walk every day of the window, accumulating actual totals and
    projecting them from today.

    Once the projection has shown resolved work meeting scope on two
    consecutive days, no more projected values are emitted (unless
    `truncate_converged_tail` is False). Every day up to `end_day` still
    gets a step.
    """
    by_created = sorted(items, key=lambda i: i.created_day)
    by_resolved = sorted(
        (i for i in items if i.is_resolved), key=lambda i: i.resolved_day
    )

    created_cursor = 0
    resolved_cursor = 0
    cumulative_scope = 0.0
    cumulative_resolved = 0.0

    previous_converged = False
    suppressed = False

    steps = []
    for day in _days(start_day, end_day):
        while (
            created_cursor < len(by_created)
            and by_created[created_cursor].created_day <= day
        ):
            cumulative_scope += by_created[created_cursor].size_days
            created_cursor += 1

        while (
            resolved_cursor < len(by_resolved)
            and by_resolved[resolved_cursor].resolved_day <= day
        ):
            cumulative_resolved += by_resolved[resolved_cursor].size_days
            resolved_cursor += 1

        rel_day = (day - today).days

        step = {"day": day}
        if rel_day <= 0:
            step["scope_days"] = cumulative_scope
            step["resolved_days"] = cumulative_resolved

        if rel_day >= 0 and not suppressed:
            projected_scope = cumulative_scope + rel_day * rates.scope_rate
            projected_resolved = cumulative_resolved + rel_day * rates.resolved_rate
            converged = projected_resolved >= projected_scope

            if truncate_converged_tail and converged and previous_converged:
                suppressed = True
                logger.debug("Projection converged; suppressing from %s", day)
            else:
                step["projected_scope_days"] = projected_scope
                step["projected_resolved_days"] = min(
                    projected_resolved, projected_scope
                )
            previous_converged = converged

        steps.append(TimelineStep(**step))

    return steps


def forecast(
    items: Iterable[WorkItem],
    start_day: datetime.date,
    end_day: datetime.date,
    today: datetime.date,
    truncate_converged_tail: bool = True,
) -> ForecastResult:
    """Compute the burnup forecast for the window `[start_day, end_day]`.

    Args:
        items: Normalized work items
        start_day: First day of the window
        end_day: Last day of the window (inclusive)
        today: The day separating actual from projected values
        truncate_converged_tail: Stop emitting projected values once both
            projections have converged

    Raises:
        InvalidInputRange: If `start_day` is after `end_day`
    """
    if start_day > end_day:
        raise InvalidInputRange(
            f"Start day {start_day.isoformat()} is after end day "
            f"{end_day.isoformat()}"
        )

    # Private copy, so a caller mutating its own list cannot affect us
    items = tuple(items)

    rates = estimate_rates(items, start_day, today)
    steps = build_timeline(
        items,
        start_day,
        end_day,
        today,
        rates,
        truncate_converged_tail=truncate_converged_tail,
    )
    completion = project_completion(rates, today)

    logger.debug(
        "Forecast for %d items: scope rate %.3f/day, resolved rate %.3f/day, "
        "completion %s",
        len(items),
        rates.scope_rate,
        rates.resolved_rate,
        completion.label("%Y-%m-%d"),
    )

    return ForecastResult(
        start_day=start_day,
        end_day=end_day,
        today=today,
        steps=tuple(steps),
        rates=rates,
        projected_completion=completion,
    )
