"""Value records used by the burnup forecast.

All records are immutable and created fresh for every forecast.
"""

import datetime
import enum
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class WorkItem:
    """One unit of work: when it entered scope, when it was resolved (if it
    was), and how big it is in days."""

    key: str
    size_days: float
    created_day: datetime.date
    resolved_day: Optional[datetime.date] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_day is not None


@dataclass(frozen=True)
class TimelineStep:
    """A single day of the burnup timeline.

    Actual values are only set up to and including today; projected values
    only from today onwards.
    """

    day: datetime.date
    scope_days: Optional[float] = None
    resolved_days: Optional[float] = None
    projected_scope_days: Optional[float] = None
    projected_resolved_days: Optional[float] = None


@dataclass(frozen=True)
class RateEstimate:
    """Historical totals and the average daily rates derived from them."""

    elapsed_days: int
    initial_scope_days: float
    initial_resolved_days: float
    total_scope_days: float
    total_resolved_days: float
    scope_rate: float
    resolved_rate: float

    @property
    def remaining_days(self) -> float:
        return self.total_scope_days - self.total_resolved_days


class CompletionStatus(enum.Enum):
    """Kind of projected completion."""

    DATE = "date"
    NEVER = "never"
    ALREADY_COMPLETE = "already complete"


@dataclass(frozen=True)
class ProjectedCompletion:
    """Projected completion verdict. `day` is only set for `DATE`."""

    status: CompletionStatus
    day: Optional[datetime.date] = None

    @classmethod
    def on(cls, day):
        return cls(CompletionStatus.DATE, day)

    @classmethod
    def never(cls):
        return cls(CompletionStatus.NEVER)

    @classmethod
    def already_complete(cls):
        return cls(CompletionStatus.ALREADY_COMPLETE)

    def label(self, date_format="%d/%m/%Y") -> str:
        """Textual label for charts and command line output."""
        if self.status is CompletionStatus.DATE:
            return self.day.strftime(date_format)
        if self.status is CompletionStatus.ALREADY_COMPLETE:
            return "Already complete"
        return "Never"


@dataclass(frozen=True)
class ForecastResult:
    """Output of the forecast engine."""

    start_day: datetime.date
    end_day: datetime.date
    today: datetime.date
    steps: Tuple[TimelineStep, ...]
    rates: RateEstimate
    projected_completion: ProjectedCompletion
