"""Point-in-time replay of the event history.

Every control's events are sorted once into a ``ControlTimeline``; each
sample point then binary-searches the timeline instead of rescanning events.
"""

from __future__ import annotations

import calendar
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from itertools import accumulate
from typing import Iterable, Optional, Sequence

from ..models.dashboard import FrameworkProgress, Trends, TrendSeries
from ..models.snapshot import ComplianceStatus, Framework
from ..utils.dates import SECONDS_PER_DAY, round_half_up
from .aggregation import PARTIAL_WEIGHT, coverage_percent
from .index import ControlContext, ControlIndex

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class Incident:
    """A NOT_COMPLIANT event and the COMPLIANT event that resolved it."""

    opened_at: datetime
    resolved_at: datetime

    @property
    def days(self) -> float:
        return (self.resolved_at - self.opened_at).total_seconds() / SECONDS_PER_DAY


@dataclass(frozen=True)
class ControlTimeline:
    """One control's chronological status history.

    Evaluations when the control has any, otherwise its matched evidence
    signals. The same history drives the status replay and incident pairing.
    """

    times: tuple[datetime, ...] = ()
    statuses: tuple[ComplianceStatus, ...] = ()
    incidents: tuple[Incident, ...] = ()

    def status_at(self, when: datetime) -> ComplianceStatus:
        """Status of the most recent event at or before ``when``."""
        position = bisect_right(self.times, when)
        if position:
            return self.statuses[position - 1]
        return ComplianceStatus.UNKNOWN


def find_incidents(events: Sequence[tuple[datetime, ComplianceStatus]]) -> list[Incident]:
    """Pair every NOT_COMPLIANT event with the next strictly later COMPLIANT event."""
    incidents: list[Incident] = []
    # Earliest COMPLIANT instant seen so far that is later than the current one
    next_compliant: Optional[datetime] = None
    pending: Optional[datetime] = None
    for when, status in reversed(events):
        if pending is not None and pending > when:
            next_compliant, pending = pending, None
        if status == ComplianceStatus.NOT_COMPLIANT and next_compliant is not None:
            incidents.append(Incident(opened_at=when, resolved_at=next_compliant))
        if status == ComplianceStatus.COMPLIANT:
            pending = when
    incidents.reverse()
    return incidents


def build_timeline(context: ControlContext) -> ControlTimeline:
    history = [(event.timestamp, event.status) for event in context.evaluations]
    if not history:
        history = sorted(
            ((doc.created_at, doc.match_status) for doc in context.documents if doc.match_status),
            key=lambda item: item[0],
        )

    return ControlTimeline(
        times=tuple(when for when, _ in history),
        statuses=tuple(status for _, status in history),
        incidents=tuple(find_incidents(history)),
    )


def build_timelines(index: ControlIndex) -> dict[str, ControlTimeline]:
    return {control_id: build_timeline(context) for control_id, context in index.items()}


class MttrTracker:
    """Mean time to resolve, over incidents resolved by a given instant."""

    def __init__(self, timelines: Iterable[ControlTimeline]):
        incidents = sorted(
            (incident for timeline in timelines for incident in timeline.incidents),
            key=lambda incident: incident.resolved_at,
        )
        self._resolved = [incident.resolved_at for incident in incidents]
        self._totals = list(accumulate(incident.days for incident in incidents))

    def at(self, when: datetime) -> float:
        count = bisect_right(self._resolved, when)
        if not count:
            return 0.0
        return round_half_up(self._totals[count - 1] / count * 10) / 10


def clamp_range_days(value: object, default: int = 90, minimum: int = 30, maximum: int = 365) -> int:
    """Parse a requested window; unparseable input falls back to ``default``."""
    try:
        days = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        days = default
    return max(minimum, min(maximum, days))


def daily_samples(now: datetime, range_days: int) -> list[tuple[str, datetime]]:
    """One sample per day, oldest first; the last sample is ``now`` itself."""
    samples = []
    for offset in range(range_days - 1, -1, -1):
        instant = now - timedelta(days=offset)
        samples.append((instant.date().isoformat(), instant))
    return samples


def month_end_samples(now: datetime, count: int = 6) -> list[tuple[str, datetime]]:
    """Month-end instants for the trailing ``count`` months, current month last."""
    samples = []
    for offset in range(count - 1, -1, -1):
        month_index = now.year * 12 + (now.month - 1) - offset
        year, month = divmod(month_index, 12)
        last_day = calendar.monthrange(year, month + 1)[1]
        end = datetime(year, month + 1, last_day, 23, 59, 59, tzinfo=timezone.utc)
        samples.append((MONTH_LABELS[month], end))
    return samples


def build_trends(
    index: ControlIndex,
    now: datetime,
    range_days: int,
    partial_weight: float = PARTIAL_WEIGHT,
) -> Trends:
    """Risk score, compliance and MTTR series over the requested window."""
    timelines = list(build_timelines(index).values())
    mttr = MttrTracker(timelines)

    labels: list[str] = []
    risk_values: list[float] = []
    compliance_values: list[float] = []
    mttr_values: list[float] = []
    for label, instant in daily_samples(now, range_days):
        compliance = coverage_percent((tl.status_at(instant) for tl in timelines), partial_weight)
        labels.append(label)
        compliance_values.append(compliance)
        risk_values.append(max(0, 100 - compliance))
        mttr_values.append(mttr.at(instant))

    return Trends(
        range_days=range_days,
        labels=labels,
        series=[
            TrendSeries(name="riskScore", unit="%", values=risk_values),
            TrendSeries(name="compliance", unit="%", values=compliance_values),
            TrendSeries(name="mttr", unit="days", values=mttr_values),
        ],
    )


def build_framework_comparison(
    index: ControlIndex,
    frameworks: Sequence[Framework],
    now: datetime,
    months: int = 6,
    partial_weight: float = PARTIAL_WEIGHT,
) -> list[FrameworkProgress]:
    """Month-end coverage series for each framework over its own controls."""
    timelines = build_timelines(index)
    samples = month_end_samples(now, months)
    labels = [label for label, _ in samples]

    progress: list[FrameworkProgress] = []
    for framework in frameworks:
        members = [
            timelines[control_id]
            for control_id, context in index.items()
            if framework.name in context.control.framework_mappings
        ]
        series = [
            coverage_percent((tl.status_at(end) for tl in members), partial_weight)
            for _, end in samples
        ]
        progress.append(FrameworkProgress(
            framework=framework.name,
            labels=labels,
            series=series,
            current=series[-1] if series else 0,
            delta=(series[-1] - series[0]) if series else 0,
        ))
    return progress
