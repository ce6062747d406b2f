"""
Period & Filter Context

Immutable description of what a report is computed over: an inclusive,
day-aligned date window plus optional technician and job-type filters.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import FrozenSet, Iterable, Optional, Union

# Technician filter value meaning "no technician filter"
ALL_TECHNICIANS = "all"

DateInput = Union[date, datetime, str]


def _to_date(value: DateInput, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            raise ValueError(f"Invalid {name} date: {value!r} (expected YYYY-MM-DD)")
    raise ValueError(f"Invalid {name} date: {value!r}")


@dataclass(frozen=True)
class PeriodContext:
    """Date window [start, end] and report filters"""
    start: datetime
    end: datetime
    technician_id: Optional[str] = None
    job_types: FrozenSet[str] = frozenset()
    as_of: datetime = field(default_factory=datetime.now)  # "now" for jobs missing createdAt

    @classmethod
    def create(
        cls,
        start: DateInput,
        end: DateInput,
        technician_id: Optional[str] = None,
        job_types: Optional[Iterable[str]] = None,
        as_of: Optional[datetime] = None
    ) -> "PeriodContext":
        """
        Build a context, normalising the window to whole days.

        Raises:
            ValueError if a date cannot be parsed or end is before start
        """
        start_day = _to_date(start, "start")
        end_day = _to_date(end, "end")
        if end_day < start_day:
            raise ValueError(f"End date {end_day.isoformat()} is before start date {start_day.isoformat()}")

        if technician_id is not None:
            technician_id = technician_id.strip() or None
        if technician_id == ALL_TECHNICIANS:
            technician_id = None

        types = frozenset(t for t in (job_types or []) if t)

        return cls(
            start=datetime.combine(start_day, time.min),
            end=datetime.combine(end_day, time.max),
            technician_id=technician_id,
            job_types=types,
            as_of=as_of or datetime.now(),
        )

    @classmethod
    def last_days(
        cls,
        days: int = 30,
        technician_id: Optional[str] = None,
        job_types: Optional[Iterable[str]] = None,
        today: Optional[date] = None
    ) -> "PeriodContext":
        """Dashboard default: the last N days ending today."""
        end_day = today or date.today()
        return cls.create(end_day - timedelta(days=days), end_day, technician_id, job_types)

    def contains(self, moment: Optional[datetime]) -> bool:
        """Inclusive window test; a missing timestamp is never in the window."""
        if moment is None:
            return False
        return self.start <= moment <= self.end

    @property
    def has_technician_filter(self) -> bool:
        return self.technician_id is not None

    def describe(self) -> dict:
        return {
            "start": self.start.date().isoformat(),
            "end": self.end.date().isoformat(),
            "technician_id": self.technician_id or ALL_TECHNICIANS,
            "job_types": sorted(self.job_types),
        }
