import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from core.config import Config
from core.job import Job, utc_now
from core.states import JobStatus


@dataclass
class JobStats:
    total: int = 0
    todo: int = 0
    applied: int = 0
    hidden: int = 0
    needs_follow_up: int = 0
    this_week: int = 0
    last_week: int = 0
    application_rate: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "todo": self.todo,
            "applied": self.applied,
            "hidden": self.hidden,
            "needsFollowUp": self.needs_follow_up,
            "thisWeek": self.this_week,
            "lastWeek": self.last_week,
            "applicationRate": self.application_rate,
        }


def filter_jobs(
    jobs: Iterable[Job],
    status: Optional[JobStatus] = None,
    query: Optional[str] = None,
) -> List[Job]:
    """Linear substring scan over title, company, source, url and notes."""
    q = (query or "").strip().lower()
    out = []

    for job in jobs:
        if status is not None and job.status != status:
            continue

        if q:
            blob = " ".join([
                job.title,
                job.company or "",
                job.source or "",
                job.url or "",
                job.notes or "",
            ]).lower()
            if q not in blob:
                continue

        out.append(job)

    return out


def summarize(jobs: Iterable[Job], now: Optional[datetime] = None) -> JobStats:
    now = now or utc_now()
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    stats = JobStats()

    for job in jobs:
        stats.total += 1

        if job.status == JobStatus.TODO:
            stats.todo += 1
        elif job.status == JobStatus.APPLIED:
            stats.applied += 1
            if (
                job.applied_at is not None
                and (now - job.applied_at).days > Config.FOLLOW_UP_AFTER_DAYS
            ):
                stats.needs_follow_up += 1
        elif job.status == JobStatus.HIDDEN:
            stats.hidden += 1

        if job.created_at > week_ago:
            stats.this_week += 1
        elif two_weeks_ago < job.created_at < week_ago:
            stats.last_week += 1

    if stats.total:
        # round half up, not banker's rounding
        stats.application_rate = math.floor(stats.applied * 100 / stats.total + 0.5)

    return stats
