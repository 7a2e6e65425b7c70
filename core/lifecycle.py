from dataclasses import replace
from datetime import datetime
from typing import Optional

from core.errors import ValidationError
from core.job import Job, JobPatch, UNSET, new_id, utc_now
from core.states import JobStatus
from utils.urls import infer_source, is_valid_url, title_from_url


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def new_job(
    url: Optional[str],
    title: Optional[str] = None,
    company: Optional[str] = None,
    source: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Job:
    """
    Build a fresh `todo` job from a posting URL.

    Missing title and source are derived from the URL host.
    """
    if url is None:
        raise ValidationError.for_field("url", "Required")

    if not is_valid_url(url):
        raise ValidationError.for_field("url", "Invalid url")

    if title is not None and len(title) < 1:
        raise ValidationError.for_field(
            "title", "String must contain at least 1 character(s)"
        )

    return Job(
        id=new_id(),
        title=_clean(title) or title_from_url(url),
        company=_clean(company),
        url=url,
        source=_clean(source) or infer_source(url),
        notes=_clean(notes),
        status=JobStatus.TODO,
        created_at=now or utc_now(),
        applied_at=None,
        hidden_at=None,
    )


def _pick(current, requested):
    return current if requested is UNSET else requested


def apply_patch(
    previous: Job,
    patch: JobPatch,
    now: Optional[datetime] = None,
) -> Job:
    """
    Merge `patch` over `previous` and stamp status transitions.

    appliedAt / hiddenAt record the first time the job entered that
    status. Moving away and back again keeps the first stamp.
    """
    now = now or utc_now()

    nxt = replace(
        previous,
        status=_pick(previous.status, patch.status),
        title=_pick(previous.title, patch.title),
        company=_pick(previous.company, patch.company),
        url=_pick(previous.url, patch.url),
        source=_pick(previous.source, patch.source),
        notes=_pick(previous.notes, patch.notes),
    )

    if (
        patch.status == JobStatus.APPLIED
        and previous.status != JobStatus.APPLIED
        and previous.applied_at is None
    ):
        nxt.applied_at = now

    if (
        patch.status == JobStatus.HIDDEN
        and previous.status != JobStatus.HIDDEN
        and previous.hidden_at is None
    ):
        nxt.hidden_at = now

    return nxt
