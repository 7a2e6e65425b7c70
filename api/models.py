from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from core.states import JobStatus


def _reject_null(value):
    # omitted fields keep their defaults; an explicit null is an error
    if value is None:
        raise ValueError("Expected string, received null")
    return value


class CreateJobRequest(BaseModel):
    url: str = Field(
        ...,
        description="Link to the job posting"
    )
    title: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Defaults to 'Job link (<host>)'"
    )
    company: Optional[str] = None
    source: Optional[str] = Field(
        default=None,
        description="Defaults to a name inferred from the URL host"
    )
    notes: Optional[str] = None

    reject_nulls = field_validator("title", "company", "source", "notes", mode="before")(_reject_null)


class PatchJobRequest(BaseModel):
    status: Optional[JobStatus] = None
    title: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None

    reject_nulls = field_validator(
        "status", "title", "company", "url", "source", "notes", mode="before"
    )(_reject_null)


class JobResponse(BaseModel):
    id: str
    title: str
    company: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    status: JobStatus
    createdAt: str
    appliedAt: Optional[str] = None
    hiddenAt: Optional[str] = None


class JobEnvelope(BaseModel):
    job: JobResponse


class JobListResponse(BaseModel):
    jobs: List[JobResponse]


class JobStatsResponse(BaseModel):
    total: int
    todo: int
    applied: int
    hidden: int
    needsFollowUp: int
    thisWeek: int
    lastWeek: int
    applicationRate: int


class StatsEnvelope(BaseModel):
    stats: JobStatsResponse


class OkResponse(BaseModel):
    ok: bool = True
