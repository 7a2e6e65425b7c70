import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from core.errors import ValidationError
from core.states import JobStatus
from utils.urls import is_valid_url


_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


# =========================
# Time & identity
# =========================

def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (the stored precision)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_ts(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_ID_ALPHABET[rem])
    return "".join(reversed(digits))


def new_id() -> str:
    prefix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(8))
    return prefix + _base36(int(time.time() * 1000))


# =========================
# Patch sentinel
# =========================

class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# =========================
# Job Model
# =========================

@dataclass
class Job:
    id: str
    title: str
    created_at: datetime

    company: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None

    status: JobStatus = JobStatus.TODO

    applied_at: Optional[datetime] = None
    hidden_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "url": self.url,
            "source": self.source,
            "notes": self.notes,
            "status": self.status.value,
            "createdAt": format_ts(self.created_at),
            "appliedAt": format_ts(self.applied_at),
            "hiddenAt": format_ts(self.hidden_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Job":
        """Build a Job from a camelCase mapping (API payload or sqlite row)."""
        return cls(
            id=data["id"],
            title=data["title"],
            company=data["company"],
            url=data["url"],
            source=data["source"],
            notes=data["notes"],
            status=JobStatus(data["status"]),
            created_at=parse_ts(data["createdAt"]),
            applied_at=parse_ts(data["appliedAt"]),
            hidden_at=parse_ts(data["hiddenAt"]),
        )


# =========================
# Partial update
# =========================

@dataclass
class JobPatch:
    """
    Explicit set of patchable fields.

    A field left as UNSET keeps the stored value. No field can be
    cleared once set.
    """

    status: Any = UNSET
    title: Any = UNSET
    company: Any = UNSET
    url: Any = UNSET
    source: Any = UNSET
    notes: Any = UNSET

    FIELDS = ("status", "title", "company", "url", "source", "notes")

    def is_empty(self) -> bool:
        return all(getattr(self, name) is UNSET for name in self.FIELDS)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobPatch":
        errors: Dict[str, list] = {}
        values: Dict[str, Any] = {}

        for name in cls.FIELDS:
            if name not in data:
                continue
            value = data[name]

            if name == "status":
                try:
                    values[name] = JobStatus(value)
                except ValueError:
                    allowed = ", ".join(f"'{s.value}'" for s in JobStatus)
                    errors[name] = [f"Invalid enum value. Expected {allowed}"]
                continue

            if value is None:
                errors[name] = ["Expected string, received null"]
                continue

            if not isinstance(value, str):
                errors[name] = [f"Expected string, received {type(value).__name__}"]
                continue

            if name == "title" and len(value) < 1:
                errors[name] = ["String must contain at least 1 character(s)"]
            elif name == "url" and not is_valid_url(value):
                errors[name] = ["Invalid url"]
            else:
                values[name] = value

        if errors:
            raise ValidationError(field_errors=errors)

        return cls(**values)
