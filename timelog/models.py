"""
Pydantic v2 data models for timelog.
"""

import datetime as dt
import re
import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_SPENT_ON = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Last id handed out by new_request_id(), in nanoseconds
_last_id_ns = 0


def new_request_id() -> str:
    """Return a unique, time-derived id that never goes backwards."""
    global _last_id_ns
    _last_id_ns = max(time.time_ns(), _last_id_ns + 1)
    return f"req_{_last_id_ns}"


class Outcome(str, Enum):
    """Classification of a single delivery attempt."""

    DELIVERED = "delivered"
    REJECTED = "rejected"
    TRANSIENT_FAILURE = "transient_failure"


class RedmineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    redmine_url: str = ""
    api_key: str = ""

    @field_validator("redmine_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def is_complete(self) -> bool:
        return bool(self.redmine_url and self.api_key)


class TimeEntry(BaseModel):
    """One time-tracking record as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    issue_id: int
    date: dt.date
    hours: float = Field(gt=0)
    activity_id: int
    comments: str = ""
    spent_on: str = Field(default="", validate_default=True)  # YYYY-MM-DD

    @field_validator("spent_on")
    @classmethod
    def default_spent_on(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            day = info.data.get("date")
            if day is None:
                raise ValueError("spent_on cannot be derived without a valid date")
            return day.isoformat()
        if not _SPENT_ON.match(v):
            raise ValueError(f"spent_on must be YYYY-MM-DD, got {v!r}")
        return v

    def to_wire(self) -> dict:
        """Fields sent to Redmine inside the ``time_entry`` object."""
        return {
            "issue_id": self.issue_id,
            "spent_on": self.spent_on,
            "hours": self.hours,
            "activity_id": self.activity_id,
            "comments": self.comments,
        }


class QueuedItem(BaseModel):
    """A TimeEntry bound to the endpoint and credential it will be sent with."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_request_id)
    payload: TimeEntry
    redmine_url: str
    api_key: str

    @classmethod
    def build(cls, payload: TimeEntry, redmine: RedmineSettings) -> "QueuedItem":
        return cls(payload=payload, redmine_url=redmine.redmine_url, api_key=redmine.api_key)

    @property
    def issue_id(self) -> int:
        return self.payload.issue_id
