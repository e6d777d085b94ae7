"""Data model for the radar: record projections, opening history, alerts.

Records and opening-log entries arrive from the surrounding CRM and are
validated with pydantic.  Values produced by the radar itself are plain
TypedDicts.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict

PriorityMode = Literal["auto", "urgent", "normal", "dormant"]

ApplicationStatus = Literal[
    "draft",
    "docs_pending",
    "awaiting_appointment",
    "appointment_set",
    "submitted",
    "processing",
    "ready_pickup",
    "completed",
    "refused",
]

AWAITING_APPOINTMENT: ApplicationStatus = "awaiting_appointment"
APPOINTMENT_SET: ApplicationStatus = "appointment_set"
# Promotion to one of these also archives the record
CLOSING_STATUSES: frozenset[str] = frozenset({"ready_pickup", "completed"})

DisplayTier = Literal["never", "just_now", "fresh", "recent", "aging", "stale"]


# ---------------------------------------------------------------------------
# Collaborator inputs
# ---------------------------------------------------------------------------


class MonitorableRecord(BaseModel):
    """Projection of one client application as seen by the radar."""

    model_config = ConfigDict(frozen=True)

    id: str
    client_id: str
    client_name: str
    destination: str
    center: str | None = None
    portal_url: str | None = None
    visa_type: str | None = None
    priority_mode: PriorityMode = "auto"
    target_date_start: date | None = None
    target_date_end: date | None = None
    last_checked: str | None = None
    check_log: list[str] = Field(default_factory=list)  # newest first
    archived: bool = False
    status: ApplicationStatus = AWAITING_APPOINTMENT


class OpeningLogEntry(BaseModel):
    """A moment when a slot was actually observed available."""

    model_config = ConfigDict(frozen=True)

    destination: str
    day_of_week: str  # Lundi ... Dimanche
    time_of_day: str  # HH:MM
    found_at: datetime
    center: str | None = None
    visa_type: str | None = None


def is_monitorable(record: MonitorableRecord) -> bool:
    """Only unarchived records awaiting an appointment are watched."""
    return record.status == AWAITING_APPOINTMENT and not record.archived


# ---------------------------------------------------------------------------
# Radar-produced values
# ---------------------------------------------------------------------------


class PendingAlert(TypedDict):
    id: str  # owning client id
    client_name: str
    destination: str


class UrgencyResult(TypedDict):
    score: int
    history_match: bool


class TimeDisplay(TypedDict):
    text: str
    minutes_elapsed: int
    tier: DisplayTier
