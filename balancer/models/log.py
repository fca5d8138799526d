"""Assignment log entries — one immutable record per assignment or completion."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LogStatus(str, Enum):
    """What happened to the task in this event."""
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class AssignmentLogEntry(BaseModel):
    """A single scheduling event. Loads are percentages of the server's capacity."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(description="Wall-clock annotation, not used for decisions")
    task_id: int
    task_weight: int = Field(gt=0)
    server_id: int
    load_before: float = Field(ge=0, description="Server load before the event, in percent")
    load_after: float = Field(ge=0, description="Server load after the event, in percent")
    status: LogStatus

    def same_event(self, other: "AssignmentLogEntry") -> bool:
        """Compare everything except the timestamp."""
        return self.model_dump(exclude={"timestamp"}) == other.model_dump(exclude={"timestamp"})
