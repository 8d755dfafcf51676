"""
Trace Schemas

Transaction records produced by the trace generator or received from the
live feed. Frozen once built.

Wire format is camelCase (spEntityId, durationMs, rawLogs, ...);
Python attributes stay snake_case.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StepStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


class RequestStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PARTIAL = "PARTIAL"


class WireModel(BaseModel):
    """Base for camelCase wire models."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TraceStep(WireModel):
    """
    One pipeline stage of a transaction.

    duration_ms belongs to the stage definition; canceling a stage
    does not change it.
    """
    id: str = Field(..., description="Stage identifier, 1-based")
    name: str = Field(..., description="Human-readable stage name")
    status: StepStatus
    timestamp: str = Field(..., description="ISO timestamp of the stage")
    details: str = Field(default="", description="Free-text detail")
    duration_ms: int = Field(..., ge=0, description="Fixed stage duration")


class RequestLog(WireModel):
    """
    One authentication transaction.
    """
    id: str = Field(..., description="Transaction ID")
    timestamp: datetime
    sp_entity_id: str = Field(..., description="Service provider label")
    user_principal: Optional[str] = None
    status: RequestStatus
    duration_ms: int = Field(..., ge=0, description="Sum of step durations")
    steps: List[TraceStep] = Field(default_factory=list)
    raw_logs: List[str] = Field(default_factory=list, description="Narrative process.log lines")
    audit_log: str = Field(default="", description="Structured audit.log line")

    @property
    def failed(self) -> bool:
        return self.status == RequestStatus.FAILURE

    def failure_point(self) -> Optional[int]:
        """Zero-based index of the failing step, if any."""
        for index, step in enumerate(self.steps):
            if step.status == StepStatus.FAILURE:
                return index
        return None

    def to_wire(self) -> dict:
        """Serialize with camelCase keys and an ISO timestamp."""
        return self.model_dump(mode="json", by_alias=True)
