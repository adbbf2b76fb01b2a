"""Pipeline run, source registry and audit schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime


class StageResult(BaseModel):
    """Outcome of one pipeline stage.

    ``success`` is False only when the stage as a whole could not run.
    Per-record failures are counted in ``failed`` and described in ``errors``
    while the stage still reports success.
    """

    stage: str
    success: bool
    processed: int = 0
    failed: int = 0
    error: str | None = None
    errors: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    duration_seconds: float | None = None

    @classmethod
    def failure(cls, stage: str, error: str) -> "StageResult":
        return cls(stage=stage, success=False, error=error)

    def record_error(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


class PipelineRunResult(BaseModel):
    """Orchestrator outcome: best-effort, not all-or-nothing."""

    success: bool
    partial: bool
    started_at: UTCDatetime
    finished_at: UTCDatetime
    results: dict[str, StageResult] = Field(default_factory=dict)


class SourceStatus(BaseModel):
    """Ingestion health bookkeeping for one external data source."""

    model_config = ConfigDict(from_attributes=True)

    source_type: str
    source_name: str | None = None
    is_active: bool = True
    consecutive_failures: int = 0
    last_success: UTCDatetime | None = None
    last_failure: UTCDatetime | None = None


class AuditRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    action: str
    target: str
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: UTCDatetime | None = None
