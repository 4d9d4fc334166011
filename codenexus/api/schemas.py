from __future__ import annotations

from pydantic import BaseModel, Field

from codenexus.domain.languages import LanguageId
from codenexus.domain.models import OrchestratorPhase


class ErrorResponse(BaseModel):
    detail: str


class HealthResponse(BaseModel):
    status: str
    service_mode: str


class LanguageResponse(BaseModel):
    id: LanguageId
    name: str
    ext: str
    starter_template: str


class ListLanguagesResponse(BaseModel):
    items: list[LanguageResponse]
    allowed_upload_extensions: list[str]


class ChangeLanguageRequest(BaseModel):
    language: LanguageId


class EditCodeRequest(BaseModel):
    code: str


class SetStdinRequest(BaseModel):
    stdin: str = ""


class SessionResponse(BaseModel):
    language: LanguageId
    code: str
    stdin: str
    file_error: str
    epoch: int


class ExecutionOutcomeResponse(BaseModel):
    succeeded: bool
    stdout: str
    stderr: str


class AnalysisOutcomeResponse(BaseModel):
    succeeded: bool
    tool: str
    metrics: dict[str, dict[str, float]] = Field(default_factory=dict)
    raw_output: str | None = None
    findings_total: int = 0


class StateResponse(BaseModel):
    epoch: int
    phase: OrchestratorPhase
    loading: bool
    submission_id: str | None = None
    execution_outcome: ExecutionOutcomeResponse | None = None
    analysis_outcome: AnalysisOutcomeResponse | None = None
    output: str | None = None
    analysis_report: str | None = None
    error_message: str | None = None
    error_codes: list[str] = Field(default_factory=list)


class StartRunResponse(BaseModel):
    epoch: int
    phase: OrchestratorPhase
