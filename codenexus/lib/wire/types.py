from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Response bodies of the remote execution-and-analysis service.
# These schemas define payload shape only; classification lives in the poller.


class SubmittedJob(BaseModel):
    model_config = ConfigDict(extra="allow")

    submission_id: str
    language: str
    code_key: str | None = None
    input_key: str | None = None


class SubmitResponse(BaseModel):
    # POST /submit
    model_config = ConfigDict(extra="allow")

    submission_id: str = Field(min_length=1)
    job: SubmittedJob
    status: str | None = None


class ExecutionResponse(BaseModel):
    # GET /results/{submission_id}
    model_config = ConfigDict(extra="allow")

    language: str | None = None
    status: str
    success: bool | None = None
    stdout: str = ""
    stderr: str = ""

    @field_validator("stdout", "stderr", mode="before")
    @classmethod
    def _null_stream_is_empty(cls, value: object) -> object:
        return "" if value is None else value


class AnalysisBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    errors: list[object] = Field(default_factory=list)
    generated_at: str | None = None
    # Per-file counters plus "_totals", or free-form text for languages
    # without structured metrics.
    metrics: dict[str, object] | str = Field(default_factory=dict)
    results: list[dict[str, object]] = Field(default_factory=list)
    raw_output: str | None = None

    @field_validator("errors", "results", mode="before")
    @classmethod
    def _null_list_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("metrics", mode="before")
    @classmethod
    def _null_metrics_are_empty(cls, value: object) -> object:
        return {} if value is None else value


class AnalysisResponse(BaseModel):
    # GET /analysis/{submission_id}
    model_config = ConfigDict(extra="allow")

    success: bool
    language: str | None = None
    tool: str = ""
    timestamp: str | None = None
    analysis: AnalysisBody = Field(default_factory=AnalysisBody)
    results: list[dict[str, object]] = Field(default_factory=list)

    @field_validator("tool", mode="before")
    @classmethod
    def _null_tool_is_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("results", mode="before")
    @classmethod
    def _null_results_are_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("analysis", mode="before")
    @classmethod
    def _null_analysis_is_empty(cls, value: object) -> object:
        return {} if value is None else value
