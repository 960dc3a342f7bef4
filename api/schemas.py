"""Request and response bodies for the workflow API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowCreate(BaseModel):
    """Body of ``POST /api/workflows``. Omitted fields use the configured defaults."""

    model_config = ConfigDict(populate_by_name=True)

    topic: Optional[str] = None
    target_audience: Optional[str] = Field(default=None, alias="targetAudience")
    target_word_count: Optional[int] = Field(default=None, alias="targetWordCount", ge=1)


class WorkflowStarted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(alias="workflowId")
    status: str = "in_progress"
    progress_url: str = Field(alias="progressUrl")


class RunSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    workflow_id: str = Field(alias="workflowId")
    topic: str
    status: str
    outcome: Optional[str] = None
    progress: int
    current_step: str = Field(alias="currentStep")
    start_time: str = Field(alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
