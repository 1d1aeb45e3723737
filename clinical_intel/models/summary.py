from pydantic import BaseModel, ConfigDict, Field


class SummaryResult(BaseModel):
    """Successful AI summary returned by the summary tools."""

    model_config = ConfigDict(populate_by_name=True)

    source: str
    patient_id: str = Field(alias="patientId")
    patient_name: str | None = Field(default=None, alias="patientName")
    ai_summary: str


class SummaryFallback(BaseModel):
    """Human-readable message returned instead of a summary on any failure."""

    summary: str
