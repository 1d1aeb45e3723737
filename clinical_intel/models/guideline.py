from pydantic import BaseModel, ConfigDict, Field


class GuidelineRecord(BaseModel):
    """A clinical practice guideline entry in the lookup catalogue."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    guideline_id: str = Field(alias="guidelineId")
    topic: str
    title: str
    source: str | None = None
