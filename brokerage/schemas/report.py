from datetime import date, datetime

from pydantic import BaseModel, Field


class CustomerInteraction(BaseModel):
    """One customer interaction included in a report."""

    customer_id: str | None = None
    customer_name: str = "Unknown"
    inquired_at: datetime
    category: str = "inquiry"
    type: str = "email"
    title: str = "Inquiry"
    summary: str = ""


class CreateReportRequest(BaseModel):
    """Payload for creating a sales-status report."""

    property_id: str
    property_name: str
    report_start_date: date
    report_end_date: date
    customer_interactions: list[CustomerInteraction] = Field(default_factory=list)
    batch_setting_id: str | None = None


class ReportSummaryOutput(BaseModel):
    """
    Structured output schema for LLM report summarization.

    Used with OpenAI's response_format for guaranteed schema compliance.
    """

    title: str = Field(
        description="Short report title for the property owner",
        max_length=200,
    )
    summary: str = Field(
        description="3-5 sentence overview of customer activity in the period",
    )
    current_status: str = Field(
        description="One word sales status, e.g. 'active', 'negotiating', 'quiet'",
        max_length=50,
    )
