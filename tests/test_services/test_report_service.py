"""Tests for report creation and AI summarization."""

from datetime import date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from brokerage.schemas.report import CreateReportRequest, CustomerInteraction, ReportSummaryOutput
from brokerage.services.report_service import (
    build_summary_prompt,
    create_report,
    summarize_interactions,
)


def make_request(num_interactions: int = 2) -> CreateReportRequest:
    return CreateReportRequest(
        property_id="prop-1",
        property_name="Test Residence 101",
        report_start_date=date(2024, 6, 3),
        report_end_date=date(2024, 6, 10),
        batch_setting_id="setting-1",
        customer_interactions=[
            CustomerInteraction(
                customer_id=f"cust-{i}",
                customer_name=f"Customer {i}",
                inquired_at=datetime(2024, 6, 4 + i, 10, 0),
                title=f"Inquiry {i}",
                summary="Asked about the floor plan.",
            )
            for i in range(num_interactions)
        ],
    )


def make_client(parsed: ReportSummaryOutput | None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.parsed = parsed
    mock_response.usage = MagicMock()
    mock_response.usage.prompt_tokens = 120
    mock_response.usage.completion_tokens = 80
    mock_client.chat.completions.parse = AsyncMock(return_value=mock_response)
    return mock_client


class TestBuildSummaryPrompt:
    """Tests for build_summary_prompt."""

    def test_includes_property_and_period(self):
        """Should mention the property name and period bounds."""
        prompt = build_summary_prompt(make_request(), max_interactions=50)

        assert "Test Residence 101" in prompt
        assert "2024-06-03 to 2024-06-10" in prompt
        assert "Inquiry 0" in prompt
        assert "Inquiry 1" in prompt

    def test_truncates_interactions(self):
        """Should include at most max_interactions entries."""
        prompt = build_summary_prompt(make_request(5), max_interactions=2)

        assert "(2 of 5)" in prompt
        assert "Inquiry 1" in prompt
        assert "Inquiry 2" not in prompt


@pytest.mark.asyncio
class TestSummarizeInteractions:
    """Tests for summarize_interactions."""

    async def test_returns_parsed_summary(self, mock_summary_response):
        """Should return the structured summary from the LLM."""
        client = make_client(ReportSummaryOutput(**mock_summary_response))

        result = await summarize_interactions(make_request(), client)

        assert result is not None
        assert result.current_status == "active"
        client.chat.completions.parse.assert_awaited_once()

    async def test_api_error_returns_none(self):
        """Should return None when the LLM call fails."""
        client = AsyncMock()
        client.chat.completions.parse = AsyncMock(side_effect=Exception("API Error"))

        assert await summarize_interactions(make_request(), client) is None

    async def test_no_parsed_content_returns_none(self):
        """Should return None when the LLM returns no parsed content."""
        client = make_client(None)

        assert await summarize_interactions(make_request(), client) is None


@pytest.mark.asyncio
class TestCreateReport:
    """Tests for create_report."""

    async def test_stores_ai_summary(self, db_session, mock_summary_response):
        """Should persist a draft report with the AI summary."""
        client = make_client(ReportSummaryOutput(**mock_summary_response))

        report = await create_report(db_session, make_request(), "client-1", client)

        assert report.id is not None
        assert report.client_id == "client-1"
        assert report.batch_setting_id == "setting-1"
        assert report.title == mock_summary_response["title"]
        assert report.summary == mock_summary_response["summary"]
        assert report.current_status == "active"
        assert report.inquiries_count == 2
        assert len(report.customer_interactions) == 2
        assert report.customer_interactions[0]["customer_name"] == "Customer 0"
        assert report.is_draft is True

    async def test_summary_failure_still_stores_report(self, db_session):
        """Should store the report without summary text when the LLM fails."""
        client = AsyncMock()
        client.chat.completions.parse = AsyncMock(side_effect=Exception("API Error"))

        report = await create_report(db_session, make_request(), "client-1", client)

        assert report.summary is None
        assert report.title == "Test Residence 101 sales report 2024-06-03 to 2024-06-10"

    async def test_no_client_without_api_key(self, db_session):
        """Should skip summarization when no OpenAI key is configured."""
        report = await create_report(db_session, make_request(), "client-1")

        assert report.summary is None
        assert report.inquiries_count == 2
