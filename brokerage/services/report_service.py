"""Sales-status report creation with optional AI summarization."""

import backoff
from httpx import HTTPStatusError
from openai import AsyncOpenAI, RateLimitError
from sqlalchemy.ext.asyncio import AsyncSession

from brokerage.config import get_config, get_settings
from brokerage.core.logging import get_logger
from brokerage.models.report import Report
from brokerage.schemas.report import CreateReportRequest, ReportSummaryOutput

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an assistant for a real-estate sales brokerage.
You write periodic sales-status reports that brokers send to property owners.

Rules:
- Summarize only the customer interactions provided; never invent activity
- Mention the number of inquiries and any viewings or negotiations
- Keep a neutral, professional tone suitable for the property owner
- The summary should be 3-5 sentences
- current_status is a single lowercase word describing the sales situation

Output format is strictly JSON matching the schema provided."""


def build_summary_prompt(request: CreateReportRequest, max_interactions: int) -> str:
    """Format the report request as an LLM user prompt."""
    interactions = request.customer_interactions[:max_interactions]
    prompt = f"""Write a sales-status report.

Property: {request.property_name}
Period: {request.report_start_date.isoformat()} to {request.report_end_date.isoformat()}

Customer interactions ({len(interactions)} of {len(request.customer_interactions)}):
"""
    for i, interaction in enumerate(interactions, 1):
        prompt += f"""
{i}. [{interaction.category}/{interaction.type}] {interaction.title}
   Customer: {interaction.customer_name}
   Date: {interaction.inquired_at.isoformat()}
   Notes: {interaction.summary[:500]}
"""
    prompt += "\nProduce a JSON report following the schema."
    return prompt


@backoff.on_exception(
    backoff.expo,
    (RateLimitError, HTTPStatusError),
    max_tries=5,
    max_time=120,
)
async def _request_summary(client: AsyncOpenAI, prompt: str) -> ReportSummaryOutput | None:
    settings = get_settings()
    config = get_config()

    response = await client.chat.completions.parse(
        model=settings.llm_model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        response_format=ReportSummaryOutput,
        temperature=config.reports.summary_temperature,
    )

    usage = response.usage
    if usage:
        logger.bind(
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
        ).debug("report_summary_usage")
    return response.choices[0].message.parsed


async def summarize_interactions(
    request: CreateReportRequest,
    client: AsyncOpenAI,
) -> ReportSummaryOutput | None:
    """
    Use the LLM to summarize a period's customer interactions.

    Args:
        request: Report request with property, period and interactions
        client: OpenAI async client

    Returns:
        Structured summary, or None if summarization fails
    """
    prompt = build_summary_prompt(request, get_config().reports.max_interactions)

    try:
        result = await _request_summary(client, prompt)
    except Exception as e:
        logger.bind(property_id=request.property_id, error=str(e)).error("report_summary_error")
        return None

    if result is None:
        logger.bind(property_id=request.property_id).warning("report_summary_no_result")
    return result


def _default_title(request: CreateReportRequest) -> str:
    return (
        f"{request.property_name or request.property_id} sales report "
        f"{request.report_start_date.isoformat()} to {request.report_end_date.isoformat()}"
    )


async def create_report(
    db: AsyncSession,
    request: CreateReportRequest,
    client_id: str,
    client: AsyncOpenAI | None = None,
) -> Report:
    """
    Create and persist a draft sales-status report.

    A failed or disabled AI summary does not prevent the report from being
    stored; it is saved without summary text for the broker to complete.

    Args:
        db: Database session
        request: Report request with property, period and interactions
        client_id: Tenant owning the report
        client: Optional OpenAI client (created from settings if omitted)

    Returns:
        The persisted report
    """
    config = get_config()
    summary: ReportSummaryOutput | None = None

    if config.reports.ai_summary_enabled and request.customer_interactions:
        if client is None:
            settings = get_settings()
            if settings.openai_api_key:
                client = AsyncOpenAI(api_key=settings.openai_api_key)
            else:
                logger.warning("openai_api_key_not_set")
        if client is not None:
            summary = await summarize_interactions(request, client)

    report = Report(
        client_id=client_id,
        property_id=request.property_id,
        batch_setting_id=request.batch_setting_id,
        title=summary.title if summary else _default_title(request),
        report_start_date=request.report_start_date,
        report_end_date=request.report_end_date,
        summary=summary.summary if summary else None,
        current_status=summary.current_status if summary else None,
        inquiries_count=len(request.customer_interactions),
        customer_interactions=[
            i.model_dump(mode="json") for i in request.customer_interactions
        ],
        is_draft=True,
    )
    db.add(report)
    await db.flush()

    logger.bind(
        report_id=report.id,
        client_id=client_id,
        property_id=request.property_id,
        period=f"{request.report_start_date}..{request.report_end_date}",
        ai_summary=summary is not None,
    ).info("report_created")
    return report
