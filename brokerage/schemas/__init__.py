from brokerage.schemas.batch import (
    BatchReportSettingCreate,
    BatchReportSettingResponse,
    BatchReportSettingUpdate,
)
from brokerage.schemas.report import CreateReportRequest, CustomerInteraction, ReportSummaryOutput

__all__ = [
    "BatchReportSettingCreate",
    "BatchReportSettingResponse",
    "BatchReportSettingUpdate",
    "CreateReportRequest",
    "CustomerInteraction",
    "ReportSummaryOutput",
]
