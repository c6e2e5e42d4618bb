from brokerage.models.base import Base
from brokerage.models.batch_report_setting import AutoCreatePeriod, BatchReportSetting, BatchStatus
from brokerage.models.inquiry import Inquiry
from brokerage.models.job_run import JobRun
from brokerage.models.property import Property
from brokerage.models.report import Report

__all__ = [
    "Base",
    "AutoCreatePeriod",
    "BatchReportSetting",
    "BatchStatus",
    "Inquiry",
    "JobRun",
    "Property",
    "Report",
]
