from brokerage.pipeline.schedule import (
    BatchExecutionTarget,
    ReportPeriod,
    compute_initial_execution,
    compute_next_execution,
    compute_report_period,
    select_due,
    select_overdue,
)

__all__ = [
    "BatchExecutionTarget",
    "ReportPeriod",
    "compute_initial_execution",
    "compute_next_execution",
    "compute_report_period",
    "select_due",
    "select_overdue",
]
