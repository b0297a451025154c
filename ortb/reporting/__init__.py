"""
Compliance Scoring & Reporting

Scores validation results and turns them into validation, compliance,
batch analytics and trend reports.
"""

from ortb.reporting.engine import ReportingEngine
from ortb.reporting.export import (
    batch_results_to_csv,
    format_batch_human,
    format_result_human,
    to_json,
)
from ortb.reporting.scoring import (
    calculate_compliance_score,
    categorize_validation_issues,
    score_issues,
)
from ortb.reporting.trends import HorizonPolicy, ProjectionPolicy

__all__ = [
    "ReportingEngine",
    "calculate_compliance_score",
    "categorize_validation_issues",
    "score_issues",
    "batch_results_to_csv",
    "format_batch_human",
    "format_result_human",
    "to_json",
    "HorizonPolicy",
    "ProjectionPolicy",
]
