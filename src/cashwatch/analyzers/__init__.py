"""
CashWatch analyzers — pure computation stages of the forecasting pipeline.

Normalizer → Aggregator → Balance Builder → Estimator → Projector → Classifier.
None of these modules perform I/O.
"""

from cashwatch.analyzers.aggregator import MonthBucket, aggregate, merge_buckets
from cashwatch.analyzers.balances import BalancePoint, BalanceSeries, build_balances, opening_balance
from cashwatch.analyzers.cashflow import CashFlowForecast, CashFlowForecaster
from cashwatch.analyzers.estimator import AverageModel, estimate
from cashwatch.analyzers.normalizer import NormalizationReport, normalize, normalize_all
from cashwatch.analyzers.projector import (
    DailyProjection,
    DailyRow,
    ProjectionResult,
    ProjectionRow,
    project,
    project_daily,
)
from cashwatch.analyzers.risk import RiskAssessment, RiskLevel, RiskReason, classify
from cashwatch.analyzers.scenarios import ScenarioBook

__all__ = [
    "AverageModel",
    "BalancePoint",
    "BalanceSeries",
    "CashFlowForecast",
    "CashFlowForecaster",
    "DailyProjection",
    "DailyRow",
    "MonthBucket",
    "NormalizationReport",
    "ProjectionResult",
    "ProjectionRow",
    "RiskAssessment",
    "RiskLevel",
    "RiskReason",
    "ScenarioBook",
    "aggregate",
    "build_balances",
    "classify",
    "estimate",
    "merge_buckets",
    "normalize",
    "normalize_all",
    "opening_balance",
    "project",
    "project_daily",
]
