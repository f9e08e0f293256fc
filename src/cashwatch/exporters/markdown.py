"""
Markdown forecast exporter.

Money is rounded to whole currency units here and nowhere earlier.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from cashwatch.analyzers.cashflow import CashFlowForecast
from cashwatch.analyzers.periods import month_label
from cashwatch.analyzers.risk import RiskLevel


def money(value: Decimal, currency: str = "") -> str:
    """Round to the nearest whole unit and group thousands."""
    rounded = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,}"
    return f"{text} {currency}".strip()


def render_markdown(forecast: CashFlowForecast, *, title: str = "Cash Flow Forecast", currency: str = "") -> str:
    """Render a CashFlowForecast as Markdown."""
    projection = forecast.projection
    model = forecast.model
    if projection is None or model is None:
        raise ValueError("Forecast has no projection to render")

    level_emoji = {
        RiskLevel.SAFE: "🟢",
        RiskLevel.WARN: "🟡",
        RiskLevel.DANGER: "🔴",
    }

    lines: list[str] = []
    lines.append(f"# {title}")
    lines.append("")
    lines.append(f"*As of: {forecast.as_of.isoformat()}*")
    lines.append("")

    # Summary
    level = projection.level
    emoji = level_emoji.get(level, "") if level else ""
    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| **Risk** | {emoji} {level.value.upper() if level else '?'} |")
    lines.append(f"| **Current balance** | {money(projection.current_balance, currency)} |")
    lines.append(f"| **Avg income ({model.months_used} mo)** | {money(model.avg_income, currency)} |")
    lines.append(f"| **Avg expense ({model.months_used} mo)** | {money(model.avg_expense, currency)} |")
    lines.append(f"| **Assumed monthly net** | {money(projection.assumed_net, currency)} |")
    shortfall = month_label(projection.shortfall_month) if projection.shortfall_month else "none"
    lines.append(f"| **Shortfall month** | {shortfall} |")
    lines.append("")
    lines.append(projection.message)
    lines.append("")

    # History
    if forecast.buckets:
        lines.append("## History")
        lines.append("")
        lines.append("| Month | Income | Expense | Net | Balance |")
        lines.append("|-------|-------:|--------:|----:|--------:|")
        for bucket, point in zip(forecast.buckets, forecast.balances.points):
            lines.append(
                f"| {month_label(bucket.month)} | {money(bucket.income)} | {money(bucket.expense)} "
                f"| {money(bucket.net)} | {money(point.balance)} |"
            )
        lines.append("")

    # Projection
    lines.append("## Projection")
    lines.append("")
    lines.append("| # | Month | Assumed net | Projected balance |")
    lines.append("|---|-------|------------:|------------------:|")
    for row in projection.rows:
        marker = " ⚠️" if row.index == projection.shortfall_index else ""
        lines.append(
            f"| {row.index} | {month_label(row.month)} | {money(row.assumed_net)} "
            f"| {money(row.projected_balance)}{marker} |"
        )
    lines.append("")

    if forecast.ledger.rejected:
        lines.append("## Skipped records")
        lines.append("")
        for index, error in forecast.ledger.rejected:
            lines.append(f"- Record {index}: {error.field}: {error.reason}")
        lines.append("")

    return "\n".join(lines)
