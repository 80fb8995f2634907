"""Threshold rules that turn aggregated spending into insights.

Each rule is independent; any subset may fire for a given period.
"""

from collections.abc import Callable, Sequence
from datetime import datetime

from spend_categorizer.models import (
    CategorySpending,
    InsightType,
    Severity,
    SpendingInsight,
    Transaction,
)

HIGH_CATEGORY_PERCENTAGE = 30.0
HIGH_SPENDING_RATIO = 0.9
HIGH_TRANSACTION_COUNT = 50


def _highest_category(breakdown: Sequence[CategorySpending]) -> CategorySpending | None:
    highest: CategorySpending | None = None
    for spending in breakdown:
        if spending.amount > (highest.amount if highest else 0.0):
            highest = spending
    return highest


class InsightGenerator:
    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def generate(
        self,
        transactions: Sequence[Transaction],
        category_breakdown: Sequence[CategorySpending],
        total_spent: float,
        total_income: float,
    ) -> list[SpendingInsight]:
        insights: list[SpendingInsight] = []

        highest = _highest_category(category_breakdown)
        if highest is not None and highest.percentage > HIGH_CATEGORY_PERCENTAGE:
            insights.append(SpendingInsight(
                type=InsightType.PATTERN,
                title="High Spending Category",
                description=(
                    f"You're spending {highest.percentage:.1f}% of your budget on {highest.category_name}"
                ),
                severity=Severity.MEDIUM,
                data={
                    "category_id": str(highest.category_id),
                    "category_name": highest.category_name,
                    "percentage": highest.percentage,
                    "amount": highest.amount,
                },
                created_at=self.clock(),
            ))

        if total_income > 0:
            ratio = total_spent / total_income
            if ratio > HIGH_SPENDING_RATIO:
                insights.append(SpendingInsight(
                    type=InsightType.TREND,
                    title="High Spending Ratio",
                    description=f"You're spending {ratio * 100:.1f}% of your income",
                    severity=Severity.HIGH,
                    data={
                        "spending_ratio": ratio,
                        "total_spent": total_spent,
                        "total_income": total_income,
                    },
                    created_at=self.clock(),
                ))

        if len(transactions) > HIGH_TRANSACTION_COUNT:
            insights.append(SpendingInsight(
                type=InsightType.PATTERN,
                title="High Transaction Frequency",
                description=f"You have {len(transactions)} transactions in this period",
                severity=Severity.LOW,
                data={"transaction_count": len(transactions)},
                created_at=self.clock(),
            ))

        return insights
