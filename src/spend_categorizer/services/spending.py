from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from spend_categorizer.errors import NotFoundError
from spend_categorizer.integration.repository import Repository
from spend_categorizer.logger import get_logger
from spend_categorizer.models import CategorySpending, SpendingSummary, Transaction

logger = get_logger(__name__)

TOP_CATEGORIES_LIMIT = 5
UNKNOWN_CATEGORY_NAME = "Uncategorized"


def top_categories(
    breakdown: Iterable[CategorySpending], limit: int = TOP_CATEGORIES_LIMIT
) -> list[CategorySpending]:
    return sorted(breakdown, key=lambda spending: spending.amount, reverse=True)[:limit]


class SpendingAggregator:
    """Reduces a period's transactions to totals and a per-category breakdown.

    Transactions without a category count towards the totals but are left
    out of the breakdown, so the percentages need not add up to 100. Income
    never enters the breakdown, even when categorized.
    """

    def __init__(self, repository: Repository):
        self.repository = repository

    async def aggregate(
        self,
        transactions: Iterable[Transaction],
        period_start: datetime,
        period_end: datetime,
    ) -> SpendingSummary:
        total_spent = 0.0
        total_income = 0.0
        in_period: list[Transaction] = []
        buckets: dict[UUID, CategorySpending] = {}

        for tx in transactions:
            if not period_start <= tx.transaction_date < period_end:
                continue
            in_period.append(tx)

            if tx.amount < 0:
                total_spent += abs(tx.amount)
            else:
                total_income += tx.amount

            # The breakdown is spend only: categorized outflows
            if tx.category_id is None or tx.amount >= 0:
                continue
            spending = buckets.get(tx.category_id)
            if spending is None:
                spending = CategorySpending(
                    category_id=tx.category_id,
                    category_name=await self._category_name(tx.category_id),
                )
                buckets[tx.category_id] = spending
            spending.amount += abs(tx.amount)
            spending.transaction_count += 1

        breakdown = list(buckets.values())
        for spending in breakdown:
            spending.percentage = spending.amount / total_spent * 100 if total_spent > 0 else 0.0

        return SpendingSummary(
            total_spent=total_spent,
            total_income=total_income,
            category_breakdown=breakdown,
            top_categories=[s.model_copy() for s in top_categories(breakdown)],
            transactions=in_period,
        )

    async def _category_name(self, category_id: UUID) -> str:
        try:
            category = await self.repository.get_category_by_id(category_id)
        except NotFoundError:
            logger.warning("Category %s not found; reporting it as '%s'.", category_id, UNKNOWN_CATEGORY_NAME)
            return UNKNOWN_CATEGORY_NAME
        return category.name
