from datetime import datetime
from time import perf_counter
from uuid import UUID

from spend_categorizer.domain.insights import InsightGenerator
from spend_categorizer.domain.trends import PlaceholderTrendStrategy, TrendStrategy
from spend_categorizer.errors import ValidationError
from spend_categorizer.integration.repository import Repository
from spend_categorizer.logger import get_logger
from spend_categorizer.manager import CategorizerService
from spend_categorizer.models import (
    CategorizationRequest,
    CategorizationResponse,
    CategorizationRuleResponse,
    CreateCategorizationRuleRequest,
    GroupBy,
    SpendingAnalysisResponse,
    SpendingInsight,
    SpendingSummary,
    UpdateCategorizationRuleRequest,
)
from spend_categorizer.services.rules import RuleAdministration
from spend_categorizer.services.spending import SpendingAggregator

logger = get_logger(__name__)


def _check_period(period_start: datetime, period_end: datetime) -> None:
    if period_end <= period_start:
        raise ValidationError("period_end must be after period_start")


class AnalyticsService:
    """Operations exposed to the API layer. Holds no per-request state."""

    def __init__(
        self,
        repository: Repository,
        categorizer: CategorizerService,
        aggregator: SpendingAggregator,
        insights: InsightGenerator,
        rules: RuleAdministration,
        trends: TrendStrategy | None = None,
    ):
        self.repository = repository
        self.categorizer = categorizer
        self.aggregator = aggregator
        self.insights = insights
        self.rules = rules
        self.trends = trends or PlaceholderTrendStrategy()

    async def categorize_transaction(self, request: CategorizationRequest) -> CategorizationResponse:
        start = perf_counter()
        response = await self.categorizer.categorize(request)
        logger.info(
            "[CATEGORIZE] '%s' -> '%s' (source=%s, confidence=%.2f) in %.1f ms",
            request.description[:50],
            response.category_name,
            response.categorization_source.value,
            response.confidence,
            (perf_counter() - start) * 1000,
        )
        return response

    async def analyze_spending(
        self,
        user_id: UUID,
        period_start: datetime,
        period_end: datetime,
        group_by: GroupBy | str | None = None,
    ) -> SpendingAnalysisResponse:
        group = self._parse_group_by(group_by)
        summary = await self._summarize(user_id, period_start, period_end)

        trends = self.trends.generate(summary.transactions, group)
        insights = self.insights.generate(
            summary.transactions,
            summary.category_breakdown,
            summary.total_spent,
            summary.total_income,
        )

        logger.info(
            "[ANALYZE] user=%s %s..%s spent=%.2f income=%.2f categories=%d insights=%d",
            user_id,
            period_start.date(),
            period_end.date(),
            summary.total_spent,
            summary.total_income,
            len(summary.category_breakdown),
            len(insights),
        )
        return SpendingAnalysisResponse(
            period_start=period_start,
            period_end=period_end,
            total_spent=summary.total_spent,
            total_income=summary.total_income,
            net_amount=summary.net_amount,
            category_breakdown=summary.category_breakdown,
            top_categories=summary.top_categories,
            spending_trends=trends,
            insights=insights,
        )

    async def get_spending_insights(
        self, user_id: UUID, period_start: datetime, period_end: datetime
    ) -> list[SpendingInsight]:
        summary = await self._summarize(user_id, period_start, period_end)
        insights = self.insights.generate(
            summary.transactions,
            summary.category_breakdown,
            summary.total_spent,
            summary.total_income,
        )
        logger.info("[INSIGHTS] user=%s insights=%d", user_id, len(insights))
        return insights

    async def create_categorization_rule(
        self, request: CreateCategorizationRuleRequest
    ) -> CategorizationRuleResponse:
        return await self.rules.create(request)

    async def get_categorization_rule(self, rule_id: UUID) -> CategorizationRuleResponse:
        return await self.rules.get(rule_id)

    async def list_categorization_rules(
        self, offset: int = 0, limit: int | None = None
    ) -> list[CategorizationRuleResponse]:
        return await self.rules.list(offset, limit)

    async def update_categorization_rule(
        self, rule_id: UUID, request: UpdateCategorizationRuleRequest
    ) -> CategorizationRuleResponse:
        return await self.rules.update(rule_id, request)

    async def delete_categorization_rule(self, rule_id: UUID) -> None:
        await self.rules.delete(rule_id)

    async def _summarize(
        self, user_id: UUID, period_start: datetime, period_end: datetime
    ) -> SpendingSummary:
        _check_period(period_start, period_end)
        transactions = await self.repository.get_transactions_by_period(user_id, period_start, period_end)
        return await self.aggregator.aggregate(transactions, period_start, period_end)

    @staticmethod
    def _parse_group_by(group_by: GroupBy | str | None) -> GroupBy | None:
        if group_by is None or isinstance(group_by, GroupBy):
            return group_by
        if not group_by:
            return None
        try:
            return GroupBy(group_by)
        except ValueError:
            raise ValidationError(f"invalid group_by: {group_by}") from None
