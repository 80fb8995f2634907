from collections.abc import Sequence

from spend_categorizer.domain.patterns import PatternCache, normalize_text
from spend_categorizer.errors import NotFoundError
from spend_categorizer.integration.repository import Repository
from spend_categorizer.logger import get_logger
from spend_categorizer.models import (
    CategorizationRequest,
    CategorizationResponse,
    CategorizationRule,
    CategorizationSource,
    PatternType,
)

from .base import Classifier

logger = get_logger(__name__)

BASE_CONFIDENCE = {
    PatternType.EXACT: 0.9,
    PatternType.KEYWORD: 0.85,
    PatternType.REGEX: 0.8,
}
AMOUNT_BONUS = 0.05
AMOUNT_BONUS_CEILING = 1000.0


def rule_confidence(pattern_type: PatternType, amount: float) -> float:
    confidence = BASE_CONFIDENCE.get(pattern_type, 0.8)
    if 0 < amount < AMOUNT_BONUS_CEILING:
        confidence += AMOUNT_BONUS
    return min(confidence, 1.0)


class RuleMatcher(Classifier):
    def __init__(self, repository: Repository, cache: PatternCache | None = None):
        self.repository = repository
        self.cache = cache if cache is not None else PatternCache()

    async def classify(self, request: CategorizationRequest) -> CategorizationResponse | None:
        rules = await self.repository.get_active_categorization_rules()
        return await self.match(rules, request)

    async def match(
        self, rules: Sequence[CategorizationRule], request: CategorizationRequest
    ) -> CategorizationResponse | None:
        text = normalize_text(request.description, request.merchant)
        # sorted() is stable, so equal priorities keep their encounter order
        ordered = sorted(
            (rule for rule in rules if rule.is_active),
            key=lambda rule: rule.priority,
            reverse=True,
        )

        for rule in ordered:
            matcher = self.cache.get(rule)
            if matcher is None:
                logger.debug(f"Skipping rule {rule.id}: invalid regex '{rule.pattern}'")
                continue
            if not matcher.matches(text):
                continue

            try:
                category = await self.repository.get_category_by_id(rule.category_id)
            except NotFoundError:
                logger.warning(
                    "Rule %s matched but category %s no longer exists; skipping.",
                    rule.id,
                    rule.category_id,
                )
                continue

            return CategorizationResponse(
                category_id=category.id,
                category_name=category.name,
                confidence=rule_confidence(rule.pattern_type, request.amount),
                categorization_source=CategorizationSource.RULE,
                matched_pattern=rule.pattern,
            )

        return None
