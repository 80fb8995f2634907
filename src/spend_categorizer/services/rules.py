"""Categorization rule administration.

Validates patterns before anything reaches the repository and keeps the
matcher's compiled-pattern cache in step with rule changes.
"""

from datetime import datetime
from uuid import UUID

from spend_categorizer.core import settings
from spend_categorizer.domain.patterns import PatternCache, validate_pattern
from spend_categorizer.errors import NotFoundError, ValidationError
from spend_categorizer.integration.repository import Repository
from spend_categorizer.logger import get_logger
from spend_categorizer.models import (
    CategorizationRule,
    CategorizationRuleResponse,
    CreateCategorizationRuleRequest,
    UpdateCategorizationRuleRequest,
)

logger = get_logger(__name__)

UNKNOWN_CATEGORY_NAME = "Unknown"


class RuleAdministration:
    def __init__(self, repository: Repository, cache: PatternCache):
        self.repository = repository
        self.cache = cache

    async def create(self, request: CreateCategorizationRuleRequest) -> CategorizationRuleResponse:
        pattern_type = validate_pattern(request.pattern, request.pattern_type)
        rule = CategorizationRule(
            category_id=request.category_id,
            pattern=request.pattern,
            pattern_type=pattern_type,
            priority=request.priority,
            is_active=True,
        )
        await self.repository.create_categorization_rule(rule)
        logger.info(
            "[RULES] Created rule %s (%s '%s', priority %s)",
            rule.id,
            pattern_type.value,
            rule.pattern,
            rule.priority,
        )
        return await self._to_response(rule)

    async def get(self, rule_id: UUID) -> CategorizationRuleResponse:
        rule = await self.repository.get_categorization_rule_by_id(rule_id)
        return await self._to_response(rule)

    async def list(self, offset: int = 0, limit: int | None = None) -> list[CategorizationRuleResponse]:
        if limit is None:
            limit = settings.rules_page_limit()
        if offset < 0:
            raise ValidationError("offset must be >= 0")
        if limit < 1:
            raise ValidationError("limit must be >= 1")

        rules = await self.repository.get_categorization_rules(offset, limit)
        return [await self._to_response(rule) for rule in rules]

    async def update(
        self, rule_id: UUID, request: UpdateCategorizationRuleRequest
    ) -> CategorizationRuleResponse:
        rule = await self.repository.get_categorization_rule_by_id(rule_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        pattern = changes.get("pattern", rule.pattern)
        if "pattern" in changes or "pattern_type" in changes:
            rule.pattern_type = validate_pattern(pattern, changes.get("pattern_type", rule.pattern_type))
            rule.pattern = pattern
        if "priority" in changes:
            rule.priority = changes["priority"]
        if "is_active" in changes:
            rule.is_active = changes["is_active"]
        rule.updated_at = datetime.now()

        await self.repository.update_categorization_rule(rule)
        self.cache.invalidate(rule.id)
        logger.info("[RULES] Updated rule %s (%s)", rule.id, ", ".join(sorted(changes)) or "no changes")
        return await self._to_response(rule)

    async def delete(self, rule_id: UUID) -> None:
        # Unknown ids raise NotFoundError rather than succeeding silently
        await self.repository.get_categorization_rule_by_id(rule_id)
        await self.repository.delete_categorization_rule(rule_id)
        self.cache.invalidate(rule_id)
        logger.info("[RULES] Deleted rule %s", rule_id)

    async def _to_response(self, rule: CategorizationRule) -> CategorizationRuleResponse:
        try:
            category_name = (await self.repository.get_category_by_id(rule.category_id)).name
        except NotFoundError:
            category_name = UNKNOWN_CATEGORY_NAME
        return CategorizationRuleResponse(
            id=rule.id,
            category_id=rule.category_id,
            category_name=category_name,
            pattern=rule.pattern,
            pattern_type=rule.pattern_type,
            priority=rule.priority,
            is_active=rule.is_active,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )
