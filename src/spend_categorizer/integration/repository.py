from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Protocol
from uuid import UUID

from spend_categorizer.errors import AnalyticsError, RepositoryError
from spend_categorizer.logger import get_logger
from spend_categorizer.models import CategorizationRule, Category, Transaction

logger = get_logger(__name__)


class Repository(Protocol):
    """Storage collaborator. Every call is a coroutine and a cancellation point."""

    async def get_active_categorization_rules(self) -> list[CategorizationRule]: ...

    async def get_category_by_id(self, category_id: UUID) -> Category: ...

    async def get_similar_transactions(self, text: str, limit: int) -> list[Transaction]: ...

    async def get_transactions_by_period(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[Transaction]: ...

    async def create_categorization_rule(self, rule: CategorizationRule) -> None: ...

    async def update_categorization_rule(self, rule: CategorizationRule) -> None: ...

    async def delete_categorization_rule(self, rule_id: UUID) -> None: ...

    async def get_categorization_rule_by_id(self, rule_id: UUID) -> CategorizationRule: ...

    async def get_categorization_rules(self, offset: int, limit: int) -> list[CategorizationRule]: ...


@contextmanager
def repository_call(operation: str) -> Iterator[None]:
    """Re-raise backend failures as ``RepositoryError``; domain errors pass through."""
    try:
        yield
    except AnalyticsError:
        raise
    except Exception as exc:
        logger.error("[REPO] %s failed: %s", operation, exc)
        raise RepositoryError(operation, exc) from exc


class GuardedRepository:
    """Wraps a ``Repository`` so every backend failure names its operation."""

    def __init__(self, inner: Repository):
        self.inner = inner

    async def get_active_categorization_rules(self) -> list[CategorizationRule]:
        with repository_call("get_active_categorization_rules"):
            return await self.inner.get_active_categorization_rules()

    async def get_category_by_id(self, category_id: UUID) -> Category:
        with repository_call("get_category_by_id"):
            return await self.inner.get_category_by_id(category_id)

    async def get_similar_transactions(self, text: str, limit: int) -> list[Transaction]:
        with repository_call("get_similar_transactions"):
            return await self.inner.get_similar_transactions(text, limit)

    async def get_transactions_by_period(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[Transaction]:
        with repository_call("get_transactions_by_period"):
            return await self.inner.get_transactions_by_period(user_id, start, end)

    async def create_categorization_rule(self, rule: CategorizationRule) -> None:
        with repository_call("create_categorization_rule"):
            await self.inner.create_categorization_rule(rule)

    async def update_categorization_rule(self, rule: CategorizationRule) -> None:
        with repository_call("update_categorization_rule"):
            await self.inner.update_categorization_rule(rule)

    async def delete_categorization_rule(self, rule_id: UUID) -> None:
        with repository_call("delete_categorization_rule"):
            await self.inner.delete_categorization_rule(rule_id)

    async def get_categorization_rule_by_id(self, rule_id: UUID) -> CategorizationRule:
        with repository_call("get_categorization_rule_by_id"):
            return await self.inner.get_categorization_rule_by_id(rule_id)

    async def get_categorization_rules(self, offset: int, limit: int) -> list[CategorizationRule]:
        with repository_call("get_categorization_rules"):
            return await self.inner.get_categorization_rules(offset, limit)
