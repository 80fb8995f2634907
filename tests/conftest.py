from collections.abc import Callable
from datetime import datetime
from uuid import UUID, uuid4

import pytest

from spend_categorizer.app import create_service
from spend_categorizer.integration.memory import InMemoryRepository
from spend_categorizer.models import CategorizationRule, Category, PatternType, Transaction
from spend_categorizer.services.analytics import AnalyticsService

FIXED_NOW = datetime(2024, 3, 31, 12, 0, 0)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def categories() -> dict[str, Category]:
    return {
        name: Category(id=uuid4(), name=name)
        for name in ("Groceries", "Coffee", "Transport", "Food", "Salary")
    }


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_rule() -> Callable[..., CategorizationRule]:
    def _make(
        category: Category,
        pattern: str,
        pattern_type: PatternType = PatternType.EXACT,
        priority: int = 0,
        is_active: bool = True,
    ) -> CategorizationRule:
        return CategorizationRule(
            category_id=category.id,
            pattern=pattern,
            pattern_type=pattern_type,
            priority=priority,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def make_tx(user_id: UUID) -> Callable[..., Transaction]:
    def _make(
        amount: float,
        category: Category | None = None,
        description: str = "",
        merchant: str = "",
        when: datetime = datetime(2024, 3, 15),
    ) -> Transaction:
        return Transaction(
            user_id=user_id,
            amount=amount,
            category_id=category.id if category else None,
            description=description,
            merchant=merchant,
            transaction_date=when,
        )
    return _make


@pytest.fixture
def repository(categories: dict[str, Category]) -> InMemoryRepository:
    return InMemoryRepository(categories=categories.values(), similarity_threshold=60.0)


@pytest.fixture
def service(repository: InMemoryRepository) -> AnalyticsService:
    return create_service(repository, clock=lambda: FIXED_NOW, configure_logging=False)
