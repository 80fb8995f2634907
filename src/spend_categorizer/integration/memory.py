import asyncio
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from rapidfuzz import fuzz, process

from spend_categorizer.core import settings
from spend_categorizer.domain.patterns import normalize_text
from spend_categorizer.errors import NotFoundError
from spend_categorizer.logger import get_logger
from spend_categorizer.models import CategorizationRule, Category, Transaction

logger = get_logger(__name__)


class InMemoryRepository:
    """Process-local implementation of the repository contract.

    Similar transactions are found by fuzzy-matching the normalized
    description/merchant text of stored transactions against the query.
    The scan runs synchronously over every stored transaction and blocks
    the event loop while it does, so it suits tests and small histories.
    """

    def __init__(
        self,
        categories: Iterable[Category] = (),
        rules: Iterable[CategorizationRule] = (),
        transactions: Iterable[Transaction] = (),
        similarity_threshold: float | None = None,
    ):
        self.categories: dict[UUID, Category] = {c.id: c for c in categories}
        self.rules: dict[UUID, CategorizationRule] = {r.id: r.model_copy() for r in rules}
        self.transactions: list[Transaction] = list(transactions)
        if similarity_threshold is None:
            similarity_threshold = settings.similarity_threshold()
        self.similarity_threshold = similarity_threshold
        self._lock = asyncio.Lock()

    def add_category(self, category: Category) -> None:
        self.categories[category.id] = category

    def add_transactions(self, transactions: Iterable[Transaction]) -> None:
        self.transactions.extend(transactions)

    async def get_active_categorization_rules(self) -> list[CategorizationRule]:
        return [rule.model_copy() for rule in self.rules.values() if rule.is_active]

    async def get_category_by_id(self, category_id: UUID) -> Category:
        category = self.categories.get(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def get_similar_transactions(self, text: str, limit: int) -> list[Transaction]:
        if not text or limit <= 0 or not self.transactions:
            return []

        choices = {
            idx: normalize_text(tx.description, tx.merchant)
            for idx, tx in enumerate(self.transactions)
        }
        matches = process.extract(
            text.lower(),
            choices,
            scorer=fuzz.token_set_ratio,
            score_cutoff=self.similarity_threshold,
            limit=None,
        )
        # Best score first, most recent first among equal scores
        matches.sort(
            key=lambda match: (match[1], self.transactions[match[2]].transaction_date),
            reverse=True,
        )
        similar = [self.transactions[idx] for _, _, idx in matches[:limit]]
        logger.debug(f"Found {len(similar)} similar transactions for '{text[:50]}'")
        return similar

    async def get_transactions_by_period(
        self, user_id: UUID, start: datetime, end: datetime
    ) -> list[Transaction]:
        found = [
            tx for tx in self.transactions
            if tx.user_id == user_id and start <= tx.transaction_date < end
        ]
        found.sort(key=lambda tx: tx.transaction_date, reverse=True)
        return found

    async def create_categorization_rule(self, rule: CategorizationRule) -> None:
        async with self._lock:
            now = datetime.now()
            rule.created_at = now
            rule.updated_at = now
            self.rules[rule.id] = rule.model_copy()

    async def update_categorization_rule(self, rule: CategorizationRule) -> None:
        async with self._lock:
            if rule.id not in self.rules:
                raise NotFoundError("Categorization rule", rule.id)
            rule.updated_at = datetime.now()
            self.rules[rule.id] = rule.model_copy()

    async def delete_categorization_rule(self, rule_id: UUID) -> None:
        async with self._lock:
            if self.rules.pop(rule_id, None) is None:
                raise NotFoundError("Categorization rule", rule_id)

    async def get_categorization_rule_by_id(self, rule_id: UUID) -> CategorizationRule:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise NotFoundError("Categorization rule", rule_id)
        return rule.model_copy()

    async def get_categorization_rules(self, offset: int, limit: int) -> list[CategorizationRule]:
        ordered = sorted(
            self.rules.values(),
            key=lambda rule: (rule.priority, rule.created_at),
            reverse=True,
        )
        return [rule.model_copy() for rule in ordered[offset:offset + limit]]
