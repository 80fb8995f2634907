from collections import Counter
from collections.abc import Sequence
from uuid import UUID

from spend_categorizer.domain.patterns import normalize_text
from spend_categorizer.errors import NotFoundError
from spend_categorizer.integration.repository import Repository
from spend_categorizer.logger import get_logger
from spend_categorizer.models import (
    CategorizationRequest,
    CategorizationResponse,
    CategorizationSource,
    CategorySuggestion,
    Transaction,
)

from .base import Classifier

logger = get_logger(__name__)

SIMILAR_TRANSACTIONS_LIMIT = 10
EMPTY_SET_SIMILARITY = 0.5


def amount_similarity(amount: float, transactions: Sequence[Transaction]) -> float:
    """How close ``amount`` is to the average amount of ``transactions``, in [0, 1]."""
    if not transactions:
        return EMPTY_SET_SIMILARITY

    average = sum(tx.amount for tx in transactions) / len(transactions)
    if average == 0:
        return 1.0 if amount == 0 else 0.0

    similarity = 1.0 - abs(amount - average) / average
    return max(0.0, min(1.0, similarity))


class HeuristicClassifier(Classifier):
    """Votes by category frequency among similar past transactions.

    There is no trained model here: the repository finds similar
    transactions and the most frequent category among them wins, weighted
    by how typical the amount is.
    """

    def __init__(self, repository: Repository, limit: int = SIMILAR_TRANSACTIONS_LIMIT):
        self.repository = repository
        self.limit = limit

    async def classify(self, request: CategorizationRequest) -> CategorizationResponse | None:
        text = normalize_text(request.description, request.merchant)
        similar = await self.repository.get_similar_transactions(text, self.limit)

        counts: Counter[UUID] = Counter(
            tx.category_id for tx in similar if tx.category_id is not None
        )
        total = sum(counts.values())
        if total == 0:
            logger.debug(f"No categorized neighbours for '{text[:50]}'")
            return None

        # most_common keeps first-encountered order among equal counts
        ranked = counts.most_common()
        best_id, best_count = ranked[0]

        frequency_confidence = best_count / total
        similarity = amount_similarity(request.amount, similar)
        confidence = (frequency_confidence + similarity) / 2

        category = await self.repository.get_category_by_id(best_id)

        alternatives = []
        for category_id, count in ranked[1:]:
            try:
                alternative = await self.repository.get_category_by_id(category_id)
            except NotFoundError:
                continue
            alternatives.append(CategorySuggestion(
                category_id=alternative.id,
                category_name=alternative.name,
                confidence=count / total,
                reason=f"{count} of {total} similar transactions",
            ))

        logger.debug(
            f"Heuristic picked '{category.name}' ({best_count}/{total}, "
            f"amount similarity {similarity:.2f})"
        )
        return CategorizationResponse(
            category_id=category.id,
            category_name=category.name,
            confidence=confidence,
            categorization_source=CategorizationSource.ML,
            alternative_categories=alternatives,
        )
