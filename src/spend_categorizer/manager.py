from spend_categorizer.classifiers.heuristic import HeuristicClassifier
from spend_categorizer.classifiers.rules import RuleMatcher
from spend_categorizer.logger import get_logger
from spend_categorizer.models import (
    CategorizationRequest,
    CategorizationResponse,
    CategorizationSource,
)

logger = get_logger(__name__)

RULE_CONFIDENCE_THRESHOLD = 0.8
UNCATEGORIZED_NAME = "Uncategorized"


def uncategorized_response() -> CategorizationResponse:
    return CategorizationResponse(
        category_id=None,
        category_name=UNCATEGORIZED_NAME,
        confidence=0.0,
        categorization_source=CategorizationSource.MANUAL,
    )


class CategorizerService:
    """Rule matching first, frequency heuristic second, "Uncategorized" last."""

    def __init__(self, rules: RuleMatcher, heuristic: HeuristicClassifier):
        self.rules = rules
        self.heuristic = heuristic

    async def categorize(self, request: CategorizationRequest) -> CategorizationResponse:
        short = request.description[:50]

        rule_match = await self.rules.classify(request)
        if rule_match and rule_match.confidence > RULE_CONFIDENCE_THRESHOLD:
            logger.debug(
                f"RuleMatcher returned: '{rule_match.category_name}' "
                f"(confidence: {rule_match.confidence:.2f}) for '{short}'"
            )
            return rule_match
        if rule_match:
            # Weak rule matches are dropped in favour of the heuristic
            logger.debug(
                f"RuleMatcher match '{rule_match.category_name}' too weak "
                f"({rule_match.confidence:.2f}) for '{short}'"
            )

        heuristic_match = await self.heuristic.classify(request)
        if heuristic_match:
            logger.debug(
                f"HeuristicClassifier returned: '{heuristic_match.category_name}' "
                f"(confidence: {heuristic_match.confidence:.2f}) for '{short}'"
            )
            return heuristic_match

        logger.debug(f"No classifier matched for: '{short}'")
        return uncategorized_response()
