from abc import ABC, abstractmethod

from spend_categorizer.models import CategorizationRequest, CategorizationResponse


class Classifier(ABC):
    @abstractmethod
    async def classify(self, request: CategorizationRequest) -> CategorizationResponse | None:
        """Attempt to categorize the request. ``None`` means no opinion."""
        pass
