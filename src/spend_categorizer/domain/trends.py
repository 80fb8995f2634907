from abc import ABC, abstractmethod
from collections.abc import Sequence

from spend_categorizer.models import GroupBy, SpendingTrend, Transaction


class TrendStrategy(ABC):
    @abstractmethod
    def generate(
        self, transactions: Sequence[Transaction], group_by: GroupBy | None
    ) -> list[SpendingTrend]:
        """Build the trend series for a period's transactions."""
        pass


class PlaceholderTrendStrategy(TrendStrategy):
    """Returns a fixed three-week series regardless of input.

    Stand-in until a real trend algorithm is agreed on. Inject another
    ``TrendStrategy`` into the analytics service to replace it.
    """

    SERIES = (
        ("Week 1", 500.0, 0.0, "stable"),
        ("Week 2", 550.0, 10.0, "increasing"),
        ("Week 3", 480.0, -12.7, "decreasing"),
    )

    def generate(
        self, transactions: Sequence[Transaction], group_by: GroupBy | None
    ) -> list[SpendingTrend]:
        return [
            SpendingTrend(period=period, amount=amount, change=change, trend=trend)
            for period, amount, change, trend in self.SERIES
        ]
