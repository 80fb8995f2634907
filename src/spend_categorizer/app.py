from collections.abc import Callable
from datetime import datetime

from spend_categorizer.classifiers.heuristic import HeuristicClassifier
from spend_categorizer.classifiers.rules import RuleMatcher
from spend_categorizer.core import settings
from spend_categorizer.domain.insights import InsightGenerator
from spend_categorizer.domain.patterns import PatternCache
from spend_categorizer.domain.trends import TrendStrategy
from spend_categorizer.integration.memory import InMemoryRepository
from spend_categorizer.integration.repository import GuardedRepository, Repository
from spend_categorizer.logger import get_logger, setup_logging
from spend_categorizer.manager import CategorizerService
from spend_categorizer.services.analytics import AnalyticsService
from spend_categorizer.services.rules import RuleAdministration
from spend_categorizer.services.spending import SpendingAggregator

logger = get_logger(__name__)


def create_service(
    repository: Repository | None = None,
    *,
    trends: TrendStrategy | None = None,
    clock: Callable[[], datetime] = datetime.now,
    configure_logging: bool = True,
) -> AnalyticsService:
    settings.load_environment()
    if configure_logging:
        setup_logging()
        settings.log_environment()

    if repository is None:
        logger.warning("No repository supplied; using an empty in-memory repository.")
        repository = InMemoryRepository()

    guarded = GuardedRepository(repository)
    # Shared by the matcher and rule administration so updates invalidate entries
    cache = PatternCache()

    categorizer = CategorizerService(
        rules=RuleMatcher(guarded, cache),
        heuristic=HeuristicClassifier(guarded),
    )
    service = AnalyticsService(
        repository=guarded,
        categorizer=categorizer,
        aggregator=SpendingAggregator(guarded),
        insights=InsightGenerator(clock=clock),
        rules=RuleAdministration(guarded, cache),
        trends=trends,
    )
    logger.info("Analytics service initialized (%s).", type(repository).__name__)
    return service
