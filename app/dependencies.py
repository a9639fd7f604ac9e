# app/dependencies.py
"""
Service wiring for the API.
Services are built once in the application lifespan and handed to routes via
FastAPI dependencies, so tests can swap them with app.dependency_overrides.
"""

from app.config import Settings, settings
from app.infrastructure.observability.logging import get_logger
from app.services.crm.deal_service import DealService
from app.services.interview_service import InterviewOrchestrator
from app.services.model_client import LanguageModelClient
from app.services.report_service import ReportExtractor
from app.services.session_store import SessionStore, create_session_store

logger = get_logger(__name__)


class ServiceContainer:
    """Holds the long-lived services and their startup/shutdown order."""

    def __init__(self):
        self.store: SessionStore | None = None
        self.model: LanguageModelClient | None = None
        self.orchestrator: InterviewOrchestrator | None = None
        self.reports: ReportExtractor | None = None
        self.deals: DealService | None = None
        self._initialized = False

    async def initialize(self, config: Settings = settings) -> None:
        if self._initialized:
            return

        self.store = create_session_store(config)
        await self.store.start()

        self.model = LanguageModelClient(config=config)
        self.orchestrator = InterviewOrchestrator(self.store, self.model)
        self.reports = ReportExtractor(self.store, self.model)
        self.deals = DealService(config)

        self._initialized = True
        logger.info(
            "Services initialized",
            session_store=self.store.backend,
            hubspot_enabled=self.deals.enabled,
        )

    async def close(self) -> None:
        """Close in reverse order; one failing service does not block the others."""
        errors = []
        for name, service in (("deals", self.deals), ("model", self.model), ("session_store", self.store)):
            if service is None:
                continue
            try:
                await service.close()
            except Exception as e:
                logger.error("Error closing service", service=name, error=str(e))
                errors.append(f"{name}: {e}")

        self._initialized = False
        if errors:
            logger.warning("Some services had shutdown errors", errors=errors)


services = ServiceContainer()


def _require(service, name: str):
    if service is None:
        raise RuntimeError(f"{name} not initialized")
    return service


def get_orchestrator() -> InterviewOrchestrator:
    return _require(services.orchestrator, "Interview orchestrator")


def get_report_extractor() -> ReportExtractor:
    return _require(services.reports, "Report extractor")


def get_deal_service() -> DealService:
    return _require(services.deals, "Deal service")
