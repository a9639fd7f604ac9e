import pytest

from app.models.domain.interview_domain import DealContext
from app.services.interview_service import InterviewOrchestrator
from app.services.report_service import ReportExtractor
from app.services.session_store import MemorySessionStore
from tests.fakes import FakeClock, FakeRedis, StubModel


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    return FakeRedis(clock)


@pytest.fixture
def deal_context():
    return DealContext(
        deal_id="deal-1",
        deal_name="Blue Ridge Bistro - Cold Brew Program",
        customer_name="Blue Ridge Bistro",
        pipeline="Foodservice",
        deal_stage="Engaging",
        channel="Foodservice",
        amount="250000",
        incumbent_supplier="Farmer Bros",
    )


@pytest.fixture
def memory_store():
    return MemorySessionStore(ttl_seconds=1800)


@pytest.fixture
def make_orchestrator(memory_store):
    def _make(model: StubModel) -> InterviewOrchestrator:
        return InterviewOrchestrator(memory_store, model)

    return _make


@pytest.fixture
def make_extractor(memory_store):
    def _make(model: StubModel) -> ReportExtractor:
        return ReportExtractor(memory_store, model)

    return _make


@pytest.fixture
def canned_report():
    return {
        "callDate": "2026-10-18",
        "callType": "in-person",
        "attendees": [
            {"name": "Dana Ortiz", "title": "Beverage Director", "company": "Blue Ridge Bistro"},
            {"name": "Sam Lee", "title": "Account Manager", "company": "WestRock Coffee"},
        ],
        "summary": "The rep met Blue Ridge Bistro to review cold brew samples. The customer asked for a quote.",
        "topicsDiscussed": ["cold brew samples", "pricing"],
        "keyInsights": ["Customer unhappy with incumbent delivery times"],
        "actionItems": [{"action": "Send quote", "owner": "Sam Lee", "dueDate": "2026-10-25"}],
        "nextSteps": [{"step": "Tasting with franchisees", "timeline": "next month"}],
        "competitorMentions": [{"competitor": "Farmer Bros", "context": "Incumbent, late deliveries"}],
        "dealStageRecommendation": {
            "currentStage": "Engaging",
            "recommendedStage": "Pitch Scheduled",
            "rationale": "Customer requested a formal quote",
        },
        "customerSentiment": "positive",
        "followUpDate": "2026-10-25",
        "pricingNotes": "Target under $9/lb",
        "volumeNotes": None,
    }
