"""
Tests for the rule-based advisor and the HTTP advisor's fallback behaviour.

RemoteAdvisor is exercised through httpx.MockTransport; no network is used.
"""
import json

import httpx
import pytest

from complaint_tracker.services.advisor import (
    STATIC_RECOMMENDATIONS,
    RemoteAdvisor,
    RuleBasedAdvisor,
    department_for,
)

WORKERS = [
    {"id": 1, "name": "Gina General", "department": "General Administration"},
    {"id": 2, "name": "Lena Librarian", "department": "Library Services"},
]


@pytest.fixture
def rules():
    return RuleBasedAdvisor()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "description, category, urgency",
    [
        ("The hostel water supply is broken, urgent!", "Hostel & Accommodation", "critical"),
        ("Mess food was cold again", "Food & Mess", "medium"),
        ("Library closes too early, minor issue", "Library", "low"),
        ("Bus never arrives on time, please fix asap", "Transportation", "high"),
        ("Something odd happened near the gate", "General", "medium"),
    ],
)
async def test_classify_by_keywords(rules, description, category, urgency):
    result = await rules.classify(description)
    assert result.category == category
    assert result.urgency == urgency
    assert result.confidence == 0.75


@pytest.mark.asyncio
async def test_classify_first_category_in_table_wins(rules):
    # "hostel" is listed before "food"
    result = await rules.classify("Food in the hostel canteen")
    assert result.category == "Hostel & Accommodation"


@pytest.mark.asyncio
async def test_classify_reads_title_too(rules):
    result = await rules.classify("It has been like this for weeks", {"title": "Exam grade missing"})
    assert result.category == "Academic"


@pytest.mark.asyncio
async def test_harassment_is_high_urgency(rules):
    result = await rules.classify("Reporting harassment by a senior")
    assert result.category == "Harassment & Discrimination"
    assert result.urgency == "high"


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_route_prefers_matching_department(rules):
    routing = await rules.route({"category": "Library"}, WORKERS)
    assert routing.worker_id == 2
    assert routing.department == "Library Services"
    assert routing.reason == "Routed to Library Services based on complaint category: Library"


@pytest.mark.asyncio
async def test_route_falls_back_to_first_worker(rules):
    routing = await rules.route({"category": "Transportation"}, WORKERS)
    assert routing.worker_id == 1
    assert routing.department == "Transport Department"


@pytest.mark.asyncio
async def test_route_without_workers_only_names_department(rules):
    routing = await rules.route({"category": "Library"}, [])
    assert routing.worker_id is None
    assert routing.department == "Library Services"


def test_unknown_category_maps_to_general_administration():
    assert department_for("Parking") == "General Administration"
    assert department_for(None) == "General Administration"


# ---------------------------------------------------------------------------
# Summaries and analytics
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_summarize_counts_history(rules):
    complaint = {"title": "Leaky tap", "category": "Hostel & Accommodation", "urgency": "low", "status": "in_progress"}
    history = [{"action_type": "created"}, {"action_type": "status_change"}]
    summary = await rules.summarize(complaint, history)
    assert summary == (
        'Complaint "Leaky tap" in category Hostel & Accommodation with low urgency. '
        "Has 2 history entries including 1 status changes. "
        "Currently being worked on."
    )


@pytest.mark.asyncio
async def test_summarize_without_history(rules):
    complaint = {"title": "Noise", "category": "General", "urgency": "medium", "status": "open"}
    summary = await rules.summarize(complaint, [])
    assert "history entries" not in summary
    assert summary.endswith("Awaiting assignment or action.")


@pytest.mark.asyncio
async def test_analyze(rules):
    complaints = [
        {"status": "resolved", "category": "Library"},
        {"status": "open", "category": "Library"},
        {"status": "closed", "category": "Academic"},
        {"status": "resolved", "category": "Academic"},
    ]
    analysis = await rules.analyze(complaints)
    assert analysis.insights == [
        "Total of 4 complaints analyzed.",
        "Most common category: Library",
        "Resolution rate: 50.0%",
    ]
    assert analysis.trends["byStatus"] == {"resolved": 2, "open": 1, "closed": 1}
    assert analysis.trends["byCategory"] == {"Library": 2, "Academic": 2}
    assert analysis.recommendations == STATIC_RECOMMENDATIONS


@pytest.mark.asyncio
async def test_analyze_empty(rules):
    analysis = await rules.analyze([])
    assert analysis.insights[1] == "Most common category: N/A"
    assert analysis.insights[2] == "Resolution rate: 0.0%"


# ---------------------------------------------------------------------------
# RemoteAdvisor
# ---------------------------------------------------------------------------

def _remote(handler) -> RemoteAdvisor:
    return RemoteAdvisor(
        classification_url="http://advisor/classify",
        routing_url="http://advisor/route",
        summarization_url="http://advisor/summarize",
        analytics_url="http://advisor/analyze",
        api_key="k-123",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_remote_classify_uses_service_answer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"category": "Academic", "urgency": "high", "confidence": 0.91})

    result = await _remote(handler).classify("Exam schedule clash", {"title": "Clash"})
    assert result.category == "Academic"
    assert result.urgency == "high"
    assert result.confidence == 0.91
    assert seen["auth"] == "Bearer k-123"
    assert seen["body"] == {"text": "Exam schedule clash", "metadata": {"title": "Clash"}}


@pytest.mark.asyncio
async def test_remote_classify_falls_back_on_server_error():
    advisor = _remote(lambda request: httpx.Response(500, json={"error": "boom"}))
    result = await advisor.classify("The hostel roof leaks, emergency")
    assert result.category == "Hostel & Accommodation"
    assert result.urgency == "critical"


@pytest.mark.asyncio
async def test_remote_falls_back_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    routing = await _remote(handler).route({"category": "Library"}, WORKERS)
    assert routing.worker_id == 2
    assert routing.department == "Library Services"


@pytest.mark.asyncio
async def test_remote_falls_back_on_malformed_body():
    advisor = _remote(lambda request: httpx.Response(200, json={"unexpected": True}))
    summary = await advisor.summarize(
        {"title": "Noise", "category": "General", "urgency": "medium", "status": "resolved"}, []
    )
    assert summary.endswith("Currently resolved.")


@pytest.mark.asyncio
async def test_remote_unconfigured_endpoint_falls_back():
    advisor = RemoteAdvisor(
        classification_url="",
        routing_url="",
        summarization_url="",
        analytics_url="",
    )
    analysis = await advisor.analyze([{"status": "resolved", "category": "Library"}])
    assert analysis.insights[0] == "Total of 1 complaints analyzed."


@pytest.mark.asyncio
async def test_remote_route_drops_unknown_worker():
    advisor = _remote(
        lambda request: httpx.Response(
            200, json={"workerId": 99, "department": "Library Services", "reason": "model pick"}
        )
    )
    routing = await advisor.route({"category": "Library"}, WORKERS)
    assert routing.worker_id is None
    assert routing.department == "Library Services"
    assert routing.reason == "model pick"


@pytest.mark.asyncio
async def test_remote_route_keeps_known_worker():
    advisor = _remote(
        lambda request: httpx.Response(
            200, json={"workerId": 1, "department": "General Administration", "reason": "load"}
        )
    )
    routing = await advisor.route({"category": "Library"}, WORKERS)
    assert routing.worker_id == 1
