"""
Complaint advisor — classification, routing, summaries and analytics.

Two implementations share one async interface:

  RuleBasedAdvisor  keyword tables, fully deterministic (ADVISOR_MODE=mock)
  RemoteAdvisor     POSTs to an inference service and falls back to the
                    rule-based answer on any transport error, non-2xx status
                    or malformed response (ADVISOR_MODE=remote)

Callers depend on get_advisor(); tests override it with their own instance.
"""
import logging
from collections import Counter
from functools import lru_cache
from typing import Any, Protocol

import httpx
from pydantic import BaseModel

from complaint_tracker.core.config import get_settings

logger = logging.getLogger(__name__)


class Classification(BaseModel):
    category: str
    urgency: str
    confidence: float = 0.75


class Routing(BaseModel):
    worker_id: int | None = None
    department: str
    reason: str


class Analysis(BaseModel):
    insights: list[str]
    trends: dict[str, Any]
    recommendations: list[str]


class Advisor(Protocol):
    async def classify(self, description: str, metadata: dict[str, Any] | None = None) -> Classification: ...

    async def route(self, complaint: dict[str, Any], available_workers: list[dict[str, Any]]) -> Routing: ...

    async def summarize(self, complaint: dict[str, Any], history: list[dict[str, Any]]) -> str: ...

    async def analyze(self, complaints: list[dict[str, Any]]) -> Analysis: ...


# ---------------------------------------------------------------------------
# Keyword tables (first match wins, in this order)
# ---------------------------------------------------------------------------

CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Hostel & Accommodation", ("hostel", "accommodation")),
    ("Food & Mess", ("food", "mess", "canteen")),
    ("Academic", ("academic", "exam", "grade")),
    ("Library", ("library",)),
    ("Transportation", ("transport", "bus")),
    ("Fees & Finance", ("fee", "payment")),
    ("Harassment & Discrimination", ("harassment", "discrimination")),
    ("Infrastructure", ("infrastructure", "facility")),
]
DEFAULT_CATEGORY = "General"

URGENCY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("critical", ("urgent", "emergency", "critical")),
    ("high", ("important", "asap", "harassment")),
    ("low", ("minor", "suggestion")),
]
DEFAULT_URGENCY = "medium"

CLASSIFICATION_CONFIDENCE = 0.75

CATEGORY_DEPARTMENTS: dict[str, str] = {
    "Hostel & Accommodation": "Hostel Management",
    "Food & Mess": "Mess Committee",
    "Academic": "Academic Affairs",
    "Library": "Library Services",
    "Transportation": "Transport Department",
    "Fees & Finance": "Finance Office",
    "Harassment & Discrimination": "Student Welfare",
    "Infrastructure": "Maintenance Department",
    "General": "General Administration",
}
DEFAULT_DEPARTMENT = "General Administration"

# Placeholder: not derived from the data it is shown next to.
STATIC_RECOMMENDATIONS = [
    "Consider adding more workers to high-volume categories",
    "Implement automated routing for common complaint types",
    "Set up SLA alerts for overdue complaints",
]


def _first_match(text: str, table: list[tuple[str, tuple[str, ...]]], default: str) -> str:
    for label, keywords in table:
        if any(keyword in text for keyword in keywords):
            return label
    return default


def department_for(category: str | None) -> str:
    return CATEGORY_DEPARTMENTS.get(category or "", DEFAULT_DEPARTMENT)


class RuleBasedAdvisor:
    """Deterministic keyword/lookup-table advisor."""

    async def classify(self, description: str, metadata: dict[str, Any] | None = None) -> Classification:
        metadata = metadata or {}
        text = f"{description} {metadata.get('title') or ''}".lower()
        return Classification(
            category=_first_match(text, CATEGORY_KEYWORDS, DEFAULT_CATEGORY),
            urgency=_first_match(text, URGENCY_KEYWORDS, DEFAULT_URGENCY),
            confidence=CLASSIFICATION_CONFIDENCE,
        )

    async def route(self, complaint: dict[str, Any], available_workers: list[dict[str, Any]]) -> Routing:
        category = complaint.get("category")
        department = department_for(category)

        worker_id = None
        if available_workers:
            same_department = next(
                (w for w in available_workers if w.get("department") == department), None
            )
            worker_id = (same_department or available_workers[0])["id"]

        return Routing(
            worker_id=worker_id,
            department=department,
            reason=f"Routed to {department} based on complaint category: {category}",
        )

    async def summarize(self, complaint: dict[str, Any], history: list[dict[str, Any]]) -> str:
        status_changes = sum(1 for h in history if h.get("action_type") == "status_change")

        summary = (
            f'Complaint "{complaint.get("title")}" in category {complaint.get("category")} '
            f'with {complaint.get("urgency")} urgency. '
        )
        if history:
            summary += f"Has {len(history)} history entries including {status_changes} status changes. "

        status = complaint.get("status")
        if status == "resolved":
            summary += "Currently resolved."
        elif status == "in_progress":
            summary += "Currently being worked on."
        else:
            summary += "Awaiting assignment or action."
        return summary

    async def analyze(self, complaints: list[dict[str, Any]]) -> Analysis:
        total = len(complaints)
        by_status = dict(Counter(c.get("status") for c in complaints))
        by_category = dict(Counter(c.get("category") for c in complaints))

        # max() keeps the first category seen on ties
        top_category = max(by_category, key=by_category.get) if by_category else "N/A"
        rate = (by_status.get("resolved", 0) / total * 100) if total else 0.0

        return Analysis(
            insights=[
                f"Total of {total} complaints analyzed.",
                f"Most common category: {top_category}",
                f"Resolution rate: {rate:.1f}%",
            ],
            trends={"byStatus": by_status, "byCategory": by_category},
            recommendations=list(STATIC_RECOMMENDATIONS),
        )


class RemoteAdvisor:
    """
    HTTP advisor.  Each operation POSTs JSON to its own endpoint; any failure
    is logged and answered by the rule-based fallback instead.
    """

    def __init__(
        self,
        *,
        classification_url: str,
        routing_url: str,
        summarization_url: str,
        analytics_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        fallback: RuleBasedAdvisor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.classification_url = classification_url
        self.routing_url = routing_url
        self.summarization_url = summarization_url
        self.analytics_url = analytics_url
        self.api_key = api_key
        self.timeout = timeout
        self.fallback = fallback or RuleBasedAdvisor()
        self._transport = transport

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        if not url:
            raise ValueError("Advisor endpoint is not configured")
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(url, json=body, headers=headers)
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("Advisor response is not a JSON object")
        return data

    async def classify(self, description: str, metadata: dict[str, Any] | None = None) -> Classification:
        try:
            data = await self._post(
                self.classification_url, {"text": description, "metadata": metadata or {}}
            )
            return Classification(
                category=data["category"],
                urgency=data["urgency"],
                confidence=data.get("confidence") or 0.8,
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Advisor classification failed, using rules: %s", exc)
            return await self.fallback.classify(description, metadata)

    async def route(self, complaint: dict[str, Any], available_workers: list[dict[str, Any]]) -> Routing:
        try:
            data = await self._post(
                self.routing_url,
                {"complaint": complaint, "availableWorkers": available_workers},
            )
            routing = Routing(
                worker_id=data.get("workerId"),
                department=data["department"],
                reason=data["reason"],
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Advisor routing failed, using rules: %s", exc)
            return await self.fallback.route(complaint, available_workers)

        roster = {w["id"] for w in available_workers}
        if routing.worker_id is not None and routing.worker_id not in roster:
            logger.warning("Advisor suggested unknown worker %s; leaving unassigned", routing.worker_id)
            routing.worker_id = None
        return routing

    async def summarize(self, complaint: dict[str, Any], history: list[dict[str, Any]]) -> str:
        try:
            data = await self._post(
                self.summarization_url, {"complaint": complaint, "history": history}
            )
            summary = data["summary"]
            if not isinstance(summary, str):
                raise ValueError("summary is not a string")
            return summary
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Advisor summarization failed, using rules: %s", exc)
            return await self.fallback.summarize(complaint, history)

    async def analyze(self, complaints: list[dict[str, Any]]) -> Analysis:
        try:
            data = await self._post(self.analytics_url, {"complaints": complaints})
            return Analysis.model_validate(data)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Advisor analytics failed, using rules: %s", exc)
            return await self.fallback.analyze(complaints)


@lru_cache(maxsize=1)
def get_advisor() -> Advisor:
    """FastAPI dependency — the advisor selected by ADVISOR_MODE."""
    settings = get_settings()
    if not settings.advisor_is_remote:
        return RuleBasedAdvisor()
    return RemoteAdvisor(
        classification_url=settings.advisor_classification_url,
        routing_url=settings.advisor_routing_url,
        summarization_url=settings.advisor_summarization_url,
        analytics_url=settings.advisor_analytics_url,
        api_key=settings.advisor_api_key,
        timeout=settings.advisor_timeout,
    )
