"""
Dashboard controllers

Each dashboard loads its sections concurrently, keeps the results in its
own state object and renders HTML from that state. A failing section is
reported in `state.errors` without blocking the others.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from careerguide.client.api import ApiError, CareerGuideClient
from careerguide.client.formatting import Debouncer
from careerguide.client.render import render_institution_dashboard, render_student_dashboard
from careerguide.client.views import (
    ActivityView,
    AdmissionStatsView,
    ApplicationRowView,
    ApplicationStatsView,
    CourseSummaryView,
    EventView,
    InstitutionDashboardState,
    NotificationView,
    ProfileView,
    RecommendationView,
    StudentDashboardState,
)

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 20
POPULAR_COURSES = 5


async def load_sections(loaders: Dict[str, Callable[[], Awaitable[Any]]], errors: List[str]) -> Dict[str, Any]:
    """
    Run every loader concurrently.

    Returns the successful results by name. Each failure adds one
    "Failed to load <name>" message to `errors`.
    """
    names = list(loaders)
    results = await asyncio.gather(*(loaders[name]() for name in names), return_exceptions=True)

    loaded = {}
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            if not isinstance(result, ApiError):
                logger.warning(f"Unexpected error loading {name}: {result!r}")
            errors.append(f"Failed to load {name}")
            continue
        loaded[name] = result
    return loaded


class NotificationMixin:
    state: Any

    async def handle_notification(self, event: Dict[str, Any]) -> None:
        """Stream callback; the `connected` handshake is not shown"""
        if event.get("type") == "connected":
            return
        self.state.notifications.insert(0, NotificationView.from_event(event))
        del self.state.notifications[MAX_NOTIFICATIONS:]


class StudentDashboard(NotificationMixin):
    """
    Usage:
        dashboard = StudentDashboard(api)
        await dashboard.load()
        html = dashboard.render()
    """

    def __init__(self, api: CareerGuideClient):
        self.api = api
        self.state = StudentDashboardState()

    async def load(self) -> StudentDashboardState:
        api = self.api
        state = StudentDashboardState(notifications=self.state.notifications)
        loaded = await load_sections(
            {
                "profile": lambda: api.get("/student/profile"),
                "application stats": lambda: api.get("/student/applications/stats"),
                "course recommendations": lambda: api.get("/student/recommendations/courses"),
                "job recommendations": lambda: api.get("/student/recommendations/jobs"),
                "activity": lambda: api.get("/student/activity"),
                "events": lambda: api.get("/student/events"),
            },
            state.errors,
        )

        if "profile" in loaded:
            state.profile = ProfileView.from_api(loaded["profile"].get("profile") or {})
        if "application stats" in loaded:
            state.stats = ApplicationStatsView(**(loaded["application stats"].get("stats") or {}))
        if "course recommendations" in loaded:
            state.courses = [RecommendationView.from_course(c) for c in loaded["course recommendations"].get("courses", [])]
        if "job recommendations" in loaded:
            state.jobs = [RecommendationView.from_job(j) for j in loaded["job recommendations"].get("jobs", [])]
        if "activity" in loaded:
            state.activities = [ActivityView.from_api(a) for a in loaded["activity"].get("activities", [])]
        if "events" in loaded:
            state.events = [EventView.from_api(e) for e in loaded["events"].get("events", [])]

        state.loadedAt = datetime.utcnow()
        self.state = state
        return state

    async def rsvp(self, event_id: str) -> str:
        """RSVP then refresh the events section"""
        body = await self.api.rsvp(event_id)
        events = await self.api.get("/student/events")
        self.state.events = [EventView.from_api(e) for e in events.get("events", [])]
        return body.get("message", "")

    def render(self) -> str:
        return render_student_dashboard(self.state)


class InstitutionDashboard(NotificationMixin):
    """
    Usage:
        dashboard = InstitutionDashboard(api)
        await dashboard.load()
        dashboard.search("alice")   # debounced reload
        html = dashboard.render()
    """

    def __init__(self, api: CareerGuideClient, page_size: int = 20, search_delay: Optional[float] = None):
        self.api = api
        self.page_size = page_size
        self.state = InstitutionDashboardState()
        self._search = Debouncer(
            api.config.search_debounce if search_delay is None else search_delay,
            self._apply_search,
        )

    def _application_params(self) -> Dict[str, Any]:
        return {**self.state.filters, "page": self.state.page, "limit": self.page_size}

    async def _load_applications(self) -> Dict[str, Any]:
        return await self.api.get("/institution/applications", params=self._application_params())

    def _set_applications(self, body: Dict[str, Any], append: bool = False) -> None:
        rows = [ApplicationRowView.from_api(a) for a in body.get("applications", [])]
        self.state.applications = self.state.applications + rows if append else rows
        self.state.hasMore = bool((body.get("pagination") or {}).get("hasNext"))

    async def load(self) -> InstitutionDashboardState:
        api = self.api
        errors: List[str] = []
        loaded = await load_sections(
            {
                "admission stats": lambda: api.get("/institution/admissions/stats"),
                "applications": self._load_applications,
                "courses": lambda: api.get("/institution/courses"),
            },
            errors,
        )

        self.state.errors = errors
        if "admission stats" in loaded:
            self.state.stats = AdmissionStatsView(**(loaded["admission stats"].get("stats") or {}))
        if "applications" in loaded:
            self._set_applications(loaded["applications"])
        if "courses" in loaded:
            courses = sorted(
                loaded["courses"].get("courses", []),
                key=lambda c: c.get("applicationCount") or 0,
                reverse=True,
            )
            self.state.popularCourses = [CourseSummaryView.from_api(c) for c in courses[:POPULAR_COURSES]]

        self.state.loadedAt = datetime.utcnow()
        return self.state

    async def set_filters(self, **filters: Optional[str]) -> None:
        """Replace the filters and reload the first page of applications"""
        self.state.filters = {k: v for k, v in filters.items() if v}
        self.state.page = 1
        self._set_applications(await self._load_applications())

    async def load_more(self) -> None:
        if not self.state.hasMore:
            return
        self.state.page += 1
        self._set_applications(await self._load_applications(), append=True)

    async def _apply_search(self, term: str) -> None:
        await self.set_filters(**{**self.state.filters, "search": term})

    def search(self, term: str) -> asyncio.Task:
        return self._search.call(term)

    async def review(self, application_id: str, status: str, notes: Optional[str] = None) -> Dict[str, Any]:
        """Review an application, then refresh stats and the current rows"""
        body = await self.api.put(
            f"/institution/applications/{application_id}/review",
            json={"status": status, "notes": notes},
        )
        stats, applications = await asyncio.gather(
            self.api.get("/institution/admissions/stats"),
            self._load_applications(),
        )
        self.state.stats = AdmissionStatsView(**(stats.get("stats") or {}))
        self._set_applications(applications)
        return body.get("application") or {}

    async def export_applications(self) -> bytes:
        return await self.api.download("/institution/applications/export", params=self.state.filters or None)

    def render(self) -> str:
        return render_institution_dashboard(self.state)
