"""
Map view routes.

This module serves the case map page and the actions the page triggers:
refresh, home, current location, focusing a case and resolving it. Each user
gets their own CaseMapComponent; the least recently used ones are dropped
once MAX_COMPONENTS is exceeded, and all of them share one asset loader.

Author: Case Map maintainers
Date: 2026-10-18
"""

import logging
from collections import OrderedDict
from html import escape
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from case_service import CaseService
from database import SessionLocal
from logic.config import MAX_COMPONENTS
from logic.leaflet import CachedAssetLoader
from logic.map_component import CaseMapComponent, CaseSource, Notification
from server.broadcast import broadcast_notification
from user_context import get_current_user

LOGGER = logging.getLogger(__name__)

router = APIRouter()

# One component per user, least recently used first
components: Dict[str, CaseMapComponent] = OrderedDict()

# Leaflet assets are downloaded once and shared by every component
asset_loader = CachedAssetLoader()


class ServiceCaseSource(CaseSource):
    """CaseSource backed by CaseService, bound to one user.

    Attributes:
        user: Owner id passed to every service call.
        session_factory: Callable returning a new SQLAlchemy session.
    """

    def __init__(self, user: str, session_factory=SessionLocal):
        self.user = user
        self.session_factory = session_factory

    def _fetch(self) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            records = CaseService(db).fetch_open_cases(self.user)
            return [r.model_dump(by_alias=True, mode="json") for r in records]
        finally:
            db.close()

    def _update(self, case_id: str, new_status: str) -> None:
        db = self.session_factory()
        try:
            CaseService(db).update_case_status(case_id, new_status, self.user)
        finally:
            db.close()

    async def fetch_open_cases(self) -> List[Dict[str, Any]]:
        return await run_in_threadpool(self._fetch)

    async def update_case_status(self, case_id: str, new_status: str) -> None:
        await run_in_threadpool(self._update, case_id, new_status)


def create_component(user: str) -> CaseMapComponent:
    """Build a map component for a user, pushing its toasts over SSE."""

    async def notify(notification: Notification) -> None:
        await broadcast_notification(user, notification.title, notification.message, notification.variant)

    return CaseMapComponent(ServiceCaseSource(user), loader=asset_loader, notify=notify)


def evict_components(limit: int) -> None:
    """Drop the least recently used components until at most limit remain."""
    while len(components) > limit:
        user, _ = components.popitem(last=False)
        LOGGER.info("Evicted map component for %s", user)


async def get_component(user: str = Depends(get_current_user)) -> CaseMapComponent:
    """Dependency returning the caller's mounted map component."""
    component = components.get(user)
    if component is None:
        component = create_component(user)
        components[user] = component
        LOGGER.info("Created map component for %s", user)
        evict_components(MAX_COMPONENTS)
    else:
        components.move_to_end(user)
    await component.mount()
    return component


def error_page(message: str) -> str:
    return (
        "<!DOCTYPE html><html><head><title>Case Map</title></head><body>"
        f'<div class="map-error" role="alert">{escape(message)}</div>'
        "</body></html>"
    )


@router.get("/", response_class=HTMLResponse)
async def index(component: CaseMapComponent = Depends(get_component)):
    """Serve the case map page.

    Returns:
        Rendered Leaflet page, or a 503 page with the blocking error when the
        map could not be built.
    """
    if not component.is_map_initialized:
        return HTMLResponse(error_page(component.error_message), status_code=503)
    return HTMLResponse(component.render_html())


@router.get("/api/map")
async def get_map(component: CaseMapComponent = Depends(get_component)):
    """Get the component state and the sorted case list."""
    return component.snapshot()


@router.post("/api/map/refresh")
async def refresh_map(component: CaseMapComponent = Depends(get_component)):
    """Reload the cases and rebuild the markers."""
    await component.refresh()
    return component.snapshot()


@router.post("/api/map/home")
async def go_home(component: CaseMapComponent = Depends(get_component)):
    component.go_to_home()
    return {"status": "ok"}


@router.post("/api/map/locate")
async def go_to_current_location(component: CaseMapComponent = Depends(get_component)):
    component.go_to_current_location()
    return {"status": "ok"}


@router.post("/api/map/cases/{case_id}/focus")
async def focus_case(case_id: str, component: CaseMapComponent = Depends(get_component)):
    """Center the map on a case and open its popup.

    Raises:
        HTTPException: 404 if the case is not on the map.
    """
    if not component.move_to_case(case_id):
        raise HTTPException(404, f"Case '{case_id}' is not on the map")
    return {"status": "ok", "id": case_id}


@router.post("/api/map/cases/{case_id}/resolve")
async def resolve_case(case_id: str, component: CaseMapComponent = Depends(get_component)):
    """Resolve a case from its popup and go back to the refreshed map.

    The outcome is reported through the SSE toast stream.
    """
    await component.resolve_handler(case_id)()
    return RedirectResponse(url="/", status_code=303)


@router.get("/assets/leaflet.css")
async def leaflet_css(component: CaseMapComponent = Depends(get_component)):
    if component.assets is None:
        raise HTTPException(404, "Leaflet stylesheet not loaded")
    return Response(content=component.assets.css, media_type="text/css")


@router.get("/assets/leaflet.js")
async def leaflet_js(component: CaseMapComponent = Depends(get_component)):
    if component.assets is None:
        raise HTTPException(404, "Leaflet script not loaded")
    return Response(content=component.assets.js, media_type="application/javascript")
