"""
Case map presentation component.

One CaseMapComponent drives one user's map: it loads the Leaflet assets,
builds the base map with a home layer and a cases layer, places a marker per
open case, and relays the resolve action back to the case service before
reloading. Each instance owns its map handle and layers; nothing is shared
between instances.

Author: Case Map maintainers
Date: 2026-10-18
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from case_service import CLOSED_STATUS
from exceptions import CaseServiceError
from logic.config import load_config
from logic.leaflet import (
    DivIcon,
    FoliumBackend,
    LeafletAssetLoader,
    MapAssets,
    MapBackend,
    ResourceLoadError,
)
from logic.render import (
    CASE_ICON_ANCHOR,
    CASE_ICON_SIZE,
    HOME_ICON_ANCHOR,
    HOME_ICON_SIZE,
    case_icon_html,
    case_popup_html,
    current_location_icon_html,
    home_icon_html,
    home_popup_html,
)
from logic.severity import sort_by_delay

LOGGER = logging.getLogger(__name__)


class MapState(str, Enum):
    """Lifecycle of a map component."""

    UNLOADED = "unloaded"
    RESOURCES_LOADING = "resources_loading"
    MAP_INITIALIZING = "map_initializing"
    DATA_LOADING = "data_loading"
    READY = "ready"
    ERRORED = "errored"


@dataclass
class Notification:
    """Transient toast message."""

    title: str
    message: str
    variant: str  # success | error | info


class CaseSource:
    """Boundary calls the component makes to the case service.

    Implementations raise CaseServiceError on any failure.
    """

    async def fetch_open_cases(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def update_case_status(self, case_id: str, new_status: str) -> None:
        raise NotImplementedError


async def _ignore(notification: Notification) -> None:
    return None


class CaseMapComponent:
    """Map of the current user's open cases.

    Attributes:
        state: Current MapState.
        error_message: Blocking error shown instead of the map.
        case_data: Latest fetched snapshot, camelCase case dictionaries.
        is_loading: True while a fetch or resolve is in flight.
    """

    def __init__(
        self,
        source: CaseSource,
        backend: Optional[MapBackend] = None,
        loader: Optional[LeafletAssetLoader] = None,
        config: Optional[Dict[str, Any]] = None,
        notify: Optional[Callable[[Notification], Awaitable[None]]] = None,
    ):
        self.source = source
        self.backend = backend or FoliumBackend()
        self.loader = loader or LeafletAssetLoader()
        self.config = config or load_config()
        self.notify = notify or _ignore

        self.state = MapState.UNLOADED
        self._mount_lock = asyncio.Lock()
        self.error_message = ""
        self.is_loading = False
        self.case_data: List[Dict[str, Any]] = []
        self.assets: Optional[MapAssets] = None

        self.map = None
        self.marker_layers: Dict[str, Any] = {}
        self.home_marker = None
        self.case_markers: Dict[str, Any] = {}
        self.current_location_marker = None
        self._focused_marker = None

    @property
    def is_map_initialized(self) -> bool:
        return self.map is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> None:
        """Load assets, build the map and load the cases.

        Runs only from UNLOADED. A call made while a mount is in flight
        waits for it to finish; calls after that are no-ops.
        """
        async with self._mount_lock:
            if self.state is not MapState.UNLOADED:
                return

            if not await self._load_resources():
                return
            if not self._initialize_map():
                return
            await self.load_cases()

    async def _load_resources(self) -> bool:
        self.state = MapState.RESOURCES_LOADING
        leaflet = self.config["leaflet"]
        # Both downloads run to completion before any failure is handled
        results = await asyncio.gather(
            self.loader.load_style(leaflet["css_url"]),
            self.loader.load_script(leaflet["js_url"]),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, ResourceLoadError):
                raise failure
        if failures:
            for failure in failures:
                LOGGER.error("Leaflet resource loading failed: %s", failure)
            self._fail("Unable to load the map library.")
            return False

        css, js = results
        self.assets = MapAssets(
            css=css, js=js, css_url=leaflet["local_css_url"], js_url=leaflet["local_js_url"]
        )
        LOGGER.info("Leaflet resources loaded")
        return True

    def _initialize_map(self) -> bool:
        self.state = MapState.MAP_INITIALIZING
        center = self.config["default_center"]
        tiles = self.config["tile_layer"]
        try:
            self.map = self.backend.create_map((center["lat"], center["lng"]), self.config["initial_zoom"])
            self.backend.add_tile_layer(self.map, tiles["url"], tiles["attribution"], tiles["max_zoom"])
            self.marker_layers = {
                "home": self.backend.create_layer_group(self.map, "home"),
                "cases": self.backend.create_layer_group(self.map, "cases"),
            }
        except Exception:
            LOGGER.exception("Map initialisation failed")
            self.map = None
            self.marker_layers = {}
            self._fail("Unable to initialise the map.")
            return False

        LOGGER.info("Map initialised")
        return True

    def _fail(self, message: str) -> None:
        self.state = MapState.ERRORED
        self.error_message = message

    async def load_cases(self) -> None:
        """Fetch the cases and rebuild every marker.

        A fetch failure keeps the previous snapshot on screen and is
        reported as a notification; the map stays usable.
        """
        if not self.is_map_initialized:
            LOGGER.warning("load_cases called before the map was initialised")
            return

        self.state = MapState.DATA_LOADING
        self.is_loading = True
        try:
            data = await self.source.fetch_open_cases()
        except CaseServiceError as e:
            LOGGER.error("Case data load failed: %s", e)
            self.state = MapState.READY
            await self._toast("Error", "Unable to load case data.", "error")
            return
        finally:
            self.is_loading = False

        self._add_home_marker()
        self.case_data = list(data or [])
        if not self.case_data:
            LOGGER.info("No open cases to display")
        self._add_case_markers()
        self.state = MapState.READY

    async def refresh(self) -> None:
        await self.load_cases()

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------

    def _add_home_marker(self) -> None:
        home = self.config["headquarters"]
        layer = self.marker_layers["home"]
        self.backend.clear_layer(layer)

        icon = DivIcon(html=home_icon_html(home), icon_size=HOME_ICON_SIZE, icon_anchor=HOME_ICON_ANCHOR)
        marker = self.backend.create_marker((home["lat"], home["lng"]), icon)
        self.backend.bind_popup(marker, home_popup_html(home))
        self.backend.add_to_layer(layer, marker)
        self.home_marker = marker

    def _add_case_markers(self) -> None:
        layer = self.marker_layers["cases"]
        self.backend.clear_layer(layer)
        self.case_markers = {}
        self._focused_marker = None

        for case in self.case_data:
            marker = self._create_case_marker(case)
            self.backend.add_to_layer(layer, marker)
            self.case_markers[case["id"]] = marker

    def _create_case_marker(self, case: Dict[str, Any]) -> Any:
        icon = DivIcon(html=case_icon_html(case), icon_size=CASE_ICON_SIZE, icon_anchor=CASE_ICON_ANCHOR)
        marker = self.backend.create_marker((case["lat"], case["lng"]), icon)
        self.backend.bind_popup(marker, case_popup_html(case, self.config["directions_url"]))
        return marker

    def _focus(self, marker: Any) -> None:
        if self._focused_marker is not None and self._focused_marker is not marker:
            self.backend.close_popup(self._focused_marker)
        self.backend.open_popup(marker)
        self._focused_marker = marker

    # ------------------------------------------------------------------
    # View actions
    # ------------------------------------------------------------------

    def go_to_home(self) -> None:
        """Center on the headquarters and open its popup."""
        if not self.is_map_initialized:
            return
        home = self.config["headquarters"]
        self.backend.set_view(self.map, (home["lat"], home["lng"]), self.config["home_zoom"])
        if self.home_marker is not None:
            self._focus(self.home_marker)

    def go_to_current_location(self) -> None:
        """Center on the current location and mark it, replacing any old mark."""
        if not self.is_map_initialized:
            return
        here = self.config["current_location"]
        coord = (here["lat"], here["lng"])
        self.backend.set_view(self.map, coord, self.config["location_zoom"])

        if self.current_location_marker is not None:
            self.backend.remove_from_map(self.map, self.current_location_marker)
        self.current_location_marker = self.backend.create_marker(
            coord, DivIcon(html=current_location_icon_html())
        )
        self.backend.add_to_map(self.map, self.current_location_marker)

    def move_to_case(self, case_id: str) -> bool:
        """Center on a case and open its popup.

        Returns:
            False when the case is not in the current snapshot.
        """
        case = next((c for c in self.case_data if c["id"] == case_id), None)
        if case is None or not self.is_map_initialized:
            return False
        self.backend.set_view(self.map, (case["lat"], case["lng"]), self.config["case_zoom"])
        marker = self.case_markers.get(case_id)
        if marker is not None:
            self._focus(marker)
        return True

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    async def handle_resolve(self, case_id: str) -> None:
        """Close a case, report the outcome, and reload the markers.

        Failures are reported as notifications, never raised.
        """
        self.is_loading = True
        try:
            await self.source.update_case_status(case_id, CLOSED_STATUS)
        except CaseServiceError as e:
            LOGGER.error("Resolving case %s failed: %s", case_id, e)
            await self._toast("Error", f"Could not resolve the case: {e}", "error")
        else:
            await self._toast("Success", "The case has been resolved.", "success")
        finally:
            self.is_loading = False

        await self.refresh()

    def resolve_handler(self, case_id: str) -> Callable[[], Awaitable[None]]:
        """Return a resolve callback bound to this component and case."""

        async def handler() -> None:
            await self.handle_resolve(case_id)

        return handler

    async def _toast(self, title: str, message: str, variant: str) -> None:
        await self.notify(Notification(title=title, message=message, variant=variant))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def sorted_case_data(self) -> List[Dict[str, Any]]:
        """List-view projection, recomputed from the latest snapshot."""
        return sort_by_delay(self.case_data)

    def render_html(self) -> str:
        """Render the map page.

        Raises:
            RuntimeError: If the map was never initialised.
        """
        if not self.is_map_initialized:
            raise RuntimeError(self.error_message or "Map is not initialised")
        return self.backend.render(self.map, self.assets)

    def snapshot(self) -> Dict[str, Any]:
        """State summary for the JSON API."""
        return {
            "state": self.state.value,
            "is_loading": self.is_loading,
            "is_map_initialized": self.is_map_initialized,
            "error_message": self.error_message,
            "cases": self.sorted_case_data,
        }
