"""
Test doubles for the map component: a recording map backend, an asset
loader and an in-memory case source.
"""

import asyncio
import copy

from exceptions import CaseNotFoundError, CaseServiceError
from logic.leaflet import MapBackend, ResourceLoadError


class FakeMarker:
    def __init__(self, coord, icon):
        self.coord = coord
        self.icon = icon
        self.popup = None
        self.popup_open = False


class FakeLayer:
    def __init__(self, name):
        self.name = name
        self.markers = []


class FakeMap:
    def __init__(self, center, zoom):
        self.center = center
        self.zoom = zoom
        self.tile_layers = []
        self.layers = []
        self.markers = []


class RecordingBackend(MapBackend):
    """MapBackend keeping everything in plain Python objects."""

    def __init__(self, fail_create=False):
        self.fail_create = fail_create
        self.maps = []

    def create_map(self, center, zoom):
        if self.fail_create:
            raise RuntimeError("map container not found")
        fake_map = FakeMap(center, zoom)
        self.maps.append(fake_map)
        return fake_map

    def add_tile_layer(self, map_handle, url, attribution, max_zoom):
        map_handle.tile_layers.append((url, attribution, max_zoom))

    def create_layer_group(self, map_handle, name):
        layer = FakeLayer(name)
        map_handle.layers.append(layer)
        return layer

    def create_marker(self, coord, icon):
        return FakeMarker(coord, icon)

    def bind_popup(self, marker, html):
        marker.popup = html

    def open_popup(self, marker):
        marker.popup_open = True

    def close_popup(self, marker):
        marker.popup_open = False

    def add_to_layer(self, group, marker):
        group.markers.append(marker)

    def clear_layer(self, group):
        group.markers.clear()

    def add_to_map(self, map_handle, marker):
        map_handle.markers.append(marker)

    def remove_from_map(self, map_handle, marker):
        map_handle.markers.remove(marker)

    def set_view(self, map_handle, coord, zoom):
        map_handle.center = coord
        map_handle.zoom = zoom

    def render(self, map_handle, assets=None):
        count = sum(len(layer.markers) for layer in map_handle.layers)
        return f"<html><body>markers={count}</body></html>"


class FakeLoader:
    def __init__(self, fail_css=False, fail_js=False):
        self.fail_css = fail_css
        self.fail_js = fail_js
        self.calls = []

    async def load_style(self, url):
        self.calls.append(url)
        if self.fail_css:
            raise ResourceLoadError(f"{url} returned HTTP 404")
        return "/* leaflet css */"

    async def load_script(self, url):
        self.calls.append(url)
        if self.fail_js:
            raise ResourceLoadError(f"{url} returned HTTP 404")
        return "/* leaflet js */"


class GatedLoader(FakeLoader):
    """Loader whose stylesheet download waits until release is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = asyncio.Event()

    async def load_style(self, url):
        await self.release.wait()
        return await super().load_style(url)


class SlowStyleLoader(FakeLoader):
    """Loader whose stylesheet download takes a moment and records completion."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.finished = []

    async def load_style(self, url):
        await asyncio.sleep(0.01)
        result = await super().load_style(url)
        self.finished.append(url)
        return result


class FakeSource:
    """Case source holding open cases in memory."""

    def __init__(self, cases=None, fail_fetch=False, fail_update=False):
        self.cases = list(cases or [])
        self.fail_fetch = fail_fetch
        self.fail_update = fail_update
        self.fetch_count = 0
        self.updates = []

    async def fetch_open_cases(self):
        self.fetch_count += 1
        if self.fail_fetch:
            raise CaseServiceError("Unable to load cases.")
        return copy.deepcopy(self.cases)

    async def update_case_status(self, case_id, new_status):
        self.updates.append((case_id, new_status))
        if self.fail_update:
            raise CaseServiceError("Unable to close the case.")
        if not any(c["id"] == case_id for c in self.cases):
            raise CaseNotFoundError(f"Case '{case_id}' was not found for the current user.")
        self.cases = [c for c in self.cases if c["id"] != case_id]


def case_dict(case_id, delay, lat=37.5, lng=127.0, phone="02-000-0000"):
    """Case record in the camelCase shape the service emits."""
    return {
        "id": case_id,
        "caseNumber": f"000{case_id}",
        "subject": f"Problem at {case_id}",
        "description": None,
        "status": "New",
        "priority": "High",
        "estimatedDelay": delay,
        "issueCategory": "Plumbing",
        "createdDate": "2025-06-01T09:00:00",
        "lat": lat,
        "lng": lng,
        "hotelName": f"Hotel {case_id}",
        "phone": phone,
        "address": f"{case_id} Street",
        "constructionPhase": "Interior",
        "constructionProgress": 40,
    }
