"""
Leaflet mapping backend and asset loading.

The map component only talks to MapBackend. FoliumBackend implements it on
top of folium, which generates the Leaflet page; LeafletAssetLoader fetches
the Leaflet stylesheet and script so the page can serve them locally.

Author: Case Map maintainers
Date: 2026-10-18
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import aiohttp
import folium

from logic.config import RESOURCE_TIMEOUT

LOGGER = logging.getLogger(__name__)

Coord = Tuple[float, float]


class ResourceLoadError(Exception):
    """Raised when a Leaflet asset cannot be downloaded."""

    pass


@dataclass(frozen=True)
class DivIcon:
    """HTML marker icon.

    Attributes:
        html: Markup drawn in place of the default pin.
        icon_size: Icon width and height in pixels.
        icon_anchor: Pixel of the icon that sits on the coordinate.
        class_name: CSS class of the icon container.
    """

    html: str
    icon_size: Tuple[int, int] = (40, 40)
    icon_anchor: Tuple[int, int] = (20, 20)
    class_name: str = "custom-marker-container"


@dataclass(frozen=True)
class MapAssets:
    """Leaflet stylesheet and script contents plus the URLs they are served at."""

    css: str
    js: str
    css_url: str
    js_url: str


class MapBackend:
    """Capability the map component draws through.

    Handles returned by create_map, create_layer_group and create_marker are
    opaque to the caller and only passed back into this backend.
    """

    def create_map(self, center: Coord, zoom: int) -> Any:
        raise NotImplementedError

    def add_tile_layer(self, map_handle: Any, url: str, attribution: str, max_zoom: int) -> None:
        raise NotImplementedError

    def create_layer_group(self, map_handle: Any, name: str) -> Any:
        raise NotImplementedError

    def create_marker(self, coord: Coord, icon: DivIcon) -> Any:
        raise NotImplementedError

    def bind_popup(self, marker: Any, html: str) -> None:
        raise NotImplementedError

    def open_popup(self, marker: Any) -> None:
        raise NotImplementedError

    def close_popup(self, marker: Any) -> None:
        raise NotImplementedError

    def add_to_layer(self, group: Any, marker: Any) -> None:
        raise NotImplementedError

    def clear_layer(self, group: Any) -> None:
        raise NotImplementedError

    def add_to_map(self, map_handle: Any, marker: Any) -> None:
        raise NotImplementedError

    def remove_from_map(self, map_handle: Any, marker: Any) -> None:
        raise NotImplementedError

    def set_view(self, map_handle: Any, coord: Coord, zoom: int) -> None:
        raise NotImplementedError

    def render(self, map_handle: Any, assets: Optional[MapAssets] = None) -> str:
        raise NotImplementedError


class FoliumBackend(MapBackend):
    """MapBackend that builds a folium (Leaflet) document."""

    def create_map(self, center: Coord, zoom: int) -> folium.Map:
        return folium.Map(location=list(center), zoom_start=zoom, tiles=None)

    def add_tile_layer(self, map_handle: folium.Map, url: str, attribution: str, max_zoom: int) -> None:
        folium.TileLayer(tiles=url, attr=attribution, max_zoom=max_zoom, name="OpenStreetMap").add_to(
            map_handle
        )

    def create_layer_group(self, map_handle: folium.Map, name: str) -> folium.FeatureGroup:
        return folium.FeatureGroup(name=name).add_to(map_handle)

    def create_marker(self, coord: Coord, icon: DivIcon) -> folium.Marker:
        return folium.Marker(
            location=list(coord),
            icon=folium.DivIcon(
                html=icon.html,
                icon_size=icon.icon_size,
                icon_anchor=icon.icon_anchor,
                class_name=icon.class_name,
            ),
        )

    def bind_popup(self, marker: folium.Marker, html: str) -> None:
        folium.Popup(html, max_width=320).add_to(marker)

    def _set_popup_shown(self, marker: folium.Marker, show: bool) -> None:
        for child in marker._children.values():
            if isinstance(child, folium.Popup):
                child.show = show

    def open_popup(self, marker: folium.Marker) -> None:
        self._set_popup_shown(marker, True)

    def close_popup(self, marker: folium.Marker) -> None:
        self._set_popup_shown(marker, False)

    def add_to_layer(self, group: folium.FeatureGroup, marker: folium.Marker) -> None:
        marker.add_to(group)

    def clear_layer(self, group: folium.FeatureGroup) -> None:
        # folium has no public API to empty a group
        group._children.clear()

    def add_to_map(self, map_handle: folium.Map, marker: folium.Marker) -> None:
        marker.add_to(map_handle)

    def remove_from_map(self, map_handle: folium.Map, marker: folium.Marker) -> None:
        map_handle._children.pop(marker.get_name(), None)

    def set_view(self, map_handle: folium.Map, coord: Coord, zoom: int) -> None:
        map_handle.location = list(coord)
        map_handle.options["zoom"] = zoom

    def render(self, map_handle: folium.Map, assets: Optional[MapAssets] = None) -> str:
        """Render the full HTML page for the map.

        When assets are given, the Leaflet CDN links are swapped for the
        locally served copies.

        Rendering writes every element's script into the root figure, keyed
        by element name, and never removes it. The map is attached to a new
        figure on each call so markers dropped from their layer since the
        last render are not drawn again.
        """
        figure = folium.Figure()
        figure.add_child(map_handle)
        if assets is not None:
            map_handle.default_css = [
                (name, assets.css_url if name == "leaflet_css" else url)
                for name, url in map_handle.default_css
            ]
            map_handle.default_js = [
                (name, assets.js_url if name == "leaflet" else url)
                for name, url in map_handle.default_js
            ]
        return figure.render()


class LeafletAssetLoader:
    """Download the Leaflet stylesheet and script.

    Attributes:
        timeout: Total seconds allowed per download.
    """

    def __init__(self, timeout: float = RESOURCE_TIMEOUT):
        self.timeout = timeout

    async def _fetch(self, url: str) -> str:
        client_timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise ResourceLoadError(f"{url} returned HTTP {resp.status}")
                    return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ResourceLoadError(f"{url} could not be fetched: {e}") from e

    async def load_style(self, url: str) -> str:
        LOGGER.debug("Loading Leaflet stylesheet from %s", url)
        return await self._fetch(url)

    async def load_script(self, url: str) -> str:
        LOGGER.debug("Loading Leaflet script from %s", url)
        return await self._fetch(url)


class CachedAssetLoader:
    """Asset loader that downloads each URL at most once.

    Concurrent requests for the same URL wait on the first download. Failed
    downloads are not cached, so a later mount retries them.

    Attributes:
        loader: Loader used for the actual downloads.
    """

    def __init__(self, loader: Optional[LeafletAssetLoader] = None):
        self.loader = loader or LeafletAssetLoader()
        self._cache: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def _cached(self, url: str, load: Callable[[str], Awaitable[str]]) -> str:
        lock = self._locks.setdefault(url, asyncio.Lock())
        async with lock:
            if url not in self._cache:
                self._cache[url] = await load(url)
                LOGGER.info("Cached Leaflet asset %s", url)
            return self._cache[url]

    async def load_style(self, url: str) -> str:
        return await self._cached(url, self.loader.load_style)

    async def load_script(self, url: str) -> str:
        return await self._cached(url, self.loader.load_script)
