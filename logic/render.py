"""
Marker and popup markup for the case map.

This module builds the HTML fragments Leaflet shows for each marker: the
div icons, the popups, and the directions link. All functions are pure and
escape every value taken from a case.

Author: Case Map maintainers
Date: 2026-10-18
"""

from html import escape
from typing import Any, Dict
from urllib.parse import quote

from logic.severity import classify_severity, delay_days

DIRECTIONS_URL = "https://map.kakao.com/link/to/{name},{lat},{lng}"

CASE_ICON_SIZE = (40, 40)
CASE_ICON_ANCHOR = (20, 20)
HOME_ICON_SIZE = (50, 60)
HOME_ICON_ANCHOR = (25, 50)

ALERT_SVG = (
    '<svg width="16" height="16" viewBox="0 0 24 24" fill="white">'
    '<path d="M12 2C6.48 2 2 6.48 2 12s4.48 10 10 10 10-4.48 10-10S17.52 2 12 2zm1 '
    '15h-2v-2h2v2zm0-4h-2V7h2v6z"/></svg>'
)
PIN_SVG = (
    '<svg width="12" height="12" viewBox="0 0 24 24" fill="currentColor">'
    '<path d="M12 2C8.13 2 5 5.13 5 9c0 5.25 7 13 7 13s7-7.75 7-13c0-3.87-3.13-7-7-7zm0 '
    '9.5c-1.38 0-2.5-1.12-2.5-2.5s1.12-2.5 2.5-2.5 2.5 1.12 2.5 2.5-1.12 2.5-2.5 2.5z"/></svg>'
)


def format_days(value) -> str:
    """Format a delay for display, dropping a trailing .0."""
    days = delay_days(value)
    if float(days).is_integer():
        return f"{int(days)} days"
    return f"{days:g} days"


def directions_url(name: str, lat: float, lng: float, template: str = DIRECTIONS_URL) -> str:
    """Build the turn-by-turn directions link for a destination.

    The name is percent-encoded; the URL itself is not checked.

    Args:
        name: Destination display name.
        lat: Destination latitude.
        lng: Destination longitude.
        template: URL template with {name}, {lat} and {lng} placeholders.

    Returns:
        Directions URL.
    """
    return template.format(name=quote(name or "", safe=""), lat=lat, lng=lng)


def resolve_action_url(case_id: str) -> str:
    """Endpoint the popup resolve button posts to for this case."""
    return f"/api/map/cases/{quote(case_id, safe='')}/resolve"


def case_icon_html(case: Dict[str, Any]) -> str:
    """Div-icon markup for a case marker, coloured by severity."""
    severity = classify_severity(case.get("estimatedDelay"))
    return (
        f'<div class="marker case {severity.tier}">'
        f'<div class="marker-icon" style="background: {severity.color};">{ALERT_SVG}</div>'
        f'<div class="marker-delay">{format_days(case.get("estimatedDelay"))}</div>'
        "</div>"
    )


def case_popup_html(case: Dict[str, Any], template: str = DIRECTIONS_URL) -> str:
    """Build the popup shown when a case marker is clicked.

    The phone line is left out entirely when the site has no phone.

    Args:
        case: Case dictionary in the camelCase record shape.
        template: Directions URL template.

    Returns:
        Popup HTML.
    """
    severity = classify_severity(case.get("estimatedDelay"))
    link = directions_url(case.get("hotelName"), case["lat"], case["lng"], template)

    lines = [
        f"<div><strong>Issue:</strong> {escape(case.get('subject') or 'No subject')}</div>",
        f"<div><strong>Category:</strong> {escape(case.get('issueCategory') or 'Uncategorised')}</div>",
        f'<div><strong>Estimated delay:</strong> <span style="color: {severity.color}; '
        f'font-weight: bold;">{format_days(case.get("estimatedDelay"))}</span></div>',
        f"<div><strong>Phase:</strong> {escape(case.get('constructionPhase') or '-')} "
        f"({case.get('constructionProgress') or 0:g}%)</div>",
    ]
    if case.get("phone"):
        lines.append(f"<div><strong>Phone:</strong> {escape(case['phone'])}</div>")
    lines.append(f"<div><strong>Address:</strong> {escape(case.get('address') or '-')}</div>")

    return (
        '<div style="min-width: 250px;">'
        '<div style="margin-bottom: 8px;">'
        f'<strong style="color: #080707; font-size: 14px;">{escape(case.get("hotelName") or "")}</strong>'
        f'<span style="font-size: 12px; color: #706E6B;"> - {escape(case.get("caseNumber") or "")}</span>'
        "</div>"
        f'<div style="font-size: 13px; color: #706E6B; margin-bottom: 12px;">{"".join(lines)}</div>'
        '<div class="popup-buttons">'
        f'<a href="{escape(link)}" target="_blank" class="popup-btn directions">Directions</a>'
        f'<form method="post" action="{resolve_action_url(case["id"])}" class="popup-form">'
        '<button type="submit" class="popup-btn resolve">Resolve</button>'
        "</form>"
        "</div>"
        "</div>"
    )


def home_icon_html(home: Dict[str, Any]) -> str:
    """Div-icon markup for the headquarters marker."""
    return (
        '<div class="marker headquarters">'
        '<div class="marker-icon"></div>'
        f'<div class="marker-label">{escape(home.get("name", ""))}</div>'
        "</div>"
    )


def home_popup_html(home: Dict[str, Any]) -> str:
    """Popup for the headquarters marker."""
    return (
        '<div style="margin-bottom: 8px;">'
        f'<strong style="color: #080707; font-size: 14px;">{escape(home.get("name", ""))}</strong>'
        "</div>"
        '<div style="font-size: 13px; color: #706E6B;">'
        f'<div>{escape(home.get("description", ""))}</div>'
        f'<div>{escape(home.get("address", ""))}</div>'
        "</div>"
    )


def current_location_icon_html() -> str:
    """Div-icon markup for the pulsing current-location marker."""
    return (
        '<div class="marker current-location">'
        f'<div class="marker-center">{PIN_SVG}</div>'
        '<div class="marker-ring"></div>'
        '<div class="marker-ring-outer"></div>'
        "</div>"
    )
