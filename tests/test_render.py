"""
Tests for marker and popup markup.

Run with: python -m pytest tests/test_render.py
"""

from logic.render import (
    case_icon_html,
    case_popup_html,
    directions_url,
    format_days,
    home_popup_html,
    resolve_action_url,
)


def make_case(**overrides):
    case = {
        "id": "5003X",
        "caseNumber": "00001024",
        "subject": "Water leak",
        "issueCategory": "Plumbing",
        "estimatedDelay": 5,
        "constructionPhase": "Interior",
        "constructionProgress": 60,
        "phone": "02-123-4567",
        "address": "Jung-gu, Seoul",
        "hotelName": "Grand Seoul Hotel",
        "lat": 37.5665,
        "lng": 126.978,
    }
    case.update(overrides)
    return case


def test_directions_url_encodes_name():
    url = directions_url("Grand Seoul Hotel", 37.5665, 126.978)
    assert url == "https://map.kakao.com/link/to/Grand%20Seoul%20Hotel,37.5665,126.978"


def test_directions_url_encodes_non_ascii_and_commas():
    url = directions_url("호텔, 서울", 1.0, 2.0)
    assert "호텔" not in url
    assert "%2C" in url
    assert url.endswith(",1.0,2.0")


def test_format_days():
    assert format_days(5) == "5 days"
    assert format_days(5.0) == "5 days"
    assert format_days(1.5) == "1.5 days"
    assert format_days(None) == "0 days"


def test_popup_contains_case_details():
    html = case_popup_html(make_case())

    assert "Grand Seoul Hotel" in html
    assert "00001024" in html
    assert "Water leak" in html
    assert "Plumbing" in html
    assert "Interior (60%)" in html
    assert "02-123-4567" in html
    assert "Jung-gu, Seoul" in html
    assert "color: #FF0000" in html
    assert "5 days" in html
    assert "https://map.kakao.com/link/to/Grand%20Seoul%20Hotel,37.5665,126.978" in html


def test_popup_omits_phone_line_when_missing():
    html = case_popup_html(make_case(phone=None))
    assert "Phone:" not in html

    html = case_popup_html(make_case(phone=""))
    assert "Phone:" not in html


def test_popup_fallbacks():
    html = case_popup_html(
        make_case(
            subject=None,
            issueCategory=None,
            constructionPhase=None,
            constructionProgress=None,
            address=None,
            estimatedDelay=None,
        )
    )

    assert "No subject" in html
    assert "Uncategorised" in html
    assert "- (0%)" in html
    assert "<strong>Address:</strong> -" in html
    assert "color: #FFD700" in html


def test_popup_escapes_markup():
    html = case_popup_html(make_case(subject="<script>alert(1)</script>"))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_popup_resolve_control_targets_case():
    html = case_popup_html(make_case(id="500/X"))
    assert 'action="/api/map/cases/500%2FX/resolve"' in html
    assert resolve_action_url("C1") == "/api/map/cases/C1/resolve"


def test_case_icon_uses_severity():
    assert "marker case medium" in case_icon_html(make_case(estimatedDelay=1))
    assert "background: #FFA500" in case_icon_html(make_case(estimatedDelay=1))
    assert "marker case high" in case_icon_html(make_case(estimatedDelay=3))


def test_home_popup():
    html = home_popup_html({"name": "Head Office", "description": "TenX Tower", "address": "Seongnam"})
    assert "Head Office" in html
    assert "TenX Tower" in html
    assert "Seongnam" in html
