"""
Server modules for the case map.

This package contains the FastAPI routers for the case API and the map
view, and the Server-Sent Events broadcaster used for toast notifications.

Author: Case Map maintainers
Date: 2026-10-18
"""
