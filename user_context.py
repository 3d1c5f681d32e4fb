"""User context for case ownership.

This module provides the identity of the caller. Authentication itself
happens upstream; the authenticated user id arrives in the X-User-ID header.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Header

load_dotenv()

DEFAULT_USER = os.getenv("CASE_MAP_DEFAULT_USER", "anonymous")


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
) -> str:
    """Get current user identifier from request.

    Args:
        x_user_id: User ID from X-User-ID header.

    Returns:
        User identifier string. Defaults to CASE_MAP_DEFAULT_USER when the
        header is missing.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()

    return DEFAULT_USER
