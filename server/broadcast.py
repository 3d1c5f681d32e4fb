"""
Server-sent events (SSE) broadcasting module.

This module handles toast notifications via Server-Sent Events, managing
subscriber connections and pushing map notifications to every client of the
user they belong to.

Author: Case Map maintainers
Date: 2026-10-18
"""

import asyncio
import json
from datetime import datetime
from typing import Dict, Set

# SSE subscribers per user id (asyncio.Queue instances)
subscribers: Dict[str, Set[asyncio.Queue]] = {}


def subscribe(user: str) -> asyncio.Queue:
    """Register a new SSE queue for a user."""
    queue = asyncio.Queue()
    subscribers.setdefault(user, set()).add(queue)
    return queue


def unsubscribe(user: str, queue: asyncio.Queue) -> None:
    queues = subscribers.get(user)
    if queues is None:
        return
    queues.discard(queue)
    if not queues:
        subscribers.pop(user, None)


async def event_generator(queue: asyncio.Queue):
    """Generate SSE events from the queue.

    Args:
        queue: Async queue to read events from.

    Yields:
        SSE formatted event strings.
    """
    try:
        while True:
            data = await queue.get()
            yield f"data: {json.dumps(data)}\n\n"
    except asyncio.CancelledError:
        pass


async def broadcast(user: str, payload: dict):
    """Push a payload to all SSE subscribers of a user.

    Args:
        user: User whose clients receive the payload.
        payload: JSON-serialisable event body.
    """
    for queue in list(subscribers.get(user, ())):
        await queue.put(payload)


async def broadcast_notification(user: str, title: str, message: str, variant: str):
    """Send a toast notification to a user's clients."""
    await broadcast(
        user,
        {
            "type": "toast",
            "time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "title": title,
            "message": message,
            "variant": variant,
        },
    )
