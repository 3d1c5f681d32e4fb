"""
Case Map FastAPI Application

Main entry point for the case map, serving the case API, the map page and
the toast notification stream.

Author: Case Map maintainers
Date: 2026-10-18
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import StreamingResponse

from database import init_db
from server.broadcast import event_generator, subscribe, unsubscribe
from server.cases import router as cases_router
from server.map_view import router as map_view_router
from user_context import get_current_user

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Case Map", lifespan=lifespan)

# Include all routers
app.include_router(cases_router)
app.include_router(map_view_router)

# ============================================================
# SSE Endpoint
# ============================================================


@app.get("/api/stream")
async def stream(request: Request, user: str = Depends(get_current_user)):
    """Server-Sent Events (SSE) endpoint for toast notifications.

    Clients connect to this endpoint to receive the success and error
    messages produced when the map loads data or resolves a case.

    Args:
        request: FastAPI request object.
        user: Caller whose notifications are streamed.

    Returns:
        StreamingResponse with text/event-stream content type.
    """
    queue = subscribe(user)

    async def events():
        try:
            async for event in event_generator(queue):
                if await request.is_disconnected():
                    break
                yield event
        finally:
            unsubscribe(user, queue)

    return StreamingResponse(events(), media_type="text/event-stream")
