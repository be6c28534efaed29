"""Request-scoped dependencies shared by every route."""

import json

from fastapi import Request


async def capture_request_body(request: Request) -> None:
    """Keep the parsed JSON body on request.state so the error normalizer can log it."""
    raw = await request.body()
    if not raw:
        request.state.json_body = None
        return
    try:
        request.state.json_body = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        request.state.json_body = None
