"""
FastAPI dependencies shared by the routers.
"""

from typing import Optional

from fastapi import Header, HTTPException, Request

from gemini.errors import GenerationError, NoModelAvailable, QuotaExceeded
from gemini.orchestrator import GenerationOrchestrator


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """The process-wide orchestrator created at startup (see main.lifespan)."""
    return request.app.state.orchestrator


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Owner of every record; identity itself is established upstream."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return x_user_id.strip()


def generation_http_error(exc: GenerationError, action: str) -> HTTPException:
    """Map an orchestrator failure to the HTTP error returned to the client."""
    if isinstance(exc, QuotaExceeded):
        status_code = 429
    elif isinstance(exc, NoModelAvailable):
        status_code = 503
    else:
        status_code = 502
    return HTTPException(status_code=status_code, detail=f"Failed to {action}. {exc.user_message}")
