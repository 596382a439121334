import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from deps import generation_http_error, get_orchestrator, get_user_id
from gemini.errors import GenerationError
from gemini.orchestrator import GenerationOrchestrator
from gemini.tasks import OutreachRequest, generate_outreach_messages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["outreach"])


# ---------- Response schema ----------

class OutreachResponse(BaseModel):
    messages: list[str]


# ---------- Endpoint ----------

@router.post("/outreach/generate", response_model=OutreachResponse)
async def generate_outreach(
    body: OutreachRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    Drafts three recruiter outreach messages for the chosen platform,
    matching resume strengths against the job description.
    """
    if not body.platform.strip() or not body.job_description.strip():
        raise HTTPException(status_code=400, detail="Platform and job description are required")
    if not body.resume_text.strip():
        raise HTTPException(status_code=400, detail="Resume text is required")

    try:
        messages = await generate_outreach_messages(orchestrator, body)
    except GenerationError as exc:
        logger.error("Error generating outreach messages for %s: %s", user_id, exc)
        raise generation_http_error(exc, "generate outreach messages")

    return OutreachResponse(messages=messages)
