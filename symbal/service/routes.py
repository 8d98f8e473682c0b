"""FastAPI endpoints under /functions.

Both function endpoints answer 200 with a fallback payload when the LLM
fails; 400 is reserved for requests missing their required fields.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from symbal.remote import GENERATE_STORY, JUDGE_SUBMISSION

from .handlers import FunctionHandlers

router = APIRouter()


def _handlers(request: Request) -> FunctionHandlers:
    return request.app.state.handlers


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.post(f"/{GENERATE_STORY}")
async def generate_story(body: dict, request: Request):
    """Generate `count` task descriptors for a mood."""
    if not body.get("mood"):
        raise HTTPException(400, "mood is required")
    try:
        return await _handlers(request).generate_story(body)
    except (ValidationError, TypeError) as e:
        raise HTTPException(400, f"Invalid generation request: {e}")


@router.post(f"/{JUDGE_SUBMISSION}")
async def judge_submission(body: dict, request: Request):
    """Judge one submission against its originating task."""
    submission = body.get("submission")
    original_task = body.get("originalTask")
    if not isinstance(submission, dict) or not isinstance(original_task, dict):
        raise HTTPException(400, "submission and originalTask are required")
    try:
        return await _handlers(request).judge_submission(submission, original_task)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid submission: {e}")
