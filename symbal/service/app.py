import logging
import random

from fastapi import FastAPI

from symbal.config import Settings, load_settings
from symbal.llm import LLM, GeminiLLM

from .handlers import FunctionHandlers
from .routes import router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    llm: LLM | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    resolved = settings or load_settings()
    if llm is None:
        if not resolved.llm_api_key:
            logger.warning("No LLM API key configured; every call will fall back")
        llm = GeminiLLM.from_settings(resolved)

    app = FastAPI(title="Symbal Functions")
    app.state.settings = resolved
    app.state.handlers = FunctionHandlers(llm, resolved, rng=rng)
    app.include_router(router, prefix="/functions")
    return app
