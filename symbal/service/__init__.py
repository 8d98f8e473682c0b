"""Remote side of the generate-story and judge-submission calls.

A small FastAPI app that owns the LLM connection:

  POST /functions/generate-story    {mood, userExperiences?, userLevel?,
                                     completedGames?, lastTaskTypes?, count?}
                                    → {success, stories, count, error?}
  POST /functions/judge-submission  {submission, originalTask}
                                    → {success, judgment, error?}
  GET  /functions/health            → {status: "ok"}

Every payload it returns has already been through symbal.validation.
"""

from .app import create_app  # noqa: F401
from .handlers import FunctionHandlers  # noqa: F401
