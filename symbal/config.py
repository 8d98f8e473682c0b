"""Runtime settings.

Every component takes a Settings instance at construction time. The
environment is read in exactly one place, load_settings(), so the core can be
exercised in tests without any environment setup.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

DEFAULT_ENV_FILE = Path(__file__).parent.parent / ".env"


class Settings(BaseModel):
    # Remote function service (generate-story / judge-submission)
    functions_url: str = "http://localhost:13013/functions"
    functions_key: str = ""
    request_timeout: float = Field(15.0, gt=0)

    # Text/multimodal LLM used by the remote service
    llm_base_url: str = "https://generativelanguage.googleapis.com"
    llm_api_key: str = ""
    llm_model: str = "gemini-1.5-flash"
    llm_timeout: float = Field(8.0, gt=0)

    # Pause between per-descriptor LLM calls, in seconds
    generation_delay: float = Field(0.5, ge=0)
    max_batch: int = Field(5, ge=1)
    # Wall-clock budget for one generate-story batch, below request_timeout.
    # Stories not finished in time are filled with fallbacks.
    generation_deadline: float = Field(12.0, gt=0)

    # Business rules owned by the progress ledger
    reward_cap: int = Field(10, ge=1)
    premium_threshold: int = Field(1000, ge=1)

    data_dir: Path = Path("data")

    @model_validator(mode="after")
    def _check_timeouts(self) -> Settings:
        if self.generation_deadline >= self.request_timeout:
            raise ValueError("generation_deadline must be shorter than request_timeout")
        if self.llm_timeout > self.generation_deadline:
            raise ValueError("llm_timeout must not exceed generation_deadline")
        return self


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from a .env file and the process environment."""
    load_dotenv(env_file or DEFAULT_ENV_FILE)

    values: dict[str, str] = {}
    for field_name in Settings.model_fields:
        raw = os.getenv(f"SYMBAL_{field_name.upper()}")
        if raw is not None:
            values[field_name] = raw

    # The LLM key is commonly exported under the provider's own name
    if "llm_api_key" not in values and os.getenv("GEMINI_API_KEY"):
        values["llm_api_key"] = os.environ["GEMINI_API_KEY"]

    return Settings.model_validate(values)
