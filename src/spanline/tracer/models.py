"""Value types attached to traces and spans."""

from __future__ import annotations

import traceback as _traceback
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpanType(StrEnum):
    """The kind of operation a span records."""

    GENERAL = "general"
    LLM = "llm"
    TOOL = "tool"
    GUARDRAIL = "guardrail"


class Usage(BaseModel):
    """Token usage reported by an LLM call.

    Parameters:
        prompt_tokens: Tokens in the prompt.
        completion_tokens: Tokens in the completion.
        total_tokens: Total tokens, if reported separately.
    """

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int | None = Field(default=None, ge=0)
    completion_tokens: int | None = Field(default=None, ge=0)
    total_tokens: int | None = Field(default=None, ge=0)

    def to_payload(self) -> dict[str, int]:
        return self.model_dump(exclude_none=True)


class ErrorInfo(BaseModel):
    """Details of an exception raised inside a traced operation."""

    model_config = ConfigDict(frozen=True)

    message: str
    exception_type: str
    traceback: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        """Capture the message, qualified type name and formatted traceback of ``exc``."""
        exc_type = type(exc)
        return cls(
            message=str(exc),
            exception_type=f"{exc_type.__module__}.{exc_type.__qualname__}",
            traceback="".join(_traceback.format_exception(exc)),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()
