"""Pipeline orchestration for template-fill sessions."""

from filler.pipeline.orchestrator import (
    ProcessingState,
    SessionResult,
    TemplateFillSession,
    create_session,
)

__all__ = [
    "ProcessingState",
    "SessionResult",
    "TemplateFillSession",
    "create_session",
]
