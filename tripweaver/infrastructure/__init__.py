"""Infrastructure services and cross-cutting utilities."""

from tripweaver.infrastructure.llm_factory import get_llm, is_llm_available, reset_llm
from tripweaver.infrastructure.logging import StructuredLogger, get_logger

__all__ = [
    "get_llm",
    "reset_llm",
    "is_llm_available",
    "StructuredLogger",
    "get_logger",
]
