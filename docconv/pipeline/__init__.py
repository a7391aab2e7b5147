"""High-level orchestration of a conversion run."""

from .process import (
    IDLE,
    RUNNING,
    ConversionOrchestrator,
    ConversionRequest,
)

__all__ = [
    "IDLE",
    "RUNNING",
    "ConversionOrchestrator",
    "ConversionRequest",
]
