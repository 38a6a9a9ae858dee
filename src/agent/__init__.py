"""Response enhancement and suggested-action dispatch."""

from .response_parser import (
    ResponseParser,
    EnhancedResponse,
    DetectedEntity,
    ActionableData,
    SuggestedAction,
)
from .actions import ActionDispatcher

__all__ = [
    "ResponseParser",
    "EnhancedResponse",
    "DetectedEntity",
    "ActionableData",
    "SuggestedAction",
    "ActionDispatcher",
]
