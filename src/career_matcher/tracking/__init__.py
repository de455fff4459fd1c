"""Application lifecycle tracking."""

from .tracker import TRANSITIONS, ApplicationRepository, ApplicationTracker, TransitionEvent, progress

__all__ = [
    "TRANSITIONS",
    "ApplicationRepository",
    "ApplicationTracker",
    "TransitionEvent",
    "progress"
]
