"""Multi-language review workflow."""

from frame_translate.review.state import (
    LanguageSession,
    LanguageState,
    NodeMapping,
    ReviewItem,
    SessionSummary,
)
from frame_translate.review.ui import ConsoleReviewUI, RecordingReviewUI, ReviewUI
from frame_translate.review.workflow import ReviewWorkflowManager, WorkflowOptions

__all__ = [
    "LanguageSession",
    "LanguageState",
    "NodeMapping",
    "ReviewItem",
    "SessionSummary",
    "ConsoleReviewUI",
    "RecordingReviewUI",
    "ReviewUI",
    "ReviewWorkflowManager",
    "WorkflowOptions",
]
