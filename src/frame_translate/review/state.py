"""
Per-language review state.

Holds the review queue, the original-to-duplicate node mapping and the
lifecycle state of each target language in a session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from frame_translate.errors import MappingMismatchError
from frame_translate.models import ReviewEntry

logger = logging.getLogger(__name__)


class LanguageState(str, Enum):
    """Lifecycle of one target language."""

    TRANSLATING = "translating"
    AWAITING_REVIEW = "awaiting_review"
    REVIEWING = "reviewing"
    APPLIED = "applied"  # At least one reviewed item applied
    UPLOADED = "uploaded"
    COMPLETED = "completed"  # Nothing to review
    ABANDONED = "abandoned"
    FAILED = "failed"


REVIEW_STATES = (LanguageState.REVIEWING, LanguageState.APPLIED)


@dataclass
class ReviewItem:
    """A new translation awaiting human confirmation."""

    node_id: str
    source_text: str
    proposed_text: str
    proposed_markup: str
    source_markup: str = ""
    translated_text: str = ""
    markup: str = ""
    applied: bool = False

    def __post_init__(self) -> None:
        if not self.translated_text:
            self.translated_text = self.proposed_text
        if not self.markup:
            self.markup = self.proposed_markup

    @property
    def edited(self) -> bool:
        return self.translated_text != self.proposed_text

    def reset(self) -> None:
        """Drop edits and return to the proposed translation."""
        self.translated_text = self.proposed_text
        self.markup = self.proposed_markup
        self.applied = False

    def to_entry(self) -> ReviewEntry:
        return ReviewEntry(
            node_id=self.node_id,
            characters=self.source_text,
            characters_translated=self.translated_text,
            markup=self.markup,
            applied=self.applied,
        )


@dataclass
class NodeMapping:
    """
    Original node id to duplicate node id for one language.

    Built by positional correspondence of two parallel traversals; ids are
    never compared.
    """

    lang: str
    pairs: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, lang: str, original_ids: list[str], duplicate_ids: list[str]) -> NodeMapping:
        """
        Pair traversal results position by position.

        A length mismatch is logged; nodes past the shorter list stay unmapped.
        """
        if len(original_ids) != len(duplicate_ids):
            logger.warning(
                "Node count mismatch for %s: %d original vs %d duplicate text node(s)",
                lang,
                len(original_ids),
                len(duplicate_ids),
            )
        return cls(lang=lang, pairs=dict(zip(original_ids, duplicate_ids)))

    def lookup(self, node_id: str) -> str | None:
        return self.pairs.get(node_id)

    def require(self, node_id: str) -> str:
        """
        Return the duplicate id for an original node.

        Raises:
            MappingMismatchError: Node has no counterpart in the duplicate.
        """
        duplicate = self.pairs.get(node_id)
        if duplicate is None:
            raise MappingMismatchError(f"No duplicate node for {node_id} in {self.lang}")
        return duplicate

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass
class LanguageSession:
    """Everything the workflow tracks for one target language."""

    lang: str
    index: int
    state: LanguageState = LanguageState.TRANSLATING
    duplicate_id: str | None = None
    queue: list[ReviewItem] = field(default_factory=list)
    mapping: NodeMapping | None = None
    applied_directly: int = 0
    error: str | None = None

    def find(self, node_id: str) -> ReviewItem | None:
        for item in self.queue:
            if item.node_id == node_id:
                return item
        return None

    def fail(self, error: Exception | str) -> None:
        self.state = LanguageState.FAILED
        self.error = str(error)

    def release(self, state: LanguageState) -> None:
        """Finish the language, dropping its queue and mapping."""
        self.queue.clear()
        self.mapping = None
        self.state = state


@dataclass
class SessionSummary:
    """Outcome of a translation session."""

    frame_id: str
    states: dict[str, LanguageState] = field(default_factory=dict)
    duplicates: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    pending_review: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return [lang for lang, state in self.states.items() if state == LanguageState.FAILED]
