"""
Review front ends.

A review UI receives outbound messages from the workflow manager and sends
events back through ``ReviewWorkflowManager.handle_event``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from frame_translate.models import (
    AbandonReviewEvent,
    ApplyChangesEvent,
    HighlightNodeEvent,
    LoadReviewMessage,
    NotifyMessage,
    ReviewCompleteMessage,
    ReviewEntry,
    RevertChangesEvent,
    UIMessage,
    UploadTranslationsEvent,
)

if TYPE_CHECKING:
    from frame_translate.review.workflow import ReviewWorkflowManager


class ReviewUI(ABC):
    """Abstract base class for review front ends."""

    @abstractmethod
    def send(self, message: UIMessage) -> None:
        """Deliver a message from the workflow to the UI."""
        ...


class RecordingReviewUI(ReviewUI):
    """Review UI that records every message it receives."""

    def __init__(self) -> None:
        self.messages: list[UIMessage] = []

    def send(self, message: UIMessage) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[UIMessage]:
        return [message for message in self.messages if message.type == message_type]

    @property
    def reviews(self) -> list[LoadReviewMessage]:
        return [m for m in self.messages if isinstance(m, LoadReviewMessage)]

    @property
    def notifications(self) -> list[NotifyMessage]:
        return [m for m in self.messages if isinstance(m, NotifyMessage)]


_ACTIONS = {
    "h": "highlight",
    "e": "edit",
    "a": "apply",
    "r": "revert",
    "u": "upload",
    "x": "abandon",
}


class ConsoleReviewUI(ReviewUI):
    """
    Interactive terminal review using rich.

    Shows each language's queue as a table and turns prompt answers into
    review events.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.current: LoadReviewMessage | None = None
        self.finished = False

    def send(self, message: UIMessage) -> None:
        if isinstance(message, LoadReviewMessage):
            self.current = message
            self._show_review(message)
        elif isinstance(message, ReviewCompleteMessage):
            self.current = None
            self.finished = True
            done = ", ".join(message.languages) or "none"
            self.console.print(f"\n[green]Review complete[/green] (done: {done})")
        elif isinstance(message, NotifyMessage):
            style = "red" if message.error else "dim"
            self.console.print(f"[{style}]{message.message}[/{style}]")

    def _show_review(self, message: LoadReviewMessage) -> None:
        table = Table(
            title=f"Review {message.lang} ({message.lang_index + 1}/{message.total_langs})"
        )
        table.add_column("#", style="dim", justify="right")
        table.add_column("Source", style="cyan")
        table.add_column("Translation", style="green")
        table.add_column("Applied", justify="center")
        for number, entry in enumerate(message.translations, 1):
            table.add_row(
                str(number),
                entry.characters,
                entry.characters_translated,
                "[green]yes[/green]" if entry.applied else "-",
            )
        self.console.print(table)

    def _pick(self, entries: list[ReviewEntry]) -> ReviewEntry | None:
        answer = Prompt.ask("Item number", console=self.console, default="1")
        try:
            return entries[int(answer) - 1]
        except (ValueError, IndexError):
            self.console.print(f"[red]No item {answer}[/red]")
            return None

    async def run(self, manager: ReviewWorkflowManager) -> None:
        """Prompt for review actions until every language is resolved."""
        while self.current is not None and not self.finished:
            review = self.current
            lang = review.lang
            self.console.print(
                Panel(
                    "[h]ighlight  [e]dit  [a]pply  [r]evert  [u]pload  [x] abandon",
                    title=f"[bold]{lang}[/bold]",
                    border_style="cyan",
                )
            )
            choice = Prompt.ask(
                "Action", console=self.console, choices=list(_ACTIONS), default="u"
            )
            action = _ACTIONS[choice]

            if action == "upload":
                await manager.handle_event(UploadTranslationsEvent(lang=lang))
            elif action == "abandon":
                await manager.handle_event(AbandonReviewEvent(lang=lang))
            else:
                entries = [item.to_entry() for item in manager.sessions[lang].queue]
                entry = self._pick(entries)
                if entry is None:
                    continue
                if action == "highlight":
                    await manager.handle_event(HighlightNodeEvent(node_id=entry.node_id, lang=lang))
                elif action == "revert":
                    await manager.handle_event(RevertChangesEvent(node_id=entry.node_id, lang=lang))
                else:
                    if action == "edit":
                        text = Prompt.ask(
                            "Translation",
                            console=self.console,
                            default=entry.characters_translated,
                        )
                        entry = entry.model_copy(update={"characters_translated": text})
                    await manager.handle_event(ApplyChangesEvent(translation=entry, lang=lang))
                if self.current is review:
                    self._show_review(
                        review.model_copy(
                            update={
                                "translations": [
                                    item.to_entry() for item in manager.sessions[lang].queue
                                ]
                            }
                        )
                    )
