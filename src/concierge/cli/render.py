"""CLI renderer for Concierge."""

from __future__ import annotations

import json
import threading
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from concierge.broadcast import BroadcastDraft, DeliveryReport, DraftStatus
from concierge.conversation import Turn, TurnAuthor
from concierge.dispatch import (
    AnalyticsView,
    AnswerView,
    ClarificationView,
    DeliveryStatusView,
    ScheduleView,
)


def confidence_label(score: float) -> str:
    if score >= 0.8:
        return "High"
    if score >= 0.5:
        return "Medium"
    return "Low"


def _item_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    return json.dumps(item, ensure_ascii=False)


class Renderer:
    """Terminal renderer using Rich for output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None
        self._print_lock = threading.Lock()

    def info(self, message: str) -> None:
        self._print(message)

    def error(self, message: str) -> None:
        self._print(f"[bold red]Error:[/bold red] {escape(message)}")

    def welcome(self, session_id: str, role: str) -> None:
        self._print("[bold blue]Concierge[/bold blue] - ask anything, approve broadcasts before they go out.")
        self._print(f"[bold]Session:[/bold] [cyan]{session_id}[/cyan]  [bold]Role:[/bold] [magenta]{role}[/magenta]")
        self._print("[dim]/broadcast <text>  /drafts  /approve <id>  /reject <id>  /retry  /role <role>  /suggest <n>  quit[/dim]")

    async def get_user_input(self) -> str:
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        with patch_stdout(raw=True):
            return await self._prompt_session.prompt_async("> ")

    def turn(self, turn: Turn) -> None:
        if turn.author is TurnAuthor.USER:
            self._print(f"[bold cyan]You:[/bold cyan] {escape(turn.text)}")
            return

        header = "[bold yellow]Concierge:[/bold yellow]"
        if turn.confidence is not None:
            header += f" [dim]{confidence_label(turn.confidence)} ({round(turn.confidence * 100)}%)[/dim]"
        if turn.intent:
            header += f" [dim]#{escape(turn.intent)}[/dim]"
        self._print(header)

        view = turn.view()
        if isinstance(view, ScheduleView):
            self._print(escape(turn.text))
            self._schedule(view)
        elif isinstance(view, AnalyticsView):
            self._print(escape(turn.text))
            self._analytics(view)
        elif isinstance(view, DeliveryStatusView):
            self._print(escape(turn.text))
            self._print(f"[bold]Broadcast ID:[/bold] {escape(view.broadcast_id)} ({escape(view.delivery_status)})")
            self.delivery(view)
        elif isinstance(view, ClarificationView):
            self._print(f"[yellow]Need clarification:[/yellow] {escape(view.prompt)}")
        elif isinstance(view, AnswerView):
            self._answer(view)
        elif turn.failed:
            self._print(f"[red]{escape(turn.text)}[/red]")
        else:
            self._print(escape(turn.text))

    def drafts(self, drafts: list[BroadcastDraft]) -> None:
        pending = [draft for draft in drafts if draft.status is DraftStatus.DRAFT]
        history = [draft for draft in drafts if draft.status is not DraftStatus.DRAFT]
        self._print(f"[bold]Pending Approvals ({len(pending)})[/bold]")
        if not pending:
            self._print("[dim]No drafts awaiting approval.[/dim]")
        for draft in pending:
            self.draft(draft)
        if history:
            self._print("[bold]Broadcast History[/bold]")
            table = Table("id", "subject", "status", "created")
            for draft in history:
                table.add_row(draft.id, draft.subject, draft.status.value, draft.created_at.isoformat(timespec="seconds"))
            self._print_renderable(table)

    def draft(self, draft: BroadcastDraft) -> None:
        payload = draft.payload
        compliance = "green" if payload.compliance_passed else "red"
        self._print(f"[bold blue]{escape(draft.id)}[/bold blue] [{draft.status.value}] {escape(payload.subject)}")
        self._print(escape(payload.draft_message))
        self._print(
            f"[dim]audience={escape(payload.audience_filter.role)} "
            f"recipients={payload.estimated_recipients} urgency={escape(payload.urgency)}[/dim] "
            f"[{compliance}]{escape(payload.compliance_check)}[/{compliance}]"
        )
        if draft.report is not None:
            self.delivery(draft.report)

    def delivery(self, report: DeliveryReport) -> None:
        self._print(
            f"Success rate [bold]{report.success_rate:.1f}%[/bold]  "
            f"[green]delivered {report.delivered}[/green]  "
            f"[red]failed {report.failed}[/red]  "
            f"[yellow]pending {report.pending}[/yellow]  of {report.total_recipients}"
        )
        violation = report.integrity_violation
        if violation is not None:
            self._print(f"[bold red]Inconsistent delivery figures:[/bold red] {escape(violation)}")
        for recipient in report.failed_recipients:
            self._print(f"  [red]x {escape(recipient.recipient_id)}: {escape(recipient.reason)}[/red]")

    def _schedule(self, view: ScheduleView) -> None:
        if view.recommended_slot is not None:
            slot = view.recommended_slot
            self._print(f"[green]Recommended:[/green] {escape(slot.start)} - {escape(slot.end)} {escape(slot.reason)}")
        if view.available_slots:
            table = Table("start", "end", "available")
            for slot in view.available_slots:
                table.add_row(slot.start, slot.end, str(slot.participants_available))
            self._print_renderable(table)
        for conflict in view.conflicts:
            self._print(f"[red]conflict[/red] {escape(conflict.participant)} {escape(conflict.time)}: {escape(conflict.reason)}")
        if view.scheduling_notes:
            self._print(f"[dim]{escape(view.scheduling_notes)}[/dim]")

    def _analytics(self, view: AnalyticsView) -> None:
        sections = (
            ("Trends Identified", view.trends_identified),
            ("Recommendations", view.recommendations),
            ("Correlations", view.correlations),
            ("What-If Scenarios", view.what_if_scenarios),
        )
        for title, items in sections:
            if not items:
                continue
            self._print(f"[bold magenta]{title}:[/bold magenta]")
            for item in items:
                self._print(f"  - {escape(_item_text(item))}")

    def _answer(self, view: AnswerView) -> None:
        self._print(escape(view.final_answer))
        if view.follow_up_suggestions:
            self._print("[dim]Suggestions:[/dim]")
            for index, suggestion in enumerate(view.follow_up_suggestions, start=1):
                self._print(f"  [dim]{index}.[/dim] {escape(suggestion)}")

    def _print(self, message: str) -> None:
        with self._print_lock:
            self.console.print(message)

    def _print_renderable(self, renderable: Table) -> None:
        with self._print_lock:
            self.console.print(renderable)
