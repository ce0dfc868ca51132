"""Interactive chat commands."""

from __future__ import annotations

import shlex

from loguru import logger

from concierge.conversation import Turn
from concierge.dispatch import AnswerView
from concierge.errors import ConciergeError
from concierge.session import Session

from .render import Renderer

QUIT_COMMANDS = frozenset({"quit", "exit", "q"})


class ChatController:
    """Turns one input line into a session action and renders what changed."""

    def __init__(self, session: Session, renderer: Renderer) -> None:
        self._session = session
        self._renderer = renderer
        self._rendered = 0

    async def handle_line(self, line: str) -> bool:
        """Handle one line. Returns False when the user asked to leave."""
        stripped = line.strip()
        if not stripped:
            return True
        if stripped.lower() in QUIT_COMMANDS:
            self._renderer.info("Goodbye!")
            return False

        try:
            if stripped.startswith("/"):
                await self._command(stripped)
            else:
                await self._session.submit(stripped)
        except ConciergeError as exc:
            self._renderer.error(str(exc))
        self.render_new_turns()
        return True

    def render_new_turns(self) -> None:
        turns = self._session.timeline()
        for turn in turns[self._rendered :]:
            self._renderer.turn(turn)
        self._rendered = len(turns)

    async def _command(self, raw: str) -> None:
        name, _, rest = raw[1:].partition(" ")
        rest = rest.strip()
        logger.debug("cli.command name={}", name)
        if name == "broadcast":
            await self._compose(rest)
        elif name == "retry":
            await self._compose(self._session.workflow.pending_input)
        elif name == "drafts":
            self._renderer.drafts(self._session.broadcasts.list())
        elif name == "approve":
            draft = await self._session.approve(_single_arg(rest, "approve"))
            self._renderer.draft(draft)
        elif name == "reject":
            draft = self._session.reject(_single_arg(rest, "reject"))
            self._renderer.info(f"Rejected {draft.id}")
        elif name == "role":
            self._session.switch_role(_single_arg(rest, "role"))
            self._renderer.info(f"Role switched to {self._session.role}")
        elif name == "suggest":
            await self._suggest(rest)
        else:
            self._renderer.error(f"unknown command: /{name}")

    async def _compose(self, text: str) -> None:
        if not text:
            self._renderer.error("nothing to compose")
            return
        result = await self._session.compose(text)
        if result is None:
            return
        if result.draft is not None:
            self._renderer.draft(result.draft)
            return
        reason = result.error.detail if result.error else f"status {result.status}"
        self._renderer.error(f"Draft not created ({reason}). Use /retry to resubmit: {result.text}")

    async def _suggest(self, rest: str) -> None:
        suggestions = _last_suggestions(self._session.timeline())
        try:
            index = int(rest) - 1
        except ValueError:
            self._renderer.error("usage: /suggest <number>")
            return
        if not 0 <= index < len(suggestions):
            self._renderer.error("no such suggestion")
            return
        await self._session.submit(suggestions[index])


def _single_arg(rest: str, command: str) -> str:
    parts = shlex.split(rest)
    if len(parts) != 1:
        raise ConciergeError(f"usage: /{command} <value>")
    return parts[0]


def _last_suggestions(turns: tuple[Turn, ...]) -> list[str]:
    for turn in reversed(turns):
        view = turn.view()
        if view is None:
            continue
        if isinstance(view, AnswerView):
            return list(view.follow_up_suggestions)
        return []
    return []
