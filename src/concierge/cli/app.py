"""Typer entrypoints for Concierge."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from concierge.config import load_settings
from concierge.errors import ConciergeError
from concierge.logging_utils import configure_logging
from concierge.session import Session

from .controller import ChatController
from .render import Renderer

app = typer.Typer(
    name="concierge",
    help="Ask questions and approve broadcasts through remote agents.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _build_session(workspace: Optional[Path], role: Optional[str]) -> Session:
    settings = load_settings(workspace or Path.cwd())
    configure_logging(profile="chat", level=settings.log_level)
    session = Session.build(settings)
    if role:
        session.switch_role(role)
    return session


@app.command()
def chat(
    workspace: Optional[Path] = typer.Option(None, help="Directory holding the .env file"),
    role: Optional[str] = typer.Option(None, help="student, faculty, admin or principal"),
) -> None:
    """Start an interactive session."""
    renderer = Renderer()
    try:
        session = _build_session(workspace, role)
    except ConciergeError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc
    asyncio.run(_chat_loop(session, renderer))


async def _chat_loop(session: Session, renderer: Renderer) -> None:
    controller = ChatController(session, renderer)
    renderer.welcome(session.session_id, session.role)
    async with session:
        while True:
            try:
                line = await renderer.get_user_input()
            except (KeyboardInterrupt, EOFError):
                renderer.info("\nGoodbye!")
                break
            if not await controller.handle_line(line):
                break


@app.command()
def ask(
    question: str,
    workspace: Optional[Path] = typer.Option(None, help="Directory holding the .env file"),
    role: Optional[str] = typer.Option(None, help="student, faculty, admin or principal"),
) -> None:
    """Ask one question and print the answer."""
    renderer = Renderer()
    try:
        session = _build_session(workspace, role)
    except ConciergeError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc
    asyncio.run(_ask_once(session, renderer, question))


async def _ask_once(session: Session, renderer: Renderer, question: str) -> None:
    async with session:
        await ChatController(session, renderer).handle_line(question)
