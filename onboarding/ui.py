"""Shared terminal UI pieces for the setup wizard."""

import logging
import sys
from enum import Enum
from pathlib import Path

import questionary
from questionary import Choice, Style

from core.utils.formatting import format_progress
from onboarding.machine import TOTAL_STEPS, BrowserPane, Step, StepView

logger = logging.getLogger(__name__)

STYLE = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "bold"),
        ("answer", "fg:green bold"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:green"),
        ("instruction", "fg:#888888 italic"),
    ]
)

STEP_TITLES = {
    Step.WELCOME: "Welcome",
    Step.DOWNLOADS: "Downloads directory",
    Step.CREDENTIALS: "Admin password",
    Step.INTEGRATION: "Webhook notifications",
    Step.BROWSER: "Browser",
    Step.SUMMARY: "Summary",
}


class Nav(Enum):
    NEXT = "next"
    BACK = "back"
    QUIT = "quit"


def print_header(step: Step) -> None:
    print(f"\n── Step {step + 1}/{TOTAL_STEPS}: {STEP_TITLES[step]} ──\n")


def print_error(message: str) -> None:
    print(f"  ✗ {message}\n")


async def ask_nav(view: StepView) -> Nav:
    """Ask where to go from the current page. Ctrl+C counts as quit."""
    choices = [Choice(view.next_label, Nav.NEXT)]
    if view.back_visible:
        choices.append(Choice("Back", Nav.BACK))
    choices.append(Choice("Quit setup", Nav.QUIT))
    answer = await questionary.select("Continue?", choices=choices, style=STYLE).ask_async()
    return answer or Nav.QUIT


async def ask_directory(title: str, default: Path) -> Path | None:
    """Terminal stand-in for a native folder picker. Creates the folder if missing."""
    answer = await questionary.path(
        f"{title}:",
        default=str(default),
        only_directories=True,
        style=STYLE,
    ).ask_async()
    if not answer or not answer.strip():
        return None
    path = Path(answer.strip()).expanduser().resolve()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Cannot create %s: %s", path, e)
        print_error(f"Cannot use {path}: {e}")
        return None
    return path


def render_progress(view: StepView) -> None:
    """on_render hook: redraw the download progress line in place."""
    if view.step != Step.BROWSER or view.browser_pane is not BrowserPane.PROGRESS:
        return
    if view.progress is None:
        sys.stdout.write("\r  Starting download...")
    else:
        p = view.progress
        line = format_progress(p.downloaded_bytes, p.total_bytes, p.percent)
        sys.stdout.write("\r  " + line.ljust(40))
    sys.stdout.flush()
