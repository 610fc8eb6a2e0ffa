"""UI-side step machine for the six-page setup wizard.

The machine never touches stores directly: every write goes through the
SetupClient. Rendering is left to an on_render callback that receives an
immutable StepView after each state change.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import AsyncIterator, Callable

from onboarding.protocol import ProtocolError, SetupClient
from onboarding.session import CompleteRequest, Defaults, DownloadResult, ProgressEvent

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


class Step(IntEnum):
    WELCOME = 0
    DOWNLOADS = 1
    CREDENTIALS = 2
    INTEGRATION = 3
    BROWSER = 4
    SUMMARY = 5


TOTAL_STEPS = len(Step)


class BrowserPane(Enum):
    """Which part of the browser page is visible."""

    READY = "ready"
    DOWNLOAD = "download"
    PROGRESS = "progress"
    FAILED = "failed"


class StepError(Exception):
    """A leave action failed; the transition is aborted."""


@dataclass(frozen=True)
class SoftFailure:
    """Optional step action that failed without blocking the wizard."""

    step: Step
    message: str


@dataclass
class FormValues:
    downloads_dir: str = ""
    password: str = ""
    password_confirm: str = ""
    integration_enabled: bool = False
    webhook_url: str = ""


@dataclass
class StepState:
    current: Step = Step.WELCOME
    form: FormValues = field(default_factory=FormValues)
    browser_ready: bool = False
    password_set: bool = False
    integration_configured: bool = False
    busy: bool = False
    completed: bool = False
    error: str | None = None
    browser_pane: BrowserPane = BrowserPane.DOWNLOAD
    browser_skipped: bool = False
    progress: ProgressEvent | None = None
    download_error: str | None = None
    soft_failures: list[SoftFailure] = field(default_factory=list)
    summary: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class StepView:
    """Snapshot handed to the renderer."""

    step: Step
    next_label: str
    next_enabled: bool
    back_visible: bool
    error: str | None
    browser_pane: BrowserPane
    download_label: str
    progress: ProgressEvent | None
    download_error: str | None
    summary: tuple[tuple[str, str], ...]


class StepMachine:
    def __init__(
        self,
        client: SetupClient,
        on_render: Callable[[StepView], None] | None = None,
    ) -> None:
        self._client = client
        self._on_render = on_render
        self.state = StepState()
        self.defaults: Defaults | None = None
        self.view = self._build_view()

    async def start(self) -> None:
        """Load defaults from the controller. A failure leaves the form empty."""
        try:
            self.defaults = await self._client.get_defaults()
        except ProtocolError as e:
            logger.error("Failed to load defaults: %s", e)
        else:
            self.state.form.downloads_dir = self.defaults.downloads_dir
            if self.defaults.browser_found:
                self.state.browser_ready = True
        self._render()

    # Navigation

    async def advance(self) -> bool:
        """Validate, run the leave action, then move forward or complete.

        Returns True when the step changed or completion was sent.
        """
        state = self.state
        if state.busy or state.completed:
            return False

        error = self.validate()
        if error:
            state.error = error
            self._render()
            return False
        state.error = None

        state.busy = True
        self._render()
        try:
            await self._leave(state.current)
        except StepError as e:
            state.error = str(e)
            return False
        finally:
            state.busy = False
            self._render()

        if state.current == Step.SUMMARY:
            await self._complete()
            return True

        state.current = Step(state.current + 1)
        self._enter(state.current)
        self._render()
        return True

    def back(self) -> bool:
        state = self.state
        if state.busy or state.completed:
            return False
        if not 0 < state.current < Step.SUMMARY:
            return False
        state.current = Step(state.current - 1)
        state.error = None
        self._render()
        return True

    def validate(self) -> str | None:
        """Error message for the current step, or None when it may be left."""
        state = self.state
        if state.current == Step.CREDENTIALS:
            if len(state.form.password) < MIN_PASSWORD_LENGTH:
                return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            if state.form.password != state.form.password_confirm:
                return "Passwords do not match."
        if state.current == Step.BROWSER and not state.browser_ready:
            return "The browser must be ready before continuing."
        return None

    # Step actions

    async def _leave(self, step: Step) -> None:
        state = self.state
        if step == Step.CREDENTIALS and not state.password_set:
            try:
                await self._client.set_password(state.form.password)
            except ProtocolError as e:
                raise StepError(f"Failed to set password: {str(e) or 'Unknown error'}") from e
            state.password_set = True

        if step == Step.INTEGRATION and not state.integration_configured:
            url = state.form.webhook_url.strip()
            if state.form.integration_enabled and url:
                try:
                    await self._client.set_integration(url)
                except ProtocolError as e:
                    logger.warning("Integration setup skipped: %s", e)
                    state.soft_failures.append(SoftFailure(step, str(e)))
                else:
                    state.integration_configured = True

    def _enter(self, step: Step) -> None:
        state = self.state
        if step == Step.BROWSER:
            if (self.defaults and self.defaults.browser_found) or state.browser_ready:
                state.browser_ready = True
                state.browser_pane = BrowserPane.READY
            elif state.browser_pane is not BrowserPane.FAILED:
                state.browser_pane = BrowserPane.DOWNLOAD

        if step == Step.SUMMARY:
            state.summary = [
                ("Downloads", state.form.downloads_dir),
                ("Password", "Set"),
                ("Integration", "Enabled" if state.integration_configured else "Skipped"),
                ("Browser", "Ready" if state.browser_ready else "Not configured"),
            ]

    async def _complete(self) -> None:
        state = self.state
        state.completed = True
        self._render()
        request = CompleteRequest(
            downloads_dir=state.form.downloads_dir,
            integration_enabled=state.integration_configured,
        )
        try:
            await self._client.complete(request)
        except ProtocolError as e:
            logger.error("Completing setup failed: %s", e)
            state.error = f"Failed to finish setup: {e}"
            self._render()

    # Page actions

    async def pick_directory(self) -> str | None:
        if self.state.busy or self.state.completed:
            return None
        selected = await self._client.pick_directory()
        if selected:
            self.state.form.downloads_dir = selected
            self._render()
        return selected

    async def download_browser(self) -> DownloadResult:
        """Run the download request, following progress while it is in flight.

        Retriable: each call re-runs the full sequence on the controller.
        """
        state = self.state
        if state.busy or state.completed:
            return DownloadResult(success=False, error="Another request is in progress.")
        state.busy = True
        state.browser_pane = BrowserPane.PROGRESS
        state.progress = None
        state.download_error = None
        self._render()

        follower = asyncio.create_task(self._follow_progress(self._client.progress()))
        try:
            result = await self._client.download_browser()
        except ProtocolError as e:
            result = DownloadResult(success=False, error=str(e))
        finally:
            follower.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await follower
            state.busy = False

        if result.success:
            state.browser_ready = True
            state.browser_skipped = result.skipped
            state.browser_pane = BrowserPane.READY
        else:
            state.browser_pane = BrowserPane.FAILED
            state.download_error = result.error or "Download failed."
        self._render()
        return result

    async def _follow_progress(self, events: AsyncIterator[ProgressEvent]) -> None:
        async for event in events:
            self.state.progress = event
            self._render()

    # Rendering

    def _build_view(self) -> StepView:
        state = self.state
        if state.completed:
            next_label = "Launching..."
        elif state.current == Step.WELCOME:
            next_label = "Get Started"
        elif state.current == Step.SUMMARY:
            next_label = "Launch WebHere"
        else:
            next_label = "Next"
        next_enabled = not (state.busy or state.completed)
        if state.current == Step.BROWSER:
            next_enabled = next_enabled and state.browser_ready
        return StepView(
            step=state.current,
            next_label=next_label,
            next_enabled=next_enabled,
            back_visible=0 < state.current < Step.SUMMARY and not state.completed,
            error=state.error,
            browser_pane=state.browser_pane,
            download_label="Retry" if state.browser_pane is BrowserPane.FAILED else "Download",
            progress=state.progress,
            download_error=state.download_error,
            summary=tuple(state.summary),
        )

    def _render(self) -> None:
        self.view = self._build_view()
        if self._on_render:
            self._on_render(self.view)
