"""Tests for onboarding.machine.StepMachine against a scripted client."""

import asyncio

import pytest

from onboarding.machine import BrowserPane, Step, StepMachine, StepView
from onboarding.protocol import ProgressStream, RemoteError
from onboarding.session import CompleteRequest, Defaults, DownloadResult, ProgressEvent


class ScriptedClient:
    """Stands in for SetupClient; every call yields once like a real request."""

    def __init__(self, browser_found: bool = False) -> None:
        self.browser_found = browser_found
        self.passwords: list[str] = []
        self.integrations: list[str] = []
        self.completed: list[CompleteRequest] = []
        self.download_results: list[DownloadResult] = [DownloadResult(success=True, path="/c/chrome")]
        self.download_events: list[ProgressEvent] = []
        self.download_calls = 0
        self.password_error: Exception | None = None
        self.integration_error: Exception | None = None
        self.picked: str | None = None
        self._stream = ProgressStream()

    async def get_defaults(self) -> Defaults:
        return Defaults("/home/user/Downloads/WebHere", self.browser_found, "linux")

    async def pick_directory(self) -> str | None:
        return self.picked

    async def set_password(self, password: str) -> bool:
        await asyncio.sleep(0)
        if self.password_error:
            raise self.password_error
        self.passwords.append(password)
        return True

    async def set_integration(self, url: str) -> bool:
        await asyncio.sleep(0)
        if self.integration_error:
            raise self.integration_error
        self.integrations.append(url)
        return True

    async def download_browser(self) -> DownloadResult:
        self.download_calls += 1
        for event in self.download_events:
            self._stream.publish(event)
            await asyncio.sleep(0.01)
        return self.download_results.pop(0)

    async def complete(self, request: CompleteRequest) -> None:
        self.completed.append(request)

    def progress(self):
        return self._stream.listen()


async def _machine(client: ScriptedClient, renders: list[StepView] | None = None) -> StepMachine:
    machine = StepMachine(client, on_render=renders.append if renders is not None else None)
    await machine.start()
    return machine


async def _go_to(machine: StepMachine, step: Step) -> None:
    machine.state.form.password = machine.state.form.password_confirm = "abcd"
    while machine.state.current < step:
        if machine.state.current == Step.BROWSER and not machine.state.browser_ready:
            await machine.download_browser()
        assert await machine.advance()


class TestNavigation:
    @pytest.mark.asyncio
    async def test_starts_at_welcome_with_defaults(self) -> None:
        machine = await _machine(ScriptedClient())
        assert machine.state.current == Step.WELCOME
        assert machine.state.form.downloads_dir == "/home/user/Downloads/WebHere"
        assert machine.view.next_label == "Get Started"
        assert machine.view.back_visible is False
        assert machine.back() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", [Step.DOWNLOADS, Step.CREDENTIALS, Step.INTEGRATION, Step.BROWSER])
    async def test_back_then_advance_round_trip(self, step: Step) -> None:
        machine = await _machine(ScriptedClient(browser_found=True))
        await _go_to(machine, step)

        assert machine.back() is True
        assert machine.state.current == step - 1
        assert await machine.advance() is True
        assert machine.state.current == step

    @pytest.mark.asyncio
    async def test_back_not_allowed_from_summary(self) -> None:
        machine = await _machine(ScriptedClient(browser_found=True))
        await _go_to(machine, Step.SUMMARY)

        assert machine.view.back_visible is False
        assert machine.back() is False
        assert machine.state.current == Step.SUMMARY


class TestCredentials:
    @pytest.mark.asyncio
    async def test_short_then_valid_password(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.CREDENTIALS)

        machine.state.form.password = machine.state.form.password_confirm = "abc"
        assert await machine.advance() is False
        assert machine.state.current == Step.CREDENTIALS
        assert "at least 4 characters" in machine.view.error

        machine.state.form.password = machine.state.form.password_confirm = "abcd"
        assert await machine.advance() is True
        assert machine.state.current == Step.INTEGRATION
        assert machine.view.error is None
        assert client.passwords == ["abcd"]

    @pytest.mark.asyncio
    async def test_mismatched_confirmation_blocks(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.CREDENTIALS)

        machine.state.form.password = "abcd"
        machine.state.form.password_confirm = "abce"
        assert await machine.advance() is False
        assert machine.view.error == "Passwords do not match."
        assert client.passwords == []

    @pytest.mark.asyncio
    async def test_validation_rechecked_after_edit(self) -> None:
        machine = await _machine(ScriptedClient())
        await _go_to(machine, Step.CREDENTIALS)
        assert machine.validate() is None

        machine.state.form.password_confirm = "zzzz"
        assert machine.validate() == "Passwords do not match."

    @pytest.mark.asyncio
    async def test_double_click_commits_password_once(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.CREDENTIALS)

        first, second = await asyncio.gather(machine.advance(), machine.advance())

        assert (first, second) == (True, False)
        assert machine.state.current == Step.INTEGRATION
        assert client.passwords == ["abcd"]

    @pytest.mark.asyncio
    async def test_password_not_resubmitted_after_back(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.INTEGRATION)

        machine.back()
        assert await machine.advance() is True
        assert client.passwords == ["abcd"]

    @pytest.mark.asyncio
    async def test_store_failure_blocks_and_is_retriable(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.CREDENTIALS)

        client.password_error = RemoteError("keyring locked")
        assert await machine.advance() is False
        assert machine.state.current == Step.CREDENTIALS
        assert machine.view.error == "Failed to set password: keyring locked"
        assert machine.state.password_set is False

        client.password_error = None
        assert await machine.advance() is True
        assert client.passwords == ["abcd"]


class TestIntegration:
    @pytest.mark.asyncio
    async def test_disabled_integration_is_skipped(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.INTEGRATION)
        machine.state.form.webhook_url = "https://ignored.example"

        await _go_to(machine, Step.SUMMARY)
        assert client.integrations == []
        assert ("Integration", "Skipped") in machine.view.summary

        assert await machine.advance() is True
        assert client.completed[0].integration_enabled is False

    @pytest.mark.asyncio
    async def test_enabled_integration_is_submitted(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.INTEGRATION)
        machine.state.form.integration_enabled = True
        machine.state.form.webhook_url = "  https://hooks.example/abc  "

        await _go_to(machine, Step.SUMMARY)
        assert client.integrations == ["https://hooks.example/abc"]
        assert ("Integration", "Enabled") in machine.view.summary

    @pytest.mark.asyncio
    async def test_integration_failure_never_blocks(self) -> None:
        client = ScriptedClient(browser_found=True)
        client.integration_error = RemoteError("bad webhook")
        machine = await _machine(client)
        await _go_to(machine, Step.INTEGRATION)
        machine.state.form.integration_enabled = True
        machine.state.form.webhook_url = "https://hooks.example/abc"

        assert await machine.advance() is True
        assert machine.state.current == Step.BROWSER
        assert machine.state.soft_failures[0].message == "bad webhook"
        assert machine.state.integration_configured is False

    @pytest.mark.asyncio
    async def test_enabled_without_url_is_skipped(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.INTEGRATION)
        machine.state.form.integration_enabled = True

        assert await machine.advance() is True
        assert client.integrations == []


class TestBrowser:
    @pytest.mark.asyncio
    async def test_found_browser_shows_ready_and_advances(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.BROWSER)

        assert machine.view.browser_pane is BrowserPane.READY
        assert machine.view.next_enabled is True
        assert await machine.advance() is True
        assert machine.state.current == Step.SUMMARY
        assert client.download_calls == 0

    @pytest.mark.asyncio
    async def test_advance_blocked_until_downloaded(self) -> None:
        client = ScriptedClient()
        machine = await _machine(client)
        await _go_to(machine, Step.BROWSER)

        assert machine.view.browser_pane is BrowserPane.DOWNLOAD
        assert machine.view.next_enabled is False
        assert await machine.advance() is False
        assert machine.view.error

        result = await machine.download_browser()
        assert result.success is True
        assert machine.view.browser_pane is BrowserPane.READY
        assert await machine.advance() is True

    @pytest.mark.asyncio
    async def test_failed_download_offers_retry(self) -> None:
        client = ScriptedClient()
        client.download_results = [
            DownloadResult(success=False, error="network down"),
            DownloadResult(success=True, path="/c/chrome"),
        ]
        machine = await _machine(client)
        await _go_to(machine, Step.BROWSER)

        await machine.download_browser()
        assert machine.view.browser_pane is BrowserPane.FAILED
        assert machine.view.download_error == "network down"
        assert machine.view.download_label == "Retry"
        assert await machine.advance() is False

        await machine.download_browser()
        assert client.download_calls == 2
        assert machine.state.browser_ready is True

    @pytest.mark.asyncio
    async def test_progress_is_rendered_as_latest_state(self) -> None:
        client = ScriptedClient()
        client.download_events = [
            ProgressEvent.from_bytes(0, 1000),
            ProgressEvent.from_bytes(400, 1000),
            ProgressEvent.from_bytes(1000, 1000),
        ]
        renders: list[StepView] = []
        machine = await _machine(client, renders)
        await _go_to(machine, Step.BROWSER)

        await machine.download_browser()

        seen = [v.progress for v in renders if v.browser_pane is BrowserPane.PROGRESS and v.progress]
        assert seen
        downloaded = [p.downloaded_bytes for p in seen]
        assert downloaded == sorted(downloaded)
        assert seen[-1].percent == 100

    @pytest.mark.asyncio
    async def test_advance_ignored_while_downloading(self) -> None:
        client = ScriptedClient()
        client.download_events = [ProgressEvent.from_bytes(1, 2)]
        machine = await _machine(client)
        await _go_to(machine, Step.BROWSER)

        download = asyncio.create_task(machine.download_browser())
        await asyncio.sleep(0)
        assert await machine.advance() is False
        await download
        assert machine.state.current == Step.BROWSER


class TestSummaryAndComplete:
    @pytest.mark.asyncio
    async def test_summary_reflects_memory_state(self) -> None:
        client = ScriptedClient(browser_found=True)
        client.picked = "/data/webhere"
        machine = await _machine(client)
        await _go_to(machine, Step.DOWNLOADS)
        await machine.pick_directory()

        await _go_to(machine, Step.SUMMARY)
        assert machine.view.summary == (
            ("Downloads", "/data/webhere"),
            ("Password", "Set"),
            ("Integration", "Skipped"),
            ("Browser", "Ready"),
        )
        assert machine.view.next_label == "Launch WebHere"

    @pytest.mark.asyncio
    async def test_complete_sent_once_from_summary(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.SUMMARY)

        assert await machine.advance() is True
        assert await machine.advance() is False
        assert machine.back() is False

        assert client.completed == [CompleteRequest("/home/user/Downloads/WebHere", False)]
        assert machine.state.completed is True
        assert machine.view.next_enabled is False
        assert machine.view.next_label == "Launching..."

    @pytest.mark.asyncio
    async def test_complete_not_sent_before_summary(self) -> None:
        client = ScriptedClient(browser_found=True)
        machine = await _machine(client)
        await _go_to(machine, Step.BROWSER)

        assert await machine.advance() is True
        assert client.completed == []
