"""Shared fakes for the wizard collaborators."""

import asyncio
from pathlib import Path
from typing import Any

import pytest

from onboarding.controller import WizardOptions
from onboarding.provisioner import ProvisioningError


class FakeProvisioner:
    """Records install calls; emits the configured progress pairs."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.error: ProvisioningError | None = None
        self.progress: list[tuple[int, int]] = []
        self.install_calls = 0

    async def resolve_build_id(self, channel: str | None = None) -> str:
        return "131.0.6778.85"

    async def install(self, cache_dir, on_progress=None, build_id=None) -> Path:
        self.install_calls += 1
        for downloaded, total in self.progress:
            if on_progress:
                on_progress(downloaded, total)
            await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.path


class FakeCredentials:
    def __init__(self) -> None:
        self.passwords: list[str] = []
        self.error: Exception | None = None

    async def create_admin(self, password: str) -> None:
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        self.passwords.append(password)


class FakeIntegrations:
    def __init__(self) -> None:
        self.config: dict[str, Any] = {"webhook": {"url": "", "enabled": False}}
        self.saved: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def load_config(self) -> dict[str, Any]:
        if self.error:
            raise self.error
        return {k: dict(v) for k, v in self.config.items()}

    def save_config(self, config: dict[str, Any]) -> None:
        self.saved.append(config)
        self.config = config


@pytest.fixture
def provisioner(tmp_path: Path) -> FakeProvisioner:
    return FakeProvisioner(tmp_path / "cache" / "chrome" / "linux64-131" / "chrome")


@pytest.fixture
def credentials() -> FakeCredentials:
    return FakeCredentials()


@pytest.fixture
def integrations() -> FakeIntegrations:
    return FakeIntegrations()


@pytest.fixture
def options(tmp_path: Path) -> WizardOptions:
    """No browser anywhere unless a test swaps find_browser."""
    return WizardOptions(
        user_data_dir=tmp_path / "userdata",
        default_downloads_dir=tmp_path / "Downloads",
        browser_cache_dir=tmp_path / "cache",
        find_browser=lambda cache_dir=None: None,
    )
