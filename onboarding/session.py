"""Wizard session state, protocol payloads and the wizard outcome."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass
class WizardSession:
    """Choices made during one wizard run. Owned by the controller."""

    chosen_downloads_dir: Path
    browser_found: bool = False
    browser_path: Path | None = None
    password_committed: bool = False
    integration_configured: bool = False


@dataclass(frozen=True)
class ProgressEvent:
    """Latest known state of a browser download."""

    downloaded_bytes: int
    total_bytes: int
    percent: int

    @classmethod
    def from_bytes(cls, downloaded: int, total: int) -> "ProgressEvent":
        percent = round(downloaded / total * 100) if total > 0 else 0
        return cls(downloaded_bytes=downloaded, total_bytes=total, percent=percent)


@dataclass(frozen=True)
class Defaults:
    """Response of setup:get-defaults."""

    downloads_dir: str
    browser_found: bool
    platform: str


@dataclass(frozen=True)
class DownloadResult:
    """Response of setup:download-browser."""

    success: bool
    path: str | None = None
    skipped: bool = False
    fallback: bool = False
    error: str | None = None


@dataclass(frozen=True)
class CompleteRequest:
    """Payload of setup:complete. Extra keys are merged into the stored record."""

    downloads_dir: str
    integration_enabled: bool
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SetupResult:
    """What the launcher needs once setup is done."""

    downloads_dir: Path
    browser_path: Path | None


class OutcomeStatus(Enum):
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    FAILED = "failed"


@dataclass(frozen=True)
class WizardOutcome:
    """Result of one wizard run: completed with data, abandoned, or failed."""

    status: OutcomeStatus
    result: SetupResult | None = None
    error: str | None = None

    @classmethod
    def completed(cls, result: SetupResult) -> "WizardOutcome":
        return cls(OutcomeStatus.COMPLETED, result=result)

    @classmethod
    def abandoned(cls) -> "WizardOutcome":
        return cls(OutcomeStatus.ABANDONED)

    @classmethod
    def failed(cls, error: str) -> "WizardOutcome":
        return cls(OutcomeStatus.FAILED, error=error)

    @property
    def is_completed(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED
