"""Privileged side of the wizard: owns the session and talks to the stores."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from core.auth import AdminCredentialStore
from core.integrations import IntegrationStore
from onboarding import protocol
from onboarding.config_store import SetupConfigStore
from onboarding.protocol import WizardChannel
from onboarding.provisioner import BrowserProvisioner, ProvisioningError, find_browser
from onboarding.session import (
    CompleteRequest,
    Defaults,
    DownloadResult,
    ProgressEvent,
    SetupResult,
    WizardOutcome,
    WizardSession,
)
from onboarding.window import WizardWindow

logger = logging.getLogger(__name__)

BrowserFinder = Callable[..., Path | None]
DirectoryPicker = Callable[[str, Path], Awaitable[Path | None]]


class CredentialStore(Protocol):
    async def create_admin(self, password: str) -> None: ...


class IntegrationConfigStore(Protocol):
    def load_config(self) -> dict[str, Any]: ...
    def save_config(self, config: dict[str, Any]) -> None: ...


class Provisioner(Protocol):
    async def resolve_build_id(self, channel: str | None = None) -> str: ...
    async def install(
        self,
        cache_dir: Path,
        on_progress: Callable[[int, int], None] | None = None,
        build_id: str | None = None,
    ) -> Path: ...


def probe_browser(find: BrowserFinder, cache_dir: Path | None = None) -> Path | None:
    """Run a browser finder; a finder that raises counts as not found."""
    try:
        found = find(cache_dir) if cache_dir is not None else find()
    except Exception as e:
        logger.debug("Browser probe failed, treating as not found: %s", e)
        return None
    return Path(found) if found else None


@dataclass
class WizardOptions:
    """What the launcher supplies to a wizard run."""

    user_data_dir: Path
    default_downloads_dir: Path
    browser_cache_dir: Path
    # find_browser(cache_dir) probes the cache; find_browser() the system
    find_browser: BrowserFinder = field(default=find_browser)


class WizardController:
    """Handles the six setup requests for one wizard window."""

    def __init__(
        self,
        options: WizardOptions,
        channel: WizardChannel,
        window: WizardWindow,
        *,
        directory_picker: DirectoryPicker,
        provisioner: Provisioner | None = None,
        credentials: CredentialStore | None = None,
        integrations: IntegrationConfigStore | None = None,
        config_store: SetupConfigStore | None = None,
    ) -> None:
        self._options = options
        self._channel = channel
        self._window = window
        self._pick = directory_picker
        self._provisioner = provisioner or BrowserProvisioner()
        self._credentials = credentials or AdminCredentialStore(options.user_data_dir)
        self._integrations = integrations or IntegrationStore(options.user_data_dir)
        self._config_store = config_store or SetupConfigStore(options.user_data_dir)
        self.session = WizardSession(chosen_downloads_dir=options.default_downloads_dir)
        self._probe_existing_browser()

    def _probe_existing_browser(self) -> None:
        existing = probe_browser(self._options.find_browser, self._options.browser_cache_dir)
        if existing:
            self.session.browser_found = True
            self.session.browser_path = Path(existing)
            logger.info("Found existing browser at %s", existing)

    def _handlers(self) -> dict[str, protocol.Handler]:
        return {
            protocol.GET_DEFAULTS: self.get_defaults,
            protocol.PICK_DIRECTORY: self.pick_directory,
            protocol.SET_PASSWORD: self.set_password,
            protocol.SET_INTEGRATION: self.set_integration,
            protocol.DOWNLOAD_BROWSER: self.download_browser,
            protocol.COMPLETE: self.complete,
        }

    def register(self) -> None:
        """Expose the handlers on the channel; drop them when the window closes."""
        for name, handler in self._handlers().items():
            self._channel.handle(name, handler)
        self._window.on_close(self.unregister)

    def unregister(self) -> None:
        for name in protocol.REQUESTS:
            self._channel.remove_handler(name)
        self._channel.progress.close()

    async def get_defaults(self) -> Defaults:
        return Defaults(
            downloads_dir=str(self._options.default_downloads_dir),
            browser_found=self.session.browser_found,
            platform=sys.platform,
        )

    async def pick_directory(self) -> str | None:
        selected = await self._pick("Choose Downloads Directory", self.session.chosen_downloads_dir)
        if selected is None:
            return None
        self.session.chosen_downloads_dir = Path(selected).resolve()
        return str(self.session.chosen_downloads_dir)

    async def set_password(self, password: str) -> bool:
        await self._credentials.create_admin(password)
        self.session.password_committed = True
        return True

    async def set_integration(self, webhook_url: str) -> bool:
        config = self._integrations.load_config()
        config["webhook"]["url"] = webhook_url
        config["webhook"]["enabled"] = True
        self._integrations.save_config(config)
        self.session.integration_configured = True
        return True

    def _emit_progress(self, downloaded: int, total: int) -> None:
        if self._window.is_closed:
            return
        self._channel.send(protocol.BROWSER_PROGRESS, ProgressEvent.from_bytes(downloaded, total))

    async def download_browser(self) -> DownloadResult:
        if self.session.browser_found and self.session.browser_path:
            return DownloadResult(success=True, path=str(self.session.browser_path), skipped=True)

        cache_dir = self._options.browser_cache_dir
        try:
            build_id = await self._provisioner.resolve_build_id()
            path = await self._provisioner.install(
                cache_dir, on_progress=self._emit_progress, build_id=build_id
            )
        except ProvisioningError as e:
            logger.warning("Browser provisioning failed: %s", e)
            return self._fall_back(str(e))
        except Exception as e:
            logger.exception("Unexpected error while provisioning the browser: %s", e)
            return self._fall_back(str(e) or type(e).__name__)

        self.session.browser_found = True
        self.session.browser_path = path
        return DownloadResult(success=True, path=str(path))

    def _fall_back(self, error: str) -> DownloadResult:
        """One attempt at a system browser after a failed download."""
        fallback = self._find_system_browser()
        if fallback:
            self.session.browser_found = True
            self.session.browser_path = fallback
            logger.info("Using system browser at %s", fallback)
            return DownloadResult(success=True, path=str(fallback), fallback=True)
        return DownloadResult(success=False, error=error)

    def _find_system_browser(self) -> Path | None:
        return probe_browser(self._options.find_browser)

    async def complete(self, request: CompleteRequest) -> None:
        """Persist the setup record, stop serving requests and close the window."""
        downloads_dir = self.session.chosen_downloads_dir
        if request.downloads_dir and Path(request.downloads_dir) != downloads_dir:
            logger.info(
                "Ignoring UI downloads dir %s, keeping %s", request.downloads_dir, downloads_dir
            )
        record = {
            **request.extra,
            "downloadsDir": str(downloads_dir),
            "browserDownloaded": self.session.browser_found,
            "integrationEnabled": request.integration_enabled,
        }
        try:
            self._config_store.save_config(record)
        except OSError as e:
            logger.error("Could not save setup config: %s", e)
            self._window.resolve(WizardOutcome.failed(f"Could not save setup config: {e}"))
            raise
        else:
            self._window.resolve(
                WizardOutcome.completed(SetupResult(downloads_dir, self.session.browser_path))
            )
        finally:
            self.unregister()
            self._window.close()
