"""Detect or download the Chrome for Testing browser the app automates.

Cache layout: <cache_dir>/chrome/<platform>-<build_id>/chrome-<platform>/<executable>
"""

import asyncio
import logging
import os
import platform as pyplatform
import shutil
import stat
import sys
import tempfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

VERSIONS_URL = (
    "https://googlechromelabs.github.io/chrome-for-testing/last-known-good-versions.json"
)
DOWNLOAD_URL = (
    "https://storage.googleapis.com/chrome-for-testing-public/"
    "{build_id}/{platform}/chrome-{platform}.zip"
)

_CHUNK_SIZE = 64 * 1024

_EXECUTABLES = {
    "linux64": "chrome",
    "mac-arm64": "Google Chrome for Testing.app/Contents/MacOS/Google Chrome for Testing",
    "mac-x64": "Google Chrome for Testing.app/Contents/MacOS/Google Chrome for Testing",
    "win32": "chrome.exe",
    "win64": "chrome.exe",
}

ProgressCallback = Callable[[int, int], None]


class ProvisioningError(Exception):
    """Browser could not be provisioned."""


class UnsupportedPlatformError(ProvisioningError):
    """No browser build exists for this OS/architecture."""


class CorruptDownloadError(ProvisioningError):
    """Downloaded archive is truncated or does not contain the browser."""


def detect_platform() -> str:
    """Chrome for Testing platform id for the running interpreter."""
    machine = pyplatform.machine().lower()
    if sys.platform.startswith("linux"):
        if machine in ("x86_64", "amd64"):
            return "linux64"
    elif sys.platform == "darwin":
        return "mac-arm64" if machine in ("arm64", "aarch64") else "mac-x64"
    elif sys.platform == "win32":
        return "win64" if machine.endswith("64") else "win32"
    raise UnsupportedPlatformError(f"No browser build for {sys.platform}/{machine}")


def executable_path(install_dir: Path, platform: str) -> Path:
    return install_dir / f"chrome-{platform}" / _EXECUTABLES[platform]


def _version_key(build_id: str) -> tuple[int, ...]:
    try:
        return tuple(int(p) for p in build_id.split("."))
    except ValueError:
        return ()


class BrowserProvisioner:
    """Finds a cached browser build or installs the latest one for a channel."""

    def __init__(
        self,
        *,
        channel: str = "stable",
        versions_url: str = VERSIONS_URL,
        download_url: str = DOWNLOAD_URL,
        timeout: float = 30.0,
        platform: str | None = None,
    ) -> None:
        self.channel = channel
        self._versions_url = versions_url
        self._download_url = download_url
        self._timeout = timeout
        self._platform = platform

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> "BrowserProvisioner":
        """Build from the 'browser' settings section."""
        cfg = settings.get("browser", {})
        return cls(
            channel=cfg.get("channel", "stable"),
            versions_url=cfg.get("versions_url", VERSIONS_URL),
            download_url=cfg.get("download_url", DOWNLOAD_URL),
            timeout=float(cfg.get("timeout", 30.0)),
        )

    @property
    def platform(self) -> str:
        """Target platform id. Raises UnsupportedPlatformError."""
        if self._platform is None:
            self._platform = detect_platform()
        return self._platform

    def ensure(self, cache_dir: Path) -> Path | None:
        """Return the newest cached browser executable, or None if a download is needed."""
        try:
            platform = self.platform
        except UnsupportedPlatformError as e:
            logger.debug("Browser probe skipped: %s", e)
            return None
        root = cache_dir / "chrome"
        if not root.is_dir():
            return None
        prefix = f"{platform}-"
        try:
            builds = sorted(
                (d for d in root.iterdir() if d.is_dir() and d.name.startswith(prefix)),
                key=lambda d: _version_key(d.name[len(prefix):]),
                reverse=True,
            )
        except OSError as e:
            logger.debug("Browser cache unreadable: %s", e)
            return None
        for build_dir in builds:
            exe = executable_path(build_dir, platform)
            if exe.is_file():
                return exe
        return None

    async def resolve_build_id(self, channel: str | None = None) -> str:
        """Latest known-good version for channel (stable, beta, dev, canary)."""
        name = (channel or self.channel).capitalize()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(self._versions_url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise ProvisioningError(f"Could not resolve {name} version: {e}") from e
        except ValueError as e:
            raise ProvisioningError(f"Malformed version list: {e}") from e
        channels = data.get("channels") if isinstance(data, dict) else None
        version = ((channels or {}).get(name) or {}).get("version")
        if not version:
            raise ProvisioningError(f"No {name} version published")
        return version

    async def install(
        self,
        cache_dir: Path,
        on_progress: ProgressCallback | None = None,
        build_id: str | None = None,
    ) -> Path:
        """Download and unpack a browser build. Returns the executable path.

        on_progress(downloaded, total) is called with non-decreasing
        downloaded bytes; total is 0 while unknown.
        """
        platform = self.platform
        build_id = build_id or await self.resolve_build_id()
        install_dir = cache_dir / "chrome" / f"{platform}-{build_id}"
        exe = executable_path(install_dir, platform)
        if exe.is_file():
            logger.info("Browser %s already installed at %s", build_id, exe)
            return exe

        url = self._download_url.format(build_id=build_id, platform=platform)
        try:
            install_dir.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(suffix=".zip", prefix="chrome_", dir=install_dir.parent)
        except OSError as e:
            raise ProvisioningError(f"Cache directory not writable: {e}") from e
        archive = Path(tmp)
        try:
            with open(fd, "wb") as f:
                await self._download(url, f, on_progress)
            await asyncio.to_thread(_extract, archive, install_dir)
        except httpx.HTTPError as e:
            raise ProvisioningError(f"Download failed: {e}") from e
        except OSError as e:
            raise ProvisioningError(f"Could not write browser files: {e}") from e
        finally:
            archive.unlink(missing_ok=True)

        if not exe.is_file():
            raise CorruptDownloadError(f"Archive does not contain {exe.name}")
        logger.info("Browser %s installed at %s", build_id, exe)
        return exe

    async def _download(self, url: str, f, on_progress: ProgressCallback | None) -> None:
        logger.info("Downloading browser from %s", url)
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            async with client.stream("GET", url) as resp:
                resp.raise_for_status()
                total = int(resp.headers.get("Content-Length") or 0)
                if on_progress:
                    on_progress(0, total)
                async for chunk in resp.aiter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
                    if on_progress:
                        on_progress(resp.num_bytes_downloaded, total)
                downloaded = resp.num_bytes_downloaded
        if total and downloaded != total:
            raise CorruptDownloadError(f"Truncated download: {downloaded} of {total} bytes")


def _extract(archive: Path, install_dir: Path) -> None:
    """Unpack into a sibling temp dir, then move into place.

    Restores permission bits and symlinks (the macOS app bundle links its
    frameworks) from the archive's Unix attributes.
    """
    staging = Path(tempfile.mkdtemp(prefix=f"{install_dir.name}_", dir=install_dir.parent))
    try:
        try:
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    unix_mode = info.external_attr >> 16
                    if stat.S_ISLNK(unix_mode):
                        _extract_symlink(zf, info, staging)
                        continue
                    target = Path(zf.extract(info, staging))
                    mode = unix_mode & 0o777
                    if mode and not info.is_dir():
                        target.chmod(mode)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise CorruptDownloadError(f"Corrupted archive: {e}") from e
        if install_dir.exists():
            shutil.rmtree(install_dir)
        staging.replace(install_dir)
    except Exception:
        shutil.rmtree(staging, ignore_errors=True)
        raise


def _extract_symlink(zf: zipfile.ZipFile, info: zipfile.ZipInfo, staging: Path) -> None:
    name = PurePosixPath(info.filename)
    if name.is_absolute() or ".." in name.parts:
        raise CorruptDownloadError(f"Unsafe link in archive: {info.filename}")
    link = staging.joinpath(*name.parts)
    link.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(zf.read(info).decode("utf-8"), link)


def _system_candidates() -> list[Path]:
    if sys.platform == "darwin":
        return [
            Path("/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
            Path.home() / "Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            Path("/Applications/Chromium.app/Contents/MacOS/Chromium"),
        ]
    if sys.platform == "win32":
        roots = [os.environ.get(v) for v in ("PROGRAMFILES", "PROGRAMFILES(X86)", "LOCALAPPDATA")]
        return [Path(r) / "Google" / "Chrome" / "Application" / "chrome.exe" for r in roots if r]
    names = ("google-chrome-stable", "google-chrome", "chromium", "chromium-browser")
    return [Path(p) for p in map(shutil.which, names) if p]


def find_system_browser() -> Path | None:
    """Locate a Chrome/Chromium installed on the system. CHROME_PATH wins."""
    override = os.environ.get("CHROME_PATH")
    if override and Path(override).is_file():
        return Path(override)
    for candidate in _system_candidates():
        if candidate.is_file():
            return candidate
    return None


def find_browser(cache_dir: Path | None = None) -> Path | None:
    """Cached build when cache_dir is given, system install otherwise."""
    if cache_dir is not None:
        return BrowserProvisioner().ensure(cache_dir)
    return find_system_browser()
