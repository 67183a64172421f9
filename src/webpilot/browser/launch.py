"""
Browser bootstrap: attach to, or launch, the single browser this server drives.

Chrome and Firefox are attached over CDP on a remote-debugging port; when
nothing listens on that port an installed browser is spawned with
debugging enabled. WebKit is launched directly through Playwright. Any
failure for a non-chrome browser falls back to chrome.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import socket
import subprocess
import sys
from typing import Any, List, Optional

import httpx

logger = logging.getLogger(__name__)

SUPPORTED_BROWSER_TYPES = ("chrome", "firefox", "webkit")
READY_PROBE_TIMEOUT_S = 2.0
READY_PROBE_INTERVAL_S = 1.0


class BrowserLaunchError(RuntimeError):
    pass


def is_port_in_use(port: int, host: str = "127.0.0.1") -> bool:
    try:
        with socket.create_connection((host, int(port)), timeout=0.5):
            return True
    except OSError:
        return False


async def is_debugging_ready(port: int) -> bool:
    try:
        async with httpx.AsyncClient(timeout=READY_PROBE_TIMEOUT_S) as client:
            response = await client.get(f"http://localhost:{port}/json/version")
    except httpx.HTTPError:
        return False
    return response.is_success


async def wait_for_debugging_ready(port: int, max_attempts: int = 5) -> bool:
    for _ in range(max(1, int(max_attempts))):
        if await is_debugging_ready(port):
            return True
        await asyncio.sleep(READY_PROBE_INTERVAL_S)
    return False


def _discover_executable(kind: str) -> Optional[str]:
    if sys.platform == "darwin":
        candidates = {
            "chrome": ["/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"],
            "firefox": ["/Applications/Firefox.app/Contents/MacOS/firefox"],
        }[kind]
    elif sys.platform.startswith("win"):
        program_files = os.environ.get("ProgramFiles", r"C:\Program Files")
        candidates = {
            "chrome": [fr"{program_files}\Google\Chrome\Application\chrome.exe"],
            "firefox": [fr"{program_files}\Mozilla Firefox\firefox.exe"],
        }[kind]
    else:
        candidates = {
            "chrome": ["/usr/bin/google-chrome", "/usr/bin/google-chrome-stable", "/usr/bin/chromium"],
            "firefox": ["/usr/bin/firefox"],
        }[kind]

    for path in candidates:
        if os.path.isfile(path):
            return path

    which_names = {
        "chrome": ["google-chrome", "google-chrome-stable", "chromium", "chromium-browser"],
        "firefox": ["firefox"],
    }[kind]
    for name in which_names:
        found = shutil.which(name)
        if found:
            return found
    return None


def _spawn_detached(command: List[str]) -> None:
    try:
        subprocess.Popen(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise BrowserLaunchError(f"Failed to launch {command[0]}: {exc}") from exc


def chrome_command(executable: str, debug_port: int, user_data_dir: str) -> List[str]:
    return [
        executable,
        f"--remote-debugging-port={debug_port}",
        f"--user-data-dir={user_data_dir}",
        "--use-gl=swiftshader",
        "--no-first-run",
        "--no-default-browser-check",
    ]


def firefox_command(executable: str, debug_port: int) -> List[str]:
    return [executable, "--start-debugger-server", str(debug_port)]


class BrowserLauncher:
    """Produces a connected Playwright ``Browser`` for the configured browser type."""

    def __init__(
        self,
        *,
        browser_type: str = "chrome",
        debug_port: int = 9222,
        chrome_user_data_dir: Optional[str] = None,
        ready_attempts: int = 5,
    ) -> None:
        if browser_type not in SUPPORTED_BROWSER_TYPES:
            raise ValueError(f"Unsupported browser type: {browser_type}")
        self.browser_type = browser_type
        self.debug_port = int(debug_port)
        self.chrome_user_data_dir = os.path.expanduser(
            chrome_user_data_dir or os.path.join("~", ".webpilot", "chrome")
        )
        self.ready_attempts = int(ready_attempts)
        self._playwright: Any = None
        self._browser: Any = None

    async def start(self) -> Any:
        if self._browser is not None:
            return self._browser

        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._connect(self.browser_type)
        except Exception as exc:
            if self.browser_type == "chrome":
                await self._stop_playwright()
                raise
            logger.warning("Failed to start %s (%s); falling back to chrome", self.browser_type, exc)
            try:
                self._browser = await self._connect("chrome")
            except Exception:
                await self._stop_playwright()
                raise
        logger.info(
            "Browser ready type=%s contexts=%d",
            self.browser_type,
            len(self._browser.contexts),
        )
        return self._browser

    async def stop(self) -> None:
        browser = self._browser
        self._browser = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        playwright = self._playwright
        self._playwright = None
        if playwright is not None:
            await playwright.stop()

    async def _connect(self, kind: str) -> Any:
        if kind == "webkit":
            return await self._launch_webkit()
        await self._ensure_debugging_browser(kind)
        engine = self._playwright.chromium if kind == "chrome" else self._playwright.firefox
        try:
            return await engine.connect_over_cdp(f"http://localhost:{self.debug_port}")
        except Exception as exc:
            raise BrowserLaunchError(f"Failed to connect to {kind.capitalize()}: {exc}") from exc

    async def _ensure_debugging_browser(self, kind: str) -> None:
        if is_port_in_use(self.debug_port):
            if not await is_debugging_ready(self.debug_port):
                raise BrowserLaunchError(
                    f"Port {self.debug_port} is occupied by non-browser debugging process"
                )
            logger.info("Attaching to existing browser on port %s", self.debug_port)
            return

        executable = _discover_executable(kind)
        if executable is None:
            raise BrowserLaunchError(f"Could not find an installed {kind} executable")
        if kind == "chrome":
            os.makedirs(self.chrome_user_data_dir, exist_ok=True)
            command = chrome_command(executable, self.debug_port, self.chrome_user_data_dir)
        else:
            command = firefox_command(executable, self.debug_port)
        logger.info("Launching %s with remote debugging on port %s", kind, self.debug_port)
        _spawn_detached(command)

        if not await wait_for_debugging_ready(self.debug_port, self.ready_attempts):
            raise BrowserLaunchError(
                f"{kind.capitalize()} failed to start within {self.ready_attempts} seconds"
            )

    async def _launch_webkit(self) -> Any:
        try:
            return await self._playwright.webkit.launch(headless=False)
        except Exception as exc:
            raise BrowserLaunchError(f"Failed to launch WebKit: {exc}") from exc
