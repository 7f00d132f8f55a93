"""Browser discovery and launch."""

import asyncio
import os
import shlex
import shutil
import sys
from dataclasses import dataclass

from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)

MACOS_APPS = (
    "/Applications/Google Chrome Canary.app",
    "/Applications/Google Chrome.app",
)

LINUX_EXECUTABLES = (
    "headless_shell",
    "chromium",
    "google-chrome-beta",
    "google-chrome-unstable",
    "google-chrome-stable",
)


@dataclass
class ChromeProcess:
    """Represents a launched browser process."""

    pid: int
    command: str


def find_browser(platform: str = sys.platform) -> str | None:
    """Command prefix that starts an installed browser, if one is found."""
    if platform == "darwin":
        for app in MACOS_APPS:
            # macOS apps are directories
            if os.path.isdir(app):
                return f"open {shlex.quote(app)} --args"
        return None

    if platform.startswith("linux"):
        for name in LINUX_EXECUTABLES:
            if shutil.which(name):
                return name

    return None


def default_command(platform: str = sys.platform, port: int = 9222) -> str:
    """
    Build the command line used when none is given.

    Returns an empty string when no browser is installed.
    """
    browser = find_browser(platform)
    if not browser:
        return ""

    args = [browser]
    if browser == "headless_shell":
        args.append("--no-sandbox")
    else:
        args.append("--headless")

    args.extend(
        [
            f"--remote-debugging-port={port}",
            "--disable-extensions",
            "--disable-gpu",
            "about:blank",
        ]
    )
    return " ".join(args)


class ChromeLauncher:
    """Starts the browser and leaves it running."""

    async def launch(self, command: str) -> ChromeProcess:
        """
        Start the browser without waiting for it.

        Args:
            command: Full command line, split with shell quoting rules

        Returns:
            ChromeProcess with the started process details
        """
        args = shlex.split(command)
        if not args:
            raise RuntimeError("Empty browser command")

        logger.info("Launching browser", command=command)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise RuntimeError(f"Failed to launch browser: {e}") from e

        logger.debug("Browser launched", pid=process.pid)
        return ChromeProcess(pid=process.pid, command=command)
