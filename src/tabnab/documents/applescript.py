"""
Thin wrapper around ``osascript`` for talking to Google Chrome.
"""

from __future__ import annotations

import asyncio
import contextlib

import structlog

from tabnab.exceptions import BrowserError

logger = structlog.get_logger(__name__)

# One line per tab: "<url> || <title> || <true|false>"
TAB_LIST_SCRIPT = """
set output to ""
tell application "Google Chrome"
    if (count of windows) is 0 then return ""
    set activeTabId to id of active tab of front window
    repeat with w in windows
        repeat with t in tabs of w
            set isActive to ((id of t) is activeTabId)
            set output to output & (URL of t) & " || " & (title of t) & " || " & (isActive as text) & linefeed
        end repeat
    end repeat
end tell
return output
"""

TAB_SOURCE_SCRIPT = """
tell application "Google Chrome"
    repeat with w in windows
        repeat with t in tabs of w
            if (URL of t) is "{{target_url}}" then
                return execute t javascript "document.documentElement.outerHTML"
            end if
        end repeat
    end repeat
end tell
error "No Chrome tab is open at {{target_url}}"
"""

TAB_SEPARATOR = " || "


def render_script(template: str, model: dict[str, str]) -> str:
    """Substitute ``{{key}}`` placeholders, escaping values for AppleScript string literals."""
    script = template
    for key, value in model.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        script = script.replace("{{" + key + "}}", escaped)
    return script


class AppleScriptRunner:
    """Runs AppleScript source through ``osascript`` and returns its stdout."""

    def __init__(self, executable: str = "osascript") -> None:
        self.executable = executable

    async def run(self, script: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                "-",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise BrowserError(f"{self.executable} is not available; tab access requires macOS") from e

        try:
            stdout, stderr = await process.communicate(script.encode("utf-8"))
        except BaseException:
            # cancelled or timed out: the child must not outlive its caller
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.debug("AppleScript failed", returncode=process.returncode, error=message)
            raise BrowserError(message or f"{self.executable} exited with code {process.returncode}")

        return stdout.decode("utf-8", errors="replace").rstrip("\n")
