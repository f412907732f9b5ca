"""
Module: story_gen.clipboard
Purpose: Copy generated stories to the system clipboard

Uses platform-specific commands for the primary path:
- macOS: pbcopy
- Windows: clip
- Linux: wl-copy, xclip or xsel (first one found)

The fallback goes through Tk's clipboard, which works wherever a display and
tkinter are available even without the command-line tools.
"""

import asyncio
import logging
import platform
import shutil
from typing import List, Optional

logger = logging.getLogger(__name__)


class ClipboardUnavailable(RuntimeError):
    """No clipboard mechanism is available on this system."""


def _clipboard_command() -> Optional[List[str]]:
    system = platform.system()

    if system == "Darwin":  # macOS
        candidates = [["pbcopy"]]
    elif system == "Windows":
        candidates = [["clip"]]
    else:
        candidates = [
            ["wl-copy"],
            ["xclip", "-selection", "clipboard"],
            ["xsel", "--clipboard", "--input"],
        ]

    for command in candidates:
        if shutil.which(command[0]):
            return command
    return None


def _tk_copy(text: str) -> None:
    import tkinter

    root = tkinter.Tk()
    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        root.update()
    finally:
        root.destroy()


class SystemClipboard:
    """
    Clipboard writer with a command-line primary path and a Tk fallback.

    Example:
        >>> clipboard = SystemClipboard()
        >>> await clipboard.write_text("Once upon a time")
    """

    async def write_text(self, text: str) -> None:
        """
        Write text with the platform clipboard command.

        Raises:
            ClipboardUnavailable: If no clipboard command is installed
            RuntimeError: If the command exits with an error
        """
        command = _clipboard_command()
        if command is None:
            raise ClipboardUnavailable(f"No clipboard command found on {platform.system()}")

        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate(text.encode("utf-8"))

        if process.returncode != 0:
            raise RuntimeError(
                f"{command[0]} exited with {process.returncode}: {stderr.decode(errors='replace').strip()}"
            )
        logger.debug(f"Copied {len(text)} characters with {command[0]}")

    async def fallback_write_text(self, text: str) -> None:
        """Write text through Tk's clipboard in a worker thread."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _tk_copy, text)
        logger.debug(f"Copied {len(text)} characters with tkinter")
