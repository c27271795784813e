"""Best-effort clipboard copy for dashboard cells."""

from __future__ import annotations

import base64
import logging
import os
import shlex
import shutil
import subprocess
import sys
from typing import List, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)

# Tried in order when no command is configured.
_CANDIDATE_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("clip",),
)


def _resolve_command(command: Optional[Sequence[str] | str]) -> Optional[List[str]]:
    if command is None:
        command = os.getenv("DASHBOARD_CLIPBOARD_COMMAND") or None
    if isinstance(command, str):
        return shlex.split(command) or None
    if command:
        return list(command)
    for candidate in _CANDIDATE_COMMANDS:
        if shutil.which(candidate[0]):
            return list(candidate)
    return None


def _copy_with_command(text: str, command: List[str]) -> None:
    subprocess.run(command, input=text, text=True, check=True, timeout=5)


def _copy_with_osc52(text: str, stream: TextIO) -> None:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    stream.write(f"\x1b]52;c;{encoded}\x07")
    stream.flush()


def copy_to_clipboard(
    text: str,
    *,
    command: Optional[Sequence[str] | str] = None,
    stream: Optional[TextIO] = None,
) -> bool:
    """
    Copy ``text`` using a clipboard command, falling back to the OSC 52 escape.

    Never raises; failures are logged and reported through the return value.
    """
    resolved = _resolve_command(command)
    if resolved:
        try:
            _copy_with_command(text, resolved)
            return True
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("Clipboard command %s failed: %s", resolved[0], exc)
    else:
        logger.debug("No clipboard command available; trying terminal escape")

    target = stream
    if target is None:
        if not sys.stdout.isatty():
            logger.warning("Copy failed: no clipboard command and stdout is not a terminal")
            return False
        target = sys.stdout
    try:
        _copy_with_osc52(text, target)
        return True
    except (OSError, ValueError) as exc:
        logger.warning("Terminal clipboard escape failed: %s", exc)
        return False
