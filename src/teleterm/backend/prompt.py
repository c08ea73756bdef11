"""Activity labels for terminal listings.

A session is ``idle`` when one of its last visible lines looks like a shell
prompt. Otherwise it is labelled with the name of the newest process running
below the terminal, which is usually whatever the user started last.
"""

from __future__ import annotations

import logging

import psutil

logger = logging.getLogger(__name__)

IDLE_LABEL = "idle"
PROMPT_SCAN_LINES = 10

PROMPT_SUFFIXES = ("$", "#", "%", ">")
PROMPT_PREFIXES = ("\u276f", "\u279c")  # starship and oh-my-zsh chevrons
NO_BREAK_SPACE = "\u00a0"


def _strip_one_space(text: str, *, from_end: bool) -> str:
    if from_end and text[-1:] in (" ", NO_BREAK_SPACE):
        return text[:-1]
    if not from_end and text[:1] in (" ", NO_BREAK_SPACE):
        return text[1:]
    return text


def is_prompt_line(line: str) -> bool:
    """True if a single line ends or starts with a prompt glyph."""
    tail = _strip_one_space(line, from_end=True)
    if tail.endswith(PROMPT_SUFFIXES):
        return True
    head = _strip_one_space(line, from_end=False)
    return head.startswith(PROMPT_PREFIXES)


def shows_prompt(text: str | None) -> bool:
    """Look for a prompt among the last few non-empty lines of captured text."""
    if not text:
        return False
    lines = [line for line in text.split("\n") if line.strip()]
    return any(is_prompt_line(line) for line in lines[-PROMPT_SCAN_LINES:])


def newest_descendant_name(pid: int) -> str:
    """Name of the most recently started descendant of ``pid``, or ''."""
    try:
        children = psutil.Process(pid).children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
        logger.debug("Cannot inspect children of pid %d: %s", pid, e)
        return ""

    newest_name = ""
    newest_time = -1.0
    for child in children:
        try:
            created = child.create_time()
            name = child.name()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if created >= newest_time:
            newest_time = created
            newest_name = name
    return newest_name


def activity_label(text: str | None, pid: int) -> str:
    """Advisory label for a session: ``idle`` or the newest child process."""
    if shows_prompt(text):
        return IDLE_LABEL
    return newest_descendant_name(pid)
