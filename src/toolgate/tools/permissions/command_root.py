"""Command root extraction for shell allowlisting.

Reduces an arbitrary shell command line to the canonical leading binary
name used as the shell allowlist key.

Only the leading command of a compound command line is considered:
``git status && rm -rf build`` has the root ``git``. The allowlist governs
which leading commands are trusted, it does not analyse the safety of the
whole command line.
"""

from __future__ import annotations

import re

__all__ = ["extract_command_root"]

# "||" must be tried before "|"
_SEPARATOR_RE = re.compile(r"&&|\|\||;|\|")
_PATH_SEPARATOR_RE = re.compile(r"[/\\]")


def extract_command_root(command: str) -> str:
    """Extract the command root from a shell command line.

    Args:
        command: Full shell command line

    Returns:
        Basename of the first token of the first command segment, verbatim.
        Empty string when no root can be determined; callers must treat
        that as invalid rather than as a match.

    Example:
        >>> extract_command_root("git status && echo done")
        'git'
        >>> extract_command_root("/usr/bin/python3 script.py")
        'python3'
        >>> extract_command_root("  npm install  ")
        'npm'
        >>> extract_command_root("")
        ''
    """
    command = command.strip()
    if not command:
        return ""

    first_segment = _SEPARATOR_RE.split(command, maxsplit=1)[0]
    tokens = first_segment.split()
    if not tokens:
        return ""

    # Path-qualified binaries resolve to the same key as bare names
    return _PATH_SEPARATOR_RE.split(tokens[0])[-1]
