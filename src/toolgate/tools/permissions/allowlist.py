"""Session-scoped allowlist of trusted tool scopes.

Remembers "always allow" decisions. Shell tools are remembered per command
root; bridged tools at two granularities, a whole server or one tool on one
server. Entries only grow for the lifetime of the store.

Example:
    >>> from toolgate.tools.base import ToolKind
    >>> store = AllowlistStore()
    >>> store.allow(ToolKind.SHELL, "git")
    >>> store.is_allowed(ToolKind.SHELL, "git")
    True
    >>> store.is_allowed(ToolKind.BRIDGED, "git")
    False
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from toolgate.tools.base import ToolKind

logger = logging.getLogger(__name__)

__all__ = [
    "AllowlistKey",
    "AllowlistStore",
    "server_scope",
    "shell_scope",
    "tool_scope",
]


@dataclass(frozen=True)
class AllowlistKey:
    """A trust scope within a tool-kind namespace.

    Attributes:
        kind: Tool kind namespace
        scope: Case-sensitive scope string (command root, server id,
            or ``server.tool``)
    """

    kind: ToolKind
    scope: str

    def __str__(self) -> str:
        """Return ``kind:scope``."""
        return f"{self.kind.value}:{self.scope}"


def shell_scope(root: str) -> AllowlistKey:
    """Key trusting every shell command with the given command root."""
    return AllowlistKey(ToolKind.SHELL, root)


def server_scope(server_id: str) -> AllowlistKey:
    """Key trusting every tool on a bridged server."""
    return AllowlistKey(ToolKind.BRIDGED, server_id)


def tool_scope(server_id: str, tool_id: str) -> AllowlistKey:
    """Key trusting one tool on one bridged server.

    Shares the bridged namespace with server_scope(), so a server id must not
    contain ".": server "a.b" and tool "b" on server "a" would share a key.
    ToolDescriptor and GateConfig reject such server ids.
    """
    return AllowlistKey(ToolKind.BRIDGED, f"{server_id}.{tool_id}")


class AllowlistStore:
    """Thread-safe, grow-only set of trusted scopes keyed by tool kind.

    Owned by a session and passed by reference to the gate and to pending
    confirmation requests. There is no removal operation.

    Attributes:
        _entries: Scope strings per tool kind
        _lock: Guards every read and write
    """

    def __init__(self, initial: Iterable[AllowlistKey] | None = None) -> None:
        """Initialize the store.

        Args:
            initial: Keys to seed the store with (e.g. from configuration)
        """
        self._entries: dict[ToolKind, set[str]] = {kind: set() for kind in ToolKind}
        self._lock = threading.Lock()
        for key in initial or ():
            self.add(key)

    def is_allowed(self, kind: ToolKind, scope: str) -> bool:
        """Return True if ``scope`` was previously allowed under ``kind``."""
        with self._lock:
            return scope in self._entries[ToolKind(kind)]

    def allow(self, kind: ToolKind, scope: str) -> None:
        """Trust ``scope`` under ``kind``. Idempotent.

        Raises:
            ValueError: If scope is empty
        """
        if not scope:
            raise ValueError("Allowlist scope cannot be empty")

        kind = ToolKind(kind)
        with self._lock:
            entries = self._entries[kind]
            if scope in entries:
                return
            entries.add(scope)

        logger.info(f"Allowlisted {kind.value} scope: {scope}")

    def contains(self, key: AllowlistKey) -> bool:
        """Key-based form of is_allowed()."""
        return self.is_allowed(key.kind, key.scope)

    def add(self, key: AllowlistKey) -> None:
        """Key-based form of allow()."""
        self.allow(key.kind, key.scope)

    def snapshot(self) -> dict[ToolKind, frozenset[str]]:
        """Return an immutable copy of the current entries."""
        with self._lock:
            return {kind: frozenset(scopes) for kind, scopes in self._entries.items()}

    def __contains__(self, key: object) -> bool:
        """Check if an AllowlistKey is trusted."""
        return isinstance(key, AllowlistKey) and self.contains(key)

    def __len__(self) -> int:
        """Return total number of trusted scopes across kinds."""
        with self._lock:
            return sum(len(scopes) for scopes in self._entries.values())

    def __repr__(self) -> str:
        """Return string representation of the store."""
        counts = {kind.value: len(scopes) for kind, scopes in self.snapshot().items()}
        return f"AllowlistStore({counts})"
