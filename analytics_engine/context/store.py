"""Thread-safe store of global contexts, at most one instance per kind."""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel

from analytics_engine.context.kinds import ContextKind, ContextKindError, resolve_kind

logger = logging.getLogger(__name__)

KindArg = ContextKind | type[BaseModel]


class ContextStore:
    """Holds the live global contexts merged into every tracked event.

    Entries are keyed by kind name.  Storing an instance for a kind that is
    already present replaces the old instance wholesale; there is no
    field-level merge.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[ContextKind, Any]] = {}
        self._model_kinds: dict[type[BaseModel], ContextKind] = {}
        self._lock = threading.Lock()

    def kind_for(self, kind: KindArg) -> ContextKind:
        """Resolve *kind*, caching kinds derived from model classes in this store.

        Raises
        ------
        ContextKindError
            If *kind* is neither a :class:`ContextKind` nor a pydantic model class.
        """
        if not isinstance(kind, type):
            return resolve_kind(kind)
        with self._lock:
            cached = self._model_kinds.get(kind)
        if cached is not None:
            return cached
        built = resolve_kind(kind)
        with self._lock:
            return self._model_kinds.setdefault(kind, built)

    def upsert(self, kind: KindArg, instance: Any) -> None:
        """Store *instance* as the live context for *kind*.

        ``None`` removes the kind instead.

        Raises
        ------
        ContextKindError
            If *kind* cannot be resolved or *instance* is not of the kind's
            model type.
        """
        resolved = self.kind_for(kind)
        if instance is None:
            self.remove(resolved)
            return
        if not resolved.accepts(instance):
            raise ContextKindError(
                f"Context kind {resolved.name} expects {getattr(resolved.model, '__name__', resolved.model)}, "
                f"got {type(instance).__name__}"
            )
        with self._lock:
            replaced = resolved.name in self._entries
            self._entries[resolved.name] = (resolved, instance)
        logger.debug("%s global context %s", "Replaced" if replaced else "Added", resolved.name)

    def remove(self, kind: KindArg) -> None:
        """Drop the context for *kind*; no-op when absent."""
        resolved = self.kind_for(kind)
        with self._lock:
            removed = self._entries.pop(resolved.name, None)
        if removed is not None:
            logger.debug("Removed global context %s", resolved.name)

    def get(self, kind: KindArg) -> Any | None:
        """Return the live instance for *kind*, or ``None``."""
        resolved = self.kind_for(kind)
        with self._lock:
            entry = self._entries.get(resolved.name)
        return entry[1] if entry is not None else None

    def kinds(self) -> list[ContextKind]:
        """Return the kinds currently stored."""
        with self._lock:
            return [kind for kind, _ in self._entries.values()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> list[tuple[str, dict[str, Any]]]:
        """Project every stored context into namespaced key/value pairs.

        Returns
        -------
        list[tuple[str, dict[str, Any]]]
            One ``(kind_name, {"<kind>.<field>": value})`` pair per stored
            context.  A field whose accessor raises is logged and omitted;
            the rest of the snapshot is unaffected.
        """
        with self._lock:
            entries = list(self._entries.values())

        snapshot: list[tuple[str, dict[str, Any]]] = []
        for kind, instance in entries:
            values: dict[str, Any] = {}
            for field in kind.fields:
                try:
                    values[kind.key_for(field.name)] = field.read(instance)
                except Exception as exc:
                    logger.warning(
                        "Error reading field %s from context %s: %s",
                        field.name,
                        kind.name,
                        exc,
                    )
            snapshot.append((kind.name, values))
        return snapshot

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, kind: object) -> bool:
        try:
            resolved = self.kind_for(kind)  # type: ignore[arg-type]
        except ContextKindError:
            return False
        with self._lock:
            return resolved.name in self._entries
