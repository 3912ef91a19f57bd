"""Context kinds: statically declared field accessors for global contexts.

A :class:`ContextKind` names a context shape and lists, in order, the
fields that are projected into event parameters.  Kinds are declared once,
either explicitly with :func:`define_context_kind` or derived from a
pydantic model's declared fields by :func:`kind_for_model`, so taking a
snapshot never has to inspect instances at runtime.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]


class ContextKindError(ValueError):
    """Raised when a context kind cannot be resolved or an instance does not match it."""


@dataclass(frozen=True, slots=True)
class ContextField:
    """One readable value of a context, exposed under ``name``."""

    name: str
    accessor: Accessor

    def read(self, instance: Any) -> Any:
        return self.accessor(instance)


@dataclass(frozen=True, slots=True)
class ContextKind:
    """A context shape: namespace prefix, ordered fields and optional model type.

    Attributes
    ----------
    name:
        Namespace prefix used for projected keys (``"<name>.<field>"``).
        Two kinds with the same name occupy the same store entry.
    fields:
        Ordered field accessors.
    model:
        When set, instances stored under this kind must be of this type.
    """

    name: str
    fields: tuple[ContextField, ...]
    model: type | None = None

    def key_for(self, field_name: str) -> str:
        return f"{self.name}.{field_name}"

    def accepts(self, instance: Any) -> bool:
        return self.model is None or isinstance(instance, self.model)


def define_context_kind(
    name: str,
    fields: Iterable[str | tuple[str, Accessor]],
    *,
    model: type | None = None,
) -> ContextKind:
    """Declare a context kind.

    Parameters
    ----------
    name:
        Namespace prefix for the kind.
    fields:
        Field names (read with :func:`operator.attrgetter`) or
        ``(name, accessor)`` pairs for values that need custom access,
        e.g. ``("level", lambda ctx: ctx["level"])`` for dict-backed contexts.
    model:
        Optional type that stored instances must be an instance of.

    Raises
    ------
    ContextKindError
        If the name is empty or a field name is repeated.
    """
    if not name:
        raise ContextKindError("Context kind name must be non-empty")

    declared: list[ContextField] = []
    seen: set[str] = set()
    for entry in fields:
        if isinstance(entry, str):
            field = ContextField(entry, operator.attrgetter(entry))
        else:
            field_name, accessor = entry
            field = ContextField(field_name, accessor)
        if field.name in seen:
            raise ContextKindError(f"Context kind {name} declares field '{field.name}' more than once")
        seen.add(field.name)
        declared.append(field)

    return ContextKind(name=name, fields=tuple(declared), model=model)


# ---------------------------------------------------------------------------
# Kinds derived from pydantic models
# ---------------------------------------------------------------------------

def kind_for_model(model: type[BaseModel]) -> ContextKind:
    """Build the kind for a pydantic model class.

    Fields are the model's declared fields followed by its computed fields;
    the kind is named after the class.  Callers that resolve the same model
    repeatedly cache the result (see :meth:`ContextStore.kind_for`).
    """
    field_names = [*model.model_fields, *model.model_computed_fields]
    kind = define_context_kind(model.__name__, field_names, model=model)
    logger.debug("Derived context kind %s with %d field(s)", kind.name, len(kind.fields))
    return kind


def resolve_kind(kind: ContextKind | type[BaseModel]) -> ContextKind:
    """Normalise a kind argument to a :class:`ContextKind`.

    Raises
    ------
    ContextKindError
        If *kind* is neither a :class:`ContextKind` nor a pydantic model class.
    """
    if isinstance(kind, ContextKind):
        return kind
    if isinstance(kind, type) and issubclass(kind, BaseModel):
        return kind_for_model(kind)
    raise ContextKindError(
        f"Unsupported context kind {kind!r}: expected a ContextKind or a pydantic model class"
    )
