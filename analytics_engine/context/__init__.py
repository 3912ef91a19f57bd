"""Global contexts and the store that holds them."""

from analytics_engine.context.kinds import (
    ContextField,
    ContextKind,
    ContextKindError,
    define_context_kind,
    kind_for_model,
    resolve_kind,
)
from analytics_engine.context.store import ContextStore

__all__ = [
    "ContextField",
    "ContextKind",
    "ContextKindError",
    "ContextStore",
    "define_context_kind",
    "kind_for_model",
    "resolve_kind",
]
