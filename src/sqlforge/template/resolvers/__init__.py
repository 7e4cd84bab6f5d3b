"""Placeholder resolvers, one module per family.

Importing this package registers every resolver; a kind without one is an
import-time error.
"""

from sqlforge.template.resolvers import (  # noqa: F401
    clauses,
    conditions,
    core,
    functions,
    native,
    statements,
)
from sqlforge.template.resolvers.base import (
    RESOLVERS,
    PlaceholderKind,
    ResolutionContext,
    lookup_kind,
)

_missing = [kind.value for kind in PlaceholderKind if kind not in RESOLVERS]
if _missing:
    raise RuntimeError(f"Placeholder kinds without a resolver: {', '.join(_missing)}")

__all__ = ["RESOLVERS", "PlaceholderKind", "ResolutionContext", "lookup_kind"]
