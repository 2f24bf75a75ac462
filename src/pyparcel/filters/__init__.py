"""Package selection filters."""

from pyparcel.filters.ignore import should_ignore
from pyparcel.filters.scope import is_named, match_name, match_scope, parse_scope

__all__ = [
    "is_named",
    "match_name",
    "match_scope",
    "parse_scope",
    "should_ignore",
]
