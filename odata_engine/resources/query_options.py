"""
odata_engine.resources.query_options - Query option set
========================================================

A mutable mapping of OData query options attached to a resource. Resources
clone their option set before changing it, so the set a caller holds is
never mutated behind their back.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union

from odata_engine.resources.builder import ParamValue, build_query_params


class QueryOptionNames(str, Enum):
    """Known option names."""

    SELECT = "select"
    EXPAND = "expand"
    FILTER = "filter"
    ORDER_BY = "orderBy"
    TOP = "top"
    SKIP = "skip"
    SKIPTOKEN = "skiptoken"
    SEARCH = "search"
    FORMAT = "format"
    TRANSFORM = "transform"
    LEVELS = "levels"
    COMPUTE = "compute"
    CUSTOM = "custom"


OptionName = Union[QueryOptionNames, str]

COMPOSITE_OPTIONS = frozenset({"select", "expand", "filter", "orderBy", "transform", "compute", "custom"})

_UNSET = object()


def _name(name: OptionName) -> str:
    return name.value if isinstance(name, QueryOptionNames) else name


class OptionHandler:
    """
    Accessor for a composite option (select, expand, filter, ...).

    Mutations write through to the owning option set.
    """

    def __init__(self, options: "QueryOptions", name: str):
        self._options = options
        self.name = name

    def __repr__(self) -> str:
        return f"OptionHandler({self.name}={self.value!r})"

    @property
    def value(self) -> Any:
        return self._options.values.get(self.name)

    def set(self, value: Any) -> "OptionHandler":
        self._options.set(self.name, value)
        return self

    def add(self, *items: Any, **named: Any) -> "OptionHandler":
        """
        Append to the option.

        List-like options (select, orderBy, filter) append items; mapping
        options (expand, custom) merge keyword entries. A plain string
        value is promoted to a one-element list first.
        """
        current = self.value
        if named or isinstance(current, dict):
            merged = dict(current) if isinstance(current, dict) else {}
            if isinstance(current, str):
                merged[current] = {}
            for item in items:
                merged[item] = {}
            merged.update(named)
            return self.set(merged)
        values = [] if current is None else ([current] if isinstance(current, str) else list(current))
        values.extend(items)
        return self.set(values)

    def remove(self, *items: Any) -> "OptionHandler":
        current = self.value
        if isinstance(current, dict):
            return self.set({k: v for k, v in current.items() if k not in items} or None)
        if isinstance(current, (list, tuple)):
            return self.set([v for v in current if v not in items] or None)
        if current in items:
            self.clear()
        return self

    def clear(self) -> "OptionHandler":
        self._options.values.pop(self.name, None)
        return self


class QueryOptions:
    """
    Query options of a resource.

    Examples
    --------
    >>> options = QueryOptions()
    >>> options.option("top", 5)
    5
    >>> options.option("select", ["Name"]).add("Age")
    OptionHandler(select=['Name', 'Age'])
    >>> options.params()
    {'$top': '5', '$select': 'Name,Age'}
    >>> options.keep("select").params()
    {'$select': 'Name,Age'}
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(values or {})

    def __repr__(self) -> str:
        return f"QueryOptions({self.values!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, QueryOptions) and self.values == other.values

    def option(self, name: OptionName, value: Any = _UNSET) -> Any:
        """
        Get or set an option.

        With a value, replaces the option and returns the new value. The
        result is an ``OptionHandler`` for composite options and the raw
        value for simple ones, in both the getter and the setter form.
        """
        key = _name(name)
        if value is not _UNSET:
            self.set(key, value)
            if value is None:
                return None
        if key in COMPOSITE_OPTIONS:
            return OptionHandler(self, key)
        return self.values.get(key)

    def set(self, name: OptionName, value: Any) -> "QueryOptions":
        key = _name(name)
        if value is None:
            self.values.pop(key, None)
        else:
            self.values[key] = value
        return self

    def has(self, name: OptionName) -> bool:
        return self.values.get(_name(name)) is not None

    def get(self, name: OptionName, default: Any = None) -> Any:
        return self.values.get(_name(name), default)

    def clear(self) -> "QueryOptions":
        self.values.clear()
        return self

    def keep(self, *names: OptionName) -> "QueryOptions":
        """Drop every option not listed."""
        allowed = {_name(n) for n in names}
        self.values = {k: v for k, v in self.values.items() if k in allowed}
        return self

    def clone(self) -> "QueryOptions":
        return QueryOptions(copy.deepcopy(self.values))

    def params(self) -> Dict[str, ParamValue]:
        """Options rendered as URL query parameters."""
        return build_query_params(self.values)

    def names(self) -> Iterable[str]:
        return list(self.values)
