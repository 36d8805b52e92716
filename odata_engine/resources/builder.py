"""
odata_engine.resources.builder - Query option rendering
========================================================

Turns query option values into OData URL parameters. Composite options
accept plain strings (used verbatim) or structured Python values:

- ``select``: ``"a,b"`` or ``["a", "b"]``
- ``expand``: ``"Friends"``, ``["Friends", "Trips"]`` or
  ``{"Friends": {"select": ["Name"], "top": 2}}``
- ``filter``: ``"Age gt 30"``, ``{"Name": "Ann"}``,
  ``{"Age": {"gt": 30}}``, ``{"or": [{...}, {...}]}``, ``{"not": {...}}``
- ``orderBy``: ``"Name desc"``, ``["Name", ("Age", "desc")]`` or
  ``{"Name": "asc"}``
- ``transform`` ($apply): ``{"filter": {...}, "groupBy": {"properties": [...],
  "transform": {"aggregate": {...}}}, "aggregate": {"Amount": {"with": "sum",
  "as": "Total"}}}``
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Union
from urllib.parse import urlencode

from odata_engine.parsers.edm import format_literal

ParamValue = Union[str, List[str]]

# option name -> URL parameter name
PARAM_NAMES = {
    "select": "$select",
    "expand": "$expand",
    "filter": "$filter",
    "orderBy": "$orderby",
    "top": "$top",
    "skip": "$skip",
    "skiptoken": "$skiptoken",
    "search": "$search",
    "format": "$format",
    "transform": "$apply",
    "levels": "$levels",
    "count": "$count",
    "compute": "$compute",
}

_COMPARISON = ("eq", "ne", "gt", "ge", "lt", "le", "has")
_FUNCTIONS = ("contains", "startswith", "endswith")
_LOGICAL = ("and", "or")


def _join_csv(items: Sequence[str]) -> str:
    """Join items as comma-separated values, stripping whitespace."""
    return ",".join([s.strip() for s in items if s and s.strip()])


def encode_query_params(params: Mapping[str, ParamValue]) -> str:
    """
    Encode query parameters for OData.

    Spaces are encoded as ``%20`` rather than ``+``, which several OData
    servers reject.
    """
    encoded = urlencode(params, doseq=True, safe="$'(),;=:/@*")
    return encoded.replace("+", "%20")


# ---------------- select / compute ----------------

def render_select(value: Any) -> str:
    if isinstance(value, str):
        return value
    return _join_csv(list(value))


# ---------------- expand ----------------

def _render_nested(options: Mapping[str, Any]) -> str:
    parts = []
    for name, value in options.items():
        if value is None or name == "custom":
            continue
        param = PARAM_NAMES.get(name, f"${name.lower()}")
        parts.append(f"{param}={render_option(name, value)}")
    return ";".join(parts)


def render_expand(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        parts = []
        for name, nested in value.items():
            if nested:
                parts.append(f"{name}({_render_nested(nested)})")
            else:
                parts.append(name)
        return ",".join(parts)
    return ",".join(render_expand(v) for v in value if v)


# ---------------- filter ----------------

def _comparison(field: str, operator: str, operand: Any) -> str:
    op = operator.lower()
    if op in _COMPARISON:
        return f"{field} {op} {format_literal(operand)}"
    if op == "in":
        return f"{field} in ({','.join(format_literal(v) for v in operand)})"
    if op in _FUNCTIONS:
        return f"{op}({field},{format_literal(operand)})"
    raise ValueError(f"Unknown filter operator '{operator}'")


def _clauses(value: Mapping[str, Any]) -> List[str]:
    clauses: List[str] = []
    for key, operand in value.items():
        lowered = key.lower()
        if lowered in _LOGICAL:
            items = operand if isinstance(operand, (list, tuple)) else [operand]
            rendered = [render_filter(v) for v in items]
            rendered = [r for r in rendered if r]
            if rendered:
                clauses.append("(" + f" {lowered} ".join(rendered) + ")")
        elif lowered == "not":
            clauses.append(f"not ({render_filter(operand)})")
        elif isinstance(operand, Mapping):
            clauses.extend(_comparison(key, op, v) for op, v in operand.items())
        else:
            clauses.append(_comparison(key, "eq", operand))
    return clauses


def render_filter(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return " and ".join(_clauses(value))
    rendered = [render_filter(v) for v in value]
    return " and ".join(r for r in rendered if r)


# ---------------- orderby ----------------

def render_orderby(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return ",".join(f"{name} {direction}" for name, direction in value.items())
    parts = []
    for item in value:
        if isinstance(item, str):
            parts.append(item)
        else:
            name, direction = item
            parts.append(f"{name} {direction}")
    return ",".join(parts)


# ---------------- transform ($apply) ----------------

def _render_aggregate(value: Any) -> str:
    if isinstance(value, str):
        return f"aggregate({value})"
    parts = []
    for prop, agg in value.items():
        if isinstance(agg, str):
            parts.append(f"{prop} with {agg} as {prop}")
        else:
            parts.append(f"{prop} with {agg['with']} as {agg.get('as', prop)}")
    return f"aggregate({','.join(parts)})"


def render_transform(value: Any) -> str:
    if isinstance(value, str):
        return value
    steps = []
    for name, step in value.items():
        lowered = name.lower()
        if lowered == "filter":
            steps.append(f"filter({render_filter(step)})")
        elif lowered == "aggregate":
            steps.append(_render_aggregate(step))
        elif lowered == "groupby":
            props = _join_csv(step.get("properties", []))
            nested = step.get("transform")
            inner = f",{render_transform(nested)}" if nested else ""
            steps.append(f"groupby(({props}){inner})")
        else:
            raise ValueError(f"Unknown transformation '{name}'")
    return "/".join(steps)


# ---------------- generic ----------------

def render_option(name: str, value: Any) -> str:
    if name in ("select", "compute"):
        return render_select(value)
    if name == "expand":
        return render_expand(value)
    if name == "filter":
        return render_filter(value)
    if name == "orderBy":
        return render_orderby(value)
    if name == "transform":
        return render_transform(value)
    if name == "count":
        return "true" if value else "false"
    return str(value)


def build_query_params(options: Mapping[str, Any]) -> Dict[str, ParamValue]:
    """
    Render an option mapping into URL parameters.

    Custom parameters are emitted unprefixed; empty options are dropped.
    """
    params: Dict[str, ParamValue] = {}
    for name, value in options.items():
        if value is None:
            continue
        if name == "custom":
            for key, custom in value.items():
                params[key] = custom if isinstance(custom, list) else str(custom)
            continue
        rendered = render_option(name, value)
        if rendered == "":
            continue
        params[PARAM_NAMES.get(name, f"${name.lower()}")] = rendered
    return params
