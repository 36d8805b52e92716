"""
odata_engine.parsers.enum_type - Enumeration parser
====================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from odata_engine.parsers.base import DEFAULT_OPTIONS, Parser, ParserOptions


class EnumTypeParser(Parser):
    """
    Maps enum member names on the wire to numeric values in Python.

    Flags enums accept several comma separated members and combine their
    values with a bitwise or.

    Parameters
    ----------
    name : str
        Enum type name without namespace
    namespace : str
        Owning schema namespace
    members : dict
        Member name -> numeric value
    flags : bool
        Bitmask semantics
    alias : str, optional
        Schema alias
    """

    def __init__(
        self,
        name: str,
        namespace: str,
        members: Dict[str, int],
        *,
        flags: bool = False,
        alias: Optional[str] = None,
    ):
        self.name = name
        self.namespace = namespace
        self.alias = alias
        self.flags = flags
        self.members: Dict[str, int] = dict(members)
        self._names: Dict[int, str] = {v: k for k, v in self.members.items()}

    @property
    def type(self) -> str:
        return f"{self.namespace}.{self.name}"

    def is_type_of(self, type_name: str) -> bool:
        names = [self.type]
        if self.alias:
            names.append(f"{self.alias}.{self.name}")
        return type_name in names

    # ---------------- conversion ----------------

    def _strip_literal(self, text: str) -> str:
        # Ns.Color'Red' -> Red
        if text.endswith("'") and "'" in text[:-1]:
            prefix, _, rest = text.partition("'")
            if prefix and self.is_type_of(prefix):
                return rest[:-1]
        return text

    def _value_of(self, member: str) -> int:
        member = member.strip()
        if member in self.members:
            return self.members[member]
        if member.lstrip("-").isdigit():
            return int(member)
        raise ValueError(f"'{member}' is not a member of {self.type}")

    def to_value(self, value: Any) -> int:
        """Member name(s) or number -> numeric value."""
        if isinstance(value, bool):
            raise ValueError(f"Invalid value for {self.type}: {value!r}")
        if isinstance(value, int):
            return value
        text = self._strip_literal(str(value))
        if self.flags:
            result = 0
            for part in text.split(","):
                if part.strip():
                    result |= self._value_of(part)
            return result
        return self._value_of(text)

    def to_names(self, value: int) -> List[str]:
        """Numeric value -> member names (several for flags)."""
        if not self.flags:
            if value not in self._names:
                raise ValueError(f"{value} is not a value of {self.type}")
            return [self._names[value]]
        if value == 0 and 0 in self._names:
            return [self._names[0]]
        names = [n for n, v in self.members.items() if v and (value & v) == v]
        return names

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [self.deserialize(v, options) for v in value]
        return self.to_value(value)

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [self.serialize(v, options) for v in value]
        return ", ".join(self.to_names(self.to_value(value)))

    def literal(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> str:
        if value is None:
            return "null"
        names = self.serialize(value, options)
        if options.string_as_enum:
            return f"'{names}'"
        return f"{self.type}'{names}'"

    def to_json_schema(self) -> Dict[str, Any]:
        return {
            "title": f"The {self.name} enum",
            "type": "string",
            "enum": list(self.members.keys()),
        }

    def __repr__(self) -> str:
        return f"EnumTypeParser({self.type})"
