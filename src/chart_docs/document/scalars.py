"""Scalar values found at the leaves of a values file."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

import yaml
from yaml.resolver import Resolver

__all__ = [
    "Scalar",
    "ScalarKind",
    "ScalarValue",
]

ScalarValue = Union[str, int, float, bool, None]

_STR_TAG = "tag:yaml.org,2002:str"
_RESOLVER = Resolver()

# Characters that change meaning in YAML or break a Markdown table cell.
_AMBIGUOUS_CHARS = frozenset("#|:\"'`\n\r\t")
_INDICATOR_START = frozenset("-?:,[]{}#&*!|>'\"%@`")


class ScalarKind(Enum):
    """Closed set of scalar kinds; values double as type labels."""

    STRING = "string"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    NULL = "null"


@dataclass(frozen=True)
class Scalar:
    """A tagged scalar: ``kind`` decides how ``value`` is rendered."""

    kind: ScalarKind
    value: ScalarValue

    @classmethod
    def from_value(cls, value: Any) -> "Scalar":
        if value is None:
            return cls(ScalarKind.NULL, None)
        if isinstance(value, bool):
            return cls(ScalarKind.BOOLEAN, value)
        if isinstance(value, int):
            return cls(ScalarKind.INTEGER, value)
        if isinstance(value, float):
            return cls(ScalarKind.FLOAT, value)
        if isinstance(value, str):
            return cls(ScalarKind.STRING, value)
        if isinstance(value, (bytes, bytearray)):
            return cls(
                ScalarKind.STRING, bytes(value).decode("utf-8", "replace")
            )
        # Dates and timestamps from YAML, or anything else a loader returns.
        if hasattr(value, "isoformat"):
            return cls(ScalarKind.STRING, value.isoformat())
        return cls(ScalarKind.STRING, str(value))

    @property
    def label(self) -> str:
        return self.kind.value

    def text(self) -> str:
        """Unquoted text form, used for mapping keys."""

        if self.kind is ScalarKind.STRING:
            return str(self.value)
        return self.render()

    def render(self) -> str:
        """Canonical notation used for rendered defaults."""

        if self.kind is ScalarKind.NULL:
            return "null"
        if self.kind is ScalarKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind is ScalarKind.INTEGER:
            return str(self.value)
        if self.kind is ScalarKind.FLOAT:
            return _render_float(float(self.value))  # type: ignore[arg-type]
        return _render_string(str(self.value))


def _render_float(value: float) -> str:
    if math.isnan(value):
        return ".nan"
    if math.isinf(value):
        return ".inf" if value > 0 else "-.inf"
    return repr(value)


def _render_string(value: str) -> str:
    if _is_ambiguous(value):
        return json.dumps(value, ensure_ascii=False)
    return value


def _is_ambiguous(value: str) -> bool:
    if not value or value != value.strip():
        return True
    if value[0] in _INDICATOR_START:
        return True
    if any(char in _AMBIGUOUS_CHARS for char in value):
        return True
    # Plain text YAML would read back as a bool, number, null, ...
    tag = _RESOLVER.resolve(yaml.ScalarNode, value, (True, False))
    return tag != _STR_TAG
