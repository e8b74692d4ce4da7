"""
CEL filter expressions over list results.

A filter is a boolean CEL expression evaluated once per element, with the
element bound to ``this`` as a CEL map built from its pydantic fields.
Unset optional fields read as their zero value (the epoch for timestamps),
while ``has(this.read_time)`` still reports whether the field is set.
Members of any enum in the element schema are bound as identifiers, e.g.
``this.kind == STORY``.

Each element type gets one FilterEnvironment, built at startup and never
modified afterwards.
"""

import logging
import re
import typing
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

import celpy
from celpy import celtypes
from celpy.celparser import CELParseError
from celpy.evaluation import CELEvalError
from pydantic import BaseModel

logger = logging.getLogger(__name__)

THIS = "this"
# Holds only the set fields of the element; has(this.x) is rewritten onto it.
PRESENT = "_present"

T = TypeVar("T", bound=BaseModel)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_HAS_THIS = re.compile(
    r"""(?P<skip>'''.*?'''|\"\"\".*?\"\"\"|'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*"|//[^\n]*)"""
    r"""|\bhas\(\s*this\s*\.""",
    re.DOTALL,
)


class FilterError(ValueError):
    """A filter that does not compile, type-check or evaluate."""


def _rewrite_has(expression: str) -> str:
    """Point ``has(this.f)`` at the presence map, leaving string literals alone."""
    def replace(match: re.Match) -> str:
        if match.group("skip") is not None:
            return match.group(0)
        return f"has({PRESENT}."

    return _HAS_THIS.sub(replace, expression)


def _selected_fields(ast) -> list[str]:
    """Names of the members selected directly on the element."""
    names = []
    for subtree in ast.iter_subtrees():
        if subtree.data != "member_dot" or len(subtree.children) < 2:
            continue
        operand, name = subtree.children[0], subtree.children[-1]
        if not hasattr(operand, "scan_values"):
            continue
        idents = [str(v) for v in operand.scan_values(lambda v: isinstance(v, str))]
        if idents in ([THIS], [PRESENT]):
            names.append(str(name))
    return names


def _unwrap_optional(annotation: Any) -> Any:
    """``X | None`` -> ``X``."""
    args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
    if len(args) == 1 and type(None) in typing.get_args(annotation):
        return args[0]
    return annotation


def _to_cel(annotation: Any, value: Any) -> celtypes.Value:
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return celtypes.StringType(value.value if isinstance(value, Enum) else value)
    if annotation is bool:
        return celtypes.BoolType(value)
    if annotation is int:
        return celtypes.IntType(value)
    if annotation is float:
        return celtypes.DoubleType(value)
    if annotation is str:
        return celtypes.StringType(value)
    if annotation is datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return celtypes.TimestampType(value.astimezone(timezone.utc))
    raise TypeError(f"no CEL mapping for field type {annotation!r}")


def _zero(annotation: Any) -> Any:
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return ""
    if annotation is datetime:
        return EPOCH
    return annotation()


class FilterEnvironment(Generic[T]):
    """Compiles and applies filters for one element type."""

    def __init__(self, model: type[T]):
        self.model = model
        self.fields = {
            name: _unwrap_optional(field.annotation)
            for name, field in model.model_fields.items()
            if not field.exclude
        }

        self.constants: dict[str, celtypes.Value] = {}
        for annotation in self.fields.values():
            if isinstance(annotation, type) and issubclass(annotation, Enum):
                for member in annotation:
                    self.constants[member.name] = celtypes.StringType(member.value)

        self.prototype = celtypes.MapType({
            celtypes.StringType(name): _to_cel(annotation, _zero(annotation))
            for name, annotation in self.fields.items()
        })
        self._env = celpy.Environment()

    def present(self, element: T) -> celtypes.MapType:
        """Reflect the set fields of ``element`` into a CEL map."""
        values = {}
        for name, annotation in self.fields.items():
            value = getattr(element, name)
            if value is None:
                continue
            values[celtypes.StringType(name)] = _to_cel(annotation, value)
        return celtypes.MapType(values)

    def to_cel(self, element: T) -> celtypes.MapType:
        """Reflect ``element`` into a CEL map, unset fields reading as zero."""
        values = celtypes.MapType(self.prototype)
        values.update(self.present(element))
        return values

    def compile(self, expression: str) -> "Filter[T]":
        """
        Parse ``expression`` and type-check it against the element schema.

        Raises:
            FilterError: the expression does not parse, refers to fields the
                element does not have, or does not produce a boolean
        """
        try:
            ast = self._env.compile(_rewrite_has(expression))
        except CELParseError as e:
            raise FilterError(f"failed to compile filter: {e}") from e

        for name in _selected_fields(ast):
            if name not in self.fields:
                raise FilterError(
                    f"undefined field {name!r} on {self.model.__name__}"
                )

        try:
            program = self._env.program(ast)
        except CELParseError as e:
            raise FilterError(f"failed to compile filter: {e}") from e

        compiled = Filter(self, program, expression)
        result = compiled.evaluate(self.prototype, self.prototype)
        if not isinstance(result, celtypes.BoolType):
            raise FilterError(
                f"filter must produce a bool but produced {type(result).__name__}"
            )
        return compiled

    def apply(self, expression: str, elements: list[T]) -> list[T]:
        """Keep the elements matching ``expression``."""
        return self.compile(expression)(elements)


class Filter(Generic[T]):
    """A compiled, type-checked filter."""

    def __init__(self, env: FilterEnvironment[T], program, expression: str):
        self.env = env
        self.program = program
        self.expression = expression

    def evaluate(self, this: celtypes.MapType, present: celtypes.MapType) -> celtypes.Value:
        activation = dict(self.env.constants)
        activation[THIS] = this
        activation[PRESENT] = present
        try:
            result = self.program.evaluate(activation)
        except CELEvalError as e:
            raise FilterError(f"failed to evaluate filter: {e}") from e
        if isinstance(result, CELEvalError):
            raise FilterError(f"failed to evaluate filter: {result}")
        return result

    def matches(self, element: T) -> bool:
        result = self.evaluate(self.env.to_cel(element), self.env.present(element))
        if not isinstance(result, celtypes.BoolType):
            raise FilterError(
                f"filter must produce a bool but produced {type(result).__name__}"
            )
        return bool(result)

    def __call__(self, elements: list[T]) -> list[T]:
        return [element for element in elements if self.matches(element)]
