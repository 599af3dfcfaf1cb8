"""
Immutable GeoSPARQL filter expression nodes.

An expression applies one ``GeoOperation`` to a left operand and, for binary
operations, a right operand. Operands are variables bound per result row,
constant geographic literals, or nested expressions.
"""
import math
import re
from dataclasses import dataclass
from typing import Optional, Set, Union

from rdflib import Literal, URIRef, Variable

from geoengine.domain.exceptions import ExpressionConstructionError
from geoengine.domain.operations import GeoOperation
from geoengine.domain.vocabulary import GEO_LITERAL_TYPES, METRE, GeoPrefixes

DE9IM_PATTERN = re.compile(r"^[TF012*]{9}$")

Operand = Union["GeoExpression", Variable, Literal]


def _check_operand(operand, side: str, operation: GeoOperation) -> None:
    if operand is None:
        raise ExpressionConstructionError(
            f"Cannot create {operation.value} expression because given \"{side}\" argument is null"
        )
    if isinstance(operand, (GeoExpression, Variable)):
        return
    if isinstance(operand, Literal):
        if operand.datatype not in GEO_LITERAL_TYPES:
            raise ExpressionConstructionError(
                f"Cannot create {operation.value} expression because given \"{side}\" argument "
                f"is not a geographic typed literal"
            )
        return
    raise ExpressionConstructionError(
        f"Cannot create {operation.value} expression because given \"{side}\" argument "
        f"has unsupported type {type(operand).__name__}"
    )


def _render_uri(uri: URIRef, prefixed: bool) -> str:
    return GeoPrefixes.compact(uri) if prefixed else f"<{uri}>"


def _render_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def render_operand(operand: Operand, prefixed: bool = True) -> str:
    """Render an operand in SPARQL syntax."""
    if isinstance(operand, GeoExpression):
        return operand.to_string(prefixed)
    if isinstance(operand, Variable):
        return operand.n3()
    lexical = str(operand).replace("\\", "\\\\").replace('"', '\\"')
    return f"\"{lexical}\"^^{_render_uri(operand.datatype, prefixed)}"


@dataclass(frozen=True)
class GeoExpression:
    """
    A GeoSPARQL function application.

    Construction validates the operands; evaluation never raises.

    Attributes:
        operation: Function applied by this node
        left: First operand
        right: Second operand, required for binary operations
        buffer_meters: Distance for ``buffer``
        pattern: DE-9IM matrix pattern for ``relate``
    """
    operation: GeoOperation
    left: Operand
    right: Optional[Operand] = None
    buffer_meters: Optional[float] = None
    pattern: Optional[str] = None

    def __post_init__(self):
        operation = self.operation
        if not isinstance(operation, GeoOperation):
            try:
                operation = GeoOperation.from_name(str(operation))
            except ValueError as e:
                raise ExpressionConstructionError(str(e)) from e
            object.__setattr__(self, "operation", operation)

        _check_operand(self.left, "leftArgument", operation)
        if operation.arity == 2:
            _check_operand(self.right, "rightArgument", operation)
        elif self.right is not None:
            raise ExpressionConstructionError(
                f"Cannot create {operation.value} expression because it takes a single argument"
            )

        if operation is GeoOperation.BUFFER:
            if self.buffer_meters is None or not math.isfinite(self.buffer_meters):
                raise ExpressionConstructionError(
                    "Cannot create buffer expression because given distance is not a finite number of meters"
                )
        if operation is GeoOperation.RELATE:
            if self.pattern is None or not DE9IM_PATTERN.match(self.pattern.upper()):
                raise ExpressionConstructionError(
                    f"Cannot create relate expression because {self.pattern!r} is not a DE-9IM pattern"
                )
            object.__setattr__(self, "pattern", self.pattern.upper())

    @classmethod
    def of(
        cls,
        function: Union[str, GeoOperation],
        left: Operand,
        right: Optional[Operand] = None,
        **parameters,
    ) -> "GeoExpression":
        """
        Build an expression from a function name.

        Args:
            function: Local name, ``geof:`` name or full URI of the function
            left: First operand
            right: Second operand for binary functions
            parameters: ``buffer_meters`` or ``pattern``

        Returns:
            The expression node
        """
        return cls(function, left, right, **parameters)

    def variables(self) -> Set[str]:
        """Names of every variable referenced by this expression tree."""
        names: Set[str] = set()
        for operand in (self.left, self.right):
            if isinstance(operand, GeoExpression):
                names |= operand.variables()
            elif isinstance(operand, Variable):
                names.add(str(operand))
        return names

    def to_string(self, prefixed: bool = True) -> str:
        """
        Render the expression in SPARQL filter syntax.

        Args:
            prefixed: Use ``geof:``/``geo:``/``uom:`` prefixes instead of full URIs

        Returns:
            e.g. ``(geof:sfIntersects(?A, "POINT (1 2)"^^geo:wktLiteral))``
        """
        arguments = [render_operand(self.left, prefixed)]
        if self.right is not None:
            arguments.append(render_operand(self.right, prefixed))

        operation = self.operation
        if operation is GeoOperation.BUFFER:
            arguments.append(_render_number(self.buffer_meters))
        if operation in (GeoOperation.BUFFER, GeoOperation.DISTANCE):
            arguments.append(_render_uri(METRE, prefixed))
        if operation is GeoOperation.RELATE:
            arguments.append(f"\"{self.pattern}\"")

        return f"({_render_uri(operation.uri, prefixed)}({', '.join(arguments)}))"

    def __str__(self) -> str:
        return self.to_string(prefixed=False)
