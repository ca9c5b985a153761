"""Restricted expression compiler for animation parameters.

Grammar (a subset of Python expression syntax, checked node by node):

- numeric literals, ``+ - * /``, unary ``+ -`` and parentheses
- the name ``signal``, bound to the clamped signal value
- quoted string literals, for direction names (``"incDec"``)
- ``true`` / ``false``, for the transition flag

Expressions are parsed once into a tree of closures. Nothing is ever passed
to ``eval``.
"""

import ast
import logging
import math
import operator
from collections.abc import Callable
from dataclasses import dataclass

from keylight.exceptions import ExpressionError
from keylight.models import Animation, ChannelAnimation, ChannelState, Direction, KeyState

logger = logging.getLogger(__name__)

SIGNAL_NAME = "signal"

NUMBER = "number"
STRING = "string"
BOOLEAN = "boolean"

_BINARY_OPERATORS: dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPERATORS: dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_BOOLEAN_NAMES = {"true": True, "false": False}

_NUMERIC_FIELDS = (
    "up_hold_level",
    "down_hold_level",
    "up_maximum_level",
    "down_minimum_level",
    "up_hold_delay",
    "down_hold_delay",
    "up_increment",
    "down_decrement",
    "up_increment_delay",
    "down_decrement_delay",
    "start_delay",
    "effect_id",
)

Evaluator = Callable[[float], object]


@dataclass(frozen=True)
class CompiledExpression:
    """An expression compiled to a closure, with its statically known result kind."""

    source: str
    kind: str
    evaluate: Evaluator

    def __call__(self, signal: float) -> object:
        return self.evaluate(signal)


def compile_expression(source: str) -> CompiledExpression:
    """
    Compile ``source`` into a closure over the signal value.

    Raises:
        ExpressionError: If the source is not valid within the grammar
    """
    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(source, f"syntax error: {e.msg}") from e

    kind, evaluate = _compile_node(tree.body, source)
    return CompiledExpression(source=source, kind=kind, evaluate=evaluate)


def _compile_node(node: ast.AST, source: str) -> tuple[str, Evaluator]:
    if isinstance(node, ast.Constant):
        value = node.value
        if isinstance(value, bool):
            return BOOLEAN, lambda signal: value
        if isinstance(value, (int, float)):
            return NUMBER, lambda signal: value
        if isinstance(value, str):
            return STRING, lambda signal: value
        raise ExpressionError(source, f"literal {value!r} is not allowed")

    if isinstance(node, ast.Name):
        if node.id == SIGNAL_NAME:
            return NUMBER, lambda signal: signal
        if node.id in _BOOLEAN_NAMES:
            flag = _BOOLEAN_NAMES[node.id]
            return BOOLEAN, lambda signal: flag
        raise ExpressionError(source, f"unknown name '{node.id}' (only '{SIGNAL_NAME}' is bound)")

    if isinstance(node, ast.UnaryOp):
        unary = _UNARY_OPERATORS.get(type(node.op))
        if unary is None:
            raise ExpressionError(source, f"operator {type(node.op).__name__} is not allowed")
        kind, operand = _compile_node(node.operand, source)
        if kind != NUMBER:
            raise ExpressionError(source, "unary operators only apply to numbers")
        return NUMBER, lambda signal: unary(operand(signal))

    if isinstance(node, ast.BinOp):
        binary = _BINARY_OPERATORS.get(type(node.op))
        if binary is None:
            raise ExpressionError(source, f"operator {type(node.op).__name__} is not allowed")
        left_kind, left = _compile_node(node.left, source)
        right_kind, right = _compile_node(node.right, source)
        if left_kind != NUMBER or right_kind != NUMBER:
            raise ExpressionError(source, "arithmetic only applies to numbers")

        def apply(signal: float) -> float:
            try:
                return binary(left(signal), right(signal))
            except ZeroDivisionError:
                raise ExpressionError(source, f"division by zero for signal={signal}") from None
            except OverflowError:
                raise ExpressionError(source, f"result out of range for signal={signal}") from None

        return NUMBER, apply

    raise ExpressionError(source, f"{type(node).__name__} is not allowed")


# =================================================================
# Parameter compilers
# =================================================================

def compile_numeric(template: int | float | str | None) -> Callable[[float], int | None]:
    """Compile a numeric parameter; results are rounded to int."""
    if template is None:
        return lambda signal: None
    if isinstance(template, (int, float)) and not isinstance(template, bool):
        if isinstance(template, float) and not math.isfinite(template):
            raise ExpressionError(repr(template), "numeric parameters must be finite")
        constant = round(template)
        return lambda signal: constant
    if not isinstance(template, str):
        raise ExpressionError(repr(template), "numeric parameters take a number or an expression")

    expression = compile_expression(template)
    if expression.kind != NUMBER:
        raise ExpressionError(template, "expression must produce a number")

    def evaluate(signal: float) -> int:
        value = expression(signal)
        if isinstance(value, float) and not math.isfinite(value):
            raise ExpressionError(template, f"result {value} is not a finite number")
        return round(value)

    return evaluate


def compile_direction(template: str | None) -> Callable[[float], Direction | None]:
    """Compile a direction parameter: a direction name or an expression yielding one."""
    if template is None:
        return lambda signal: None
    try:
        constant = Direction(template)
        return lambda signal: constant
    except ValueError:
        pass

    expression = compile_expression(template)
    if expression.kind != STRING:
        raise ExpressionError(template, "direction must be one of: " + ", ".join(d.value for d in Direction))

    def evaluate(signal: float) -> Direction:
        value = expression(signal)
        try:
            return Direction(value)
        except ValueError:
            raise ExpressionError(template, f"'{value}' is not a direction") from None

    # Constant strings can be checked right away
    evaluate(0.0)
    return evaluate


def compile_transition(template: bool | str | None) -> Callable[[float], bool | None]:
    """Compile the transition flag: a boolean literal or ``true``/``false``."""
    if template is None:
        return lambda signal: None
    if isinstance(template, bool):
        return lambda signal: template

    expression = compile_expression(template)
    if expression.kind != BOOLEAN:
        raise ExpressionError(template, "transition must be true or false")
    return lambda signal: bool(expression(signal))


def compile_channel(animation: ChannelAnimation) -> Callable[[float], ChannelState]:
    """Compile every parameter of a channel template."""
    numeric = {name: compile_numeric(getattr(animation, name)) for name in _NUMERIC_FIELDS}
    direction = compile_direction(animation.direction)
    transition = compile_transition(animation.transition)

    def resolve(signal: float) -> ChannelState:
        values = {name: evaluate(signal) for name, evaluate in numeric.items()}
        return ChannelState(direction=direction(signal), transition=transition(signal), **values)

    return resolve


class CompiledAnimation:
    """An animation template compiled once and resolved per signal value."""

    def __init__(self, animation: Animation):
        self.animation = animation
        self._red = compile_channel(animation.red)
        self._green = compile_channel(animation.green)
        self._blue = compile_channel(animation.blue)

    def resolve(self, signal: float) -> KeyState:
        """Evaluate the template for ``signal``."""
        return KeyState(red=self._red(signal), green=self._green(signal), blue=self._blue(signal))
