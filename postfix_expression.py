"""Postfix constant expressions: |a b +|, |xs @"z" concat()|, |5 2 mod()|."""

import math
import re
from dataclasses import dataclass
from typing import Any

NUMBER_TOKEN = re.compile(r"[+-]?\d+(\.\d+)?", re.ASCII)
NAME_TOKEN = re.compile(r"[a-z]+")

LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


class ExpressionError(Exception):
    """Failure inside an expression. The parser attaches the position."""


def kind(value):
    if value is None:
        return "null"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "dict"
    return type(value).__name__


def _invalid(op, a, b):
    return ExpressionError(f"invalid operands for {op}: {kind(a)}, {kind(b)}")


def _numbers(op, a, b):
    if not (isinstance(a, float) and isinstance(b, float)):
        raise _invalid(op, a, b)
    return a, b


def add(a, b):
    a, b = _numbers("+", a, b)
    return a + b


def subtract(a, b):
    a, b = _numbers("-", a, b)
    return a - b


def multiply(a, b):
    a, b = _numbers("*", a, b)
    return a * b


def concat(a, b):
    if isinstance(a, list) and isinstance(b, list):
        return [*a, *b]
    if isinstance(a, str) and isinstance(b, str):
        return a + b
    if isinstance(a, list) and isinstance(b, str):
        return [*a, b]
    if isinstance(a, str) and isinstance(b, list):
        return [a, *b]
    raise _invalid("concat()", a, b)


def to_long(x: float) -> int:
    # same narrowing as a double -> int64 cast: NaN is 0, out of range saturates
    if math.isnan(x):
        return 0
    if x >= LONG_MAX:
        return LONG_MAX
    if x <= LONG_MIN:
        return LONG_MIN
    return int(x)


def mod(a, b):
    a, b = _numbers("mod()", a, b)
    dividend, divisor = to_long(a), to_long(b)
    if divisor == 0:
        raise ExpressionError("division by zero in mod()")
    remainder = abs(dividend) % abs(divisor)
    return float(-remainder if dividend < 0 else remainder)


OPERATORS = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "concat()": concat,
    "mod()": mod,
}


@dataclass(frozen=True)
class StackOutcome:
    """What is left on the stack once the closing | is reached."""

    value: Any
    depth: int

    @property
    def ok(self) -> bool:
        return self.depth == 1


class OperandStack:
    def __init__(self):
        self.items = []

    def __len__(self):
        return len(self.items)

    def push(self, value):
        self.items.append(value)

    def apply(self, op: str):
        if len(self.items) < 2:
            raise ExpressionError(f"insufficient operands for {op}")
        right = self.items.pop()
        left = self.items.pop()
        self.items.append(OPERATORS[op](left, right))

    def outcome(self) -> StackOutcome:
        value = self.items[0] if len(self.items) == 1 else None
        return StackOutcome(value, len(self.items))


class PostfixEvaluator:
    """Evaluates whitespace separated tokens left to right against the constant table."""

    def __init__(self, constants: dict):
        self.constants = constants
        self.stack = OperandStack()

    def feed(self, token: str):
        if not token:
            return
        if token in OPERATORS:
            self.stack.apply(token)
            return
        if token.startswith("@"):
            if len(token) < 3 or token[1] != '"' or token[-1] != '"':
                raise ExpressionError(f"malformed string in expression: {token}")
            self.stack.push(token[2:-1])
            return
        if NUMBER_TOKEN.fullmatch(token):
            self.stack.push(float(token))
            return
        if NAME_TOKEN.fullmatch(token):
            if token not in self.constants:
                raise ExpressionError(f"unknown identifier '{token}' in expression")
            self.stack.push(self.constants[token])
            return
        raise ExpressionError(f"unknown token in constant expression: {token}")

    def finish(self) -> StackOutcome:
        return self.stack.outcome()
