"""Recursive-descent parser for the configuration language.

Input is read character by character, there is no separate tokenizer.
Supported constructs:

    REM line comment
    (comment block comment )
    1.0  -0.5  +3.25          numbers
    @"text"                   strings, taken verbatim
    [ 1.0; 2.0; ]             lists
    { key : value, }          dictionaries, keys are [a-z]+
    name := value             constant declaration
    |name 1.0 +|              postfix constant expression

The result is the last top-level value that is not a declaration.
"""

import logging
from dataclasses import dataclass, replace
from typing import NotRequired, TypedDict

from postfix_expression import ExpressionError, PostfixEvaluator, kind

logger = logging.getLogger(__name__)

BLOCK_COMMENT = "(comment"
LINE_COMMENT = "REM"


class ConfigSyntaxError(SyntaxError):
    def __init__(self, message, line, column):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.lineno = line
        self.offset = column

    def __str__(self):
        return f"{self.message} (line {self.line}, column {self.column})"


class ParserConfig(TypedDict):
    strict_numbers: NotRequired[bool]


class ParserConfigRequired(TypedDict):
    strict_numbers: bool


DEFAULT_CONFIG: ParserConfigRequired = {"strict_numbers": False}


def resolve_config(config, default_config):
    _config = default_config.copy()
    if config:
        for key in _config:
            if key in config:
                _config[key] = config[key]
    return _config


def is_digit(ch):
    return "0" <= ch <= "9"


def is_lower(ch):
    return "a" <= ch <= "z"


@dataclass
class Cursor:
    pos: int = 0
    line: int = 1
    column: int = 1

    def snapshot(self) -> "Cursor":
        return replace(self)

    def restore(self, saved: "Cursor"):
        self.pos = saved.pos
        self.line = saved.line
        self.column = saved.column


class Parser:
    def __init__(self, text: str, config: ParserConfig | None = None):
        self.text = text
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.cursor = Cursor()
        self.constants = {}

    def parse(self):
        result = None
        try:
            while True:
                self.skip_insignificant()
                if self.eof():
                    break
                if self.parse_declaration():
                    continue
                result = self.parse_value()
        except RecursionError:
            # literal nesting is bounded by the interpreter stack
            raise self.error("nesting too deep") from None
        logger.debug("Parsed result of kind %s", kind(result))
        return result

    def parse_declaration(self) -> bool:
        saved = self.cursor.snapshot()
        name = self.read_name()
        if name:
            self.skip_insignificant()
            if self.text.startswith(":=", self.cursor.pos):
                self.advance(2)
                self.constants[name] = self.parse_value()
                logger.debug("Bound constant %s to %s", name, kind(self.constants[name]))
                return True
        self.cursor.restore(saved)
        return False

    # -- scanning helpers --

    def eof(self):
        return self.cursor.pos >= len(self.text)

    def current(self):
        return self.text[self.cursor.pos]

    def advance(self, count=1):
        for _ in range(count):
            if self.eof():
                return
            if self.current() == "\n":
                self.cursor.line += 1
                self.cursor.column = 1
            else:
                self.cursor.column += 1
            self.cursor.pos += 1

    def error(self, message):
        return ConfigSyntaxError(message, self.cursor.line, self.cursor.column)

    def peek(self, ch):
        self.skip_insignificant()
        return not self.eof() and self.current() == ch

    def expect(self, ch):
        if not self.peek(ch):
            raise self.error(f"expected '{ch}'")
        self.advance()

    def read_name(self):
        start = self.cursor.pos
        while not self.eof() and is_lower(self.current()):
            self.advance()
        return self.text[start : self.cursor.pos]

    def skip_insignificant(self):
        consumed = True
        while consumed:
            consumed = False
            while not self.eof() and self.current().isspace():
                self.advance()
                consumed = True
            if self.text.startswith(LINE_COMMENT, self.cursor.pos):
                while not self.eof() and self.current() != "\n":
                    self.advance()
                consumed = True
            elif self.text.startswith(BLOCK_COMMENT, self.cursor.pos):
                self.advance(len(BLOCK_COMMENT))
                while not self.eof() and self.current() != ")":
                    self.advance()
                if self.eof():
                    raise self.error("unterminated block comment")
                self.advance()
                consumed = True

    # -- values --

    def parse_value(self):
        self.skip_insignificant()
        if self.eof():
            raise self.error("unexpected end of input while parsing a value")

        ch = self.current()
        if ch == "@":
            return self.parse_string()
        if ch == "[":
            return self.parse_list()
        if ch == "{":
            return self.parse_dict()
        if ch == "|":
            return self.parse_expression()
        if ch in "+-" or is_digit(ch):
            return self.parse_number()
        if is_lower(ch):
            name = self.read_name()
            if name not in self.constants:
                raise self.error(f"unknown identifier '{name}'")
            return self.constants[name]
        raise self.error(f"unexpected character '{ch}' while parsing a value")

    def parse_string(self):
        self.expect("@")
        if self.eof() or self.current() != '"':
            raise self.error("expected '\"'")
        self.advance()
        start = self.cursor.pos
        while not self.eof():
            if self.current() == '"':
                value = self.text[start : self.cursor.pos]
                self.advance()
                return value
            self.advance()
        raise self.error("unterminated string literal")

    def parse_number(self):
        start = self.cursor.pos
        if self.current() in "+-":
            self.advance()

        digits_before = self.skip_digits()
        has_dot = not self.eof() and self.current() == "."
        if has_dot:
            self.advance()
            digits_after = self.skip_digits()
            if not digits_before or not digits_after:
                raise self.error("invalid numeric literal")
        elif self.config["strict_numbers"]:
            raise self.error("invalid numeric literal: fractional part required")

        literal = self.text[start : self.cursor.pos]
        try:
            return float(literal)
        except ValueError:
            raise self.error(f"invalid numeric literal: {literal}") from None

    def skip_digits(self):
        count = 0
        while not self.eof() and is_digit(self.current()):
            self.advance()
            count += 1
        return count

    def parse_list(self):
        self.expect("[")
        items = []
        if self.peek("]"):
            self.advance()
            return items

        while True:
            items.append(self.parse_value())
            if self.peek(";"):
                self.advance()
                if self.peek("]"):
                    self.advance()
                    return items
            elif self.peek("]"):
                self.advance()
                return items
            else:
                raise self.error("expected ';' or ']'")

    def parse_dict(self):
        self.expect("{")
        obj = {}
        if self.peek("}"):
            self.advance()
            return obj

        while True:
            self.skip_insignificant()
            key = self.read_name()
            if not key:
                raise self.error("expected identifier")
            self.expect(":")
            obj[key] = self.parse_value()
            if self.peek(","):
                self.advance()
                if self.peek("}"):
                    self.advance()
                    return obj
            elif self.peek("}"):
                self.advance()
                return obj
            else:
                raise self.error("expected ',' or '}'")

    def parse_expression(self):
        self.expect("|")
        evaluator = PostfixEvaluator(self.constants)
        token = []
        while not self.eof():
            ch = self.current()
            if ch == "|" or ch.isspace():
                self.feed(evaluator, "".join(token))
                token.clear()
                self.advance()
                if ch == "|":
                    outcome = evaluator.finish()
                    if not outcome.ok:
                        raise self.error(
                            f"malformed constant expression: {outcome.depth} items on stack"
                        )
                    return outcome.value
                continue
            token.append(ch)
            self.advance()
        raise self.error("unterminated constant expression")

    def feed(self, evaluator, token):
        try:
            evaluator.feed(token)
        except ExpressionError as exc:
            raise self.error(str(exc)) from None


def parse(text: str, config: ParserConfig | None = None):
    """Parse a whole document and return its value tree."""
    return Parser(text, config).parse()
