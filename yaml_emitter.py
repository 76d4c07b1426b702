"""Block-style YAML writer for parsed configuration values.

Strings are always double quoted with backslash and quote escaped, numbers
are written bare, lists and dicts are indented two spaces per level.
Empty lists and dicts produce no lines.
"""

import io
import math
from typing import TextIO

INDENT_STEP = 2


def is_scalar(value):
    return not isinstance(value, (dict, list))


def format_number(value: float) -> str:
    if math.isnan(value):
        return ".nan"
    if math.isinf(value):
        return ".inf" if value > 0 else "-.inf"
    text = repr(value)
    mantissa, e, exponent = text.partition("e")
    if e and "." not in mantissa:
        # YAML 1.1 floats need a dot in the mantissa
        return f"{mantissa}.0e{exponent}"
    return text


def format_scalar(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, float):
        return format_number(value)
    raise TypeError(f"cannot emit value of type {type(value).__name__}")


def entries(value):
    """Yield (nested header, inline lead, item) for each member of a collection."""
    if isinstance(value, dict):
        for key, item in value.items():
            yield f"{key}:", f"{key}: ", item
    else:
        for item in value:
            yield "- ", "- ", item


def write(value, stream: TextIO, indent: int = 0) -> None:
    if is_scalar(value):
        stream.write(f"{' ' * indent}{format_scalar(value)}\n")
        return

    # open collections, innermost last
    stack = [(entries(value), indent)]
    while stack:
        members, level = stack[-1]
        member = next(members, None)
        if member is None:
            stack.pop()
            continue
        header, lead, item = member
        prefix = " " * level
        if is_scalar(item):
            stream.write(f"{prefix}{lead}{format_scalar(item)}\n")
        else:
            stream.write(f"{prefix}{header}\n")
            stack.append((entries(item), level + INDENT_STEP))


def emit(value, indent: int = 0) -> str:
    buffer = io.StringIO()
    write(value, buffer, indent)
    return buffer.getvalue()
