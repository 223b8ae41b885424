from __future__ import annotations

from typing import Optional, Sequence


class StridexError(Exception):
    """Base class for stridex-specific exceptions."""


class InvalidArgumentError(StridexError, ValueError):
    pass


class UnimplementedError(StridexError, NotImplementedError):
    pass


class SpecParseError(StridexError, ValueError):
    def __init__(
        self,
        message: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        line_text: Optional[str] = None,
    ):
        detail = _format_location(line, column, line_text)
        super().__init__(f"{message}{detail}")
        self.line = line
        self.column = column
        self.line_text = line_text


class BackendError(StridexError, RuntimeError):
    pass


def format_shape(shape: Sequence[int]) -> str:
    dims = ",".join(str(int(dim)) for dim in shape)
    return f"[{dims}]"


def _format_location(
    line: Optional[int],
    column: Optional[int],
    line_text: Optional[str],
) -> str:
    if line is None and column is None:
        return ""
    location = []
    if line is not None:
        location.append(f"line {line}")
    if column is not None:
        location.append(f"col {column}")
    location_str = f" ({', '.join(location)})"
    if line_text is None or column is None or column < 1:
        return location_str
    caret = " " * (column - 1) + "^"
    return f"{location_str}\n  {line_text}\n  {caret}"
