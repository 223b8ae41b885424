from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from .exceptions import SpecParseError
from .spec import RawSpec

GRAMMAR_PATH = Path(__file__).with_name("index_grammar.lark")


@lru_cache(maxsize=1)
def _build_lark() -> Lark:
    return Lark(
        GRAMMAR_PATH.read_text(),
        parser="earley",
        start="start",
        ambiguity="resolve",
        propagate_positions=True,
        maybe_placeholders=False,
    )


class _IndexXform(Transformer):
    def index_list(self, items: List[Any]) -> List[Any]:
        return list(items)

    def ellipsis(self, _items):
        return Ellipsis

    def newaxis(self, _items):
        return None

    def point(self, items) -> int:
        return int(items[0])

    def bound(self, items) -> int:
        return int(items[0])

    def span(self, items) -> slice:
        # Each COLON opens the next field; missing fields stay None.
        fields: List[Optional[int]] = [None]
        for item in items:
            if isinstance(item, Token) and item.type == "COLON":
                fields.append(None)
            else:
                fields[-1] = item
        start, stop, step = (fields + [None])[:3]
        return slice(start, stop, step)


def parse_index(text: str) -> tuple:
    """Parse ``text`` into a Python index key (ints, slices, ``...``, ``None``)."""
    parser = _build_lark()
    try:
        tree = parser.parse(text)
    except UnexpectedInput as exc:
        line = exc.line if exc.line and exc.line > 0 else 1
        column = exc.column if exc.column and exc.column > 0 else 1
        lines = text.splitlines() or [""]
        line_text = lines[line - 1] if line <= len(lines) else ""
        raise SpecParseError(
            "Syntax error while parsing index spec",
            line=line,
            column=column,
            line_text=line_text,
        ) from exc
    return tuple(_IndexXform().transform(tree))


def parse_spec(text: str) -> RawSpec:
    return RawSpec.from_index(parse_index(text))
