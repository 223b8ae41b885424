from __future__ import annotations

from typing import Dict, Iterable, Sequence


def _prod(values: Iterable[int]) -> int:
    result = 1
    for value in values:
        result *= int(value)
    return int(result)


def compute_slice_stats(
    kind: str,
    input_shape: Sequence[int],
    final_shape: Sequence[int],
    itemsize: int,
) -> Dict[str, int]:
    """Element and byte counts moved by one slice, gradient or assignment."""
    selected = _prod(final_shape)
    total = _prod(input_shape)
    bytes_in = selected * int(itemsize)
    if kind == "grad":
        # Zero fill touches the whole destination before the scatter.
        bytes_out = (total + selected) * int(itemsize)
    else:
        bytes_out = selected * int(itemsize)
    return {
        "elements": selected,
        "input_elements": total,
        "bytes_in": int(bytes_in),
        "bytes_out": int(bytes_out),
        "bytes_total": int(bytes_in + bytes_out),
    }
