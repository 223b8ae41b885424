from __future__ import annotations

from enum import Enum

from .resolver import ResolvedSlice


class SlicePath(str, Enum):
    IDENTITY = "identity"
    CONTIGUOUS_LEAD = "contiguous_lead"
    SIMPLE_2D = "simple_2d"
    GENERIC = "generic"


def classify(
    resolved: ResolvedSlice,
    *,
    contiguous: bool,
    row_copy: bool,
) -> SlicePath:
    """
    Pick the cheapest execution path for an extraction.

    ``contiguous`` reports whether the input buffer is laid out row-major with
    no gaps; ``row_copy`` whether the backend can bulk-copy raw rows (host
    memory only).
    """
    if resolved.is_identity:
        return SlicePath.IDENTITY
    rank = len(resolved.input_shape)
    if resolved.slice_dim0 and contiguous and rank >= 1:
        return SlicePath.CONTIGUOUS_LEAD
    if (
        row_copy
        and resolved.is_simple_slice
        and resolved.num_elements > 0
        and rank == 2
        and len(resolved.processing_shape) == 2
        and len(resolved.final_shape) == 2
    ):
        return SlicePath.SIMPLE_2D
    return SlicePath.GENERIC
