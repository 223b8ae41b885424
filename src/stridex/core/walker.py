from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Optional, Sequence, Tuple

from .exceptions import InvalidArgumentError, UnimplementedError
from .resolver import ResolvedAxis, ResolvedSlice, num_elements

DEFAULT_MAX_RANK = 6


class WalkMode(str, Enum):
    EXTRACT = "extract"
    GRADIENT = "gradient"
    ASSIGN = "assign"


@dataclass(frozen=True)
class StridedWindow:
    """
    Element window visited by a walk.

    ``origin`` is the multi-index of the first element; moving one step along
    axis ``i`` of ``shape`` advances ``steps[i]`` elements along the same
    axis of the backing array.
    """

    origin: Tuple[int, ...]
    steps: Tuple[int, ...]
    shape: Tuple[int, ...]


Walker = Callable[..., Any]


def _make_walker(rank: int) -> Walker:
    def walk(
        backend,
        target,
        axes: Sequence[ResolvedAxis],
        shape: Sequence[int],
        mode: WalkMode,
        values=None,
    ):
        if len(axes) != rank or len(shape) != rank:
            raise InvalidArgumentError(
                f"rank-{rank} walker given {len(axes)} axes and shape of rank {len(shape)}"
            )
        window = StridedWindow(
            origin=tuple(axis.start for axis in axes),
            steps=tuple(axis.step for axis in axes),
            shape=tuple(int(dim) for dim in shape),
        )
        if mode is WalkMode.EXTRACT:
            return backend.read_window(target, window)
        if values is None:
            raise InvalidArgumentError(f"{mode.value} walk requires values")
        # Slicing maps processing indices injectively, so a plain write is
        # enough for gradients as well.
        backend.write_window(target, window, backend.reshape(values, window.shape))
        return target

    walk.__name__ = f"walk_rank{rank}"
    walk.__qualname__ = walk.__name__
    return walk


@lru_cache(maxsize=None)
def _cached_walker(rank: int) -> Walker:
    return _make_walker(rank)


def walker_for_rank(rank: int, max_rank: int = DEFAULT_MAX_RANK) -> Walker:
    """
    Look up the walker for a processing rank in the dispatch table.

    Each entry binds its rank and checks the arity of the resolved axes, then
    hands one strided window to the backend, which performs the element walk
    as a single view copy. ``max_rank`` caps which ranks are dispatched;
    anything outside ``1..max_rank`` is unimplemented.
    """
    if rank < 1 or rank > max_rank:
        raise UnimplementedError(f"Unhandled input dimensions {rank} (supported: 1..{max_rank})")
    return _cached_walker(rank)


def walk(
    backend,
    target,
    resolved: ResolvedSlice,
    mode: WalkMode,
    values=None,
    *,
    max_rank: int = DEFAULT_MAX_RANK,
):
    walker = walker_for_rank(len(resolved.processing_shape), max_rank)
    return walker(backend, target, resolved.axes, resolved.processing_shape, mode, values)


# Bulk-copy paths ---------------------------------------------------------------


def copy_identity(backend, source, resolved: ResolvedSlice, *, zero_copy: bool):
    out = backend.reshape(source, resolved.final_shape)
    return out if zero_copy else backend.copy(out)


def copy_contiguous_lead(backend, source, resolved: ResolvedSlice, *, zero_copy: bool):
    inner = num_elements(resolved.input_shape[1:])
    lead = resolved.axes[0]
    segment = backend.flat(source)[lead.start * inner : lead.stop * inner]
    out = backend.reshape(segment, resolved.final_shape)
    return out if zero_copy else backend.copy(out)


def copy_simple_2d(backend, source, resolved: ResolvedSlice, out: Optional[Any] = None):
    rows, cols = resolved.axes
    if out is None:
        out = backend.empty(resolved.final_shape, like=source)
    # A shrink plus a new axis can keep rank 2 while reordering the final
    # shape, so rows are copied through the processing layout.
    dst = backend.reshape(out, resolved.processing_shape)
    for row_out, row_in in enumerate(range(rows.start, rows.stop)):
        if row_in + 1 < rows.stop:
            backend.prefetch(dst, row_out + 1)
            backend.prefetch(source, row_in + 1)
        backend.copy_row(dst, row_out, source, row_in, cols.start, cols.stop)
    return out
