from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .exceptions import InvalidArgumentError
from .spec import AxisSpec, EllipsisAxis, Fixed, Full, NewAxis, Range, as_raw_spec

# Markers stored in the final-shape gather list next to real input axes.
_NEW_AXIS = -1
_SHRINK_AXIS = -2

Shape = Tuple[int, ...]


@dataclass(frozen=True)
class ResolvedAxis:
    start: int
    stop: int
    step: int

    @property
    def size(self) -> int:
        return _interval_size(self.start, self.stop, self.step)


@dataclass(frozen=True)
class ResolvedSlice:
    """Canonical form of a slicing spec against one concrete input shape."""

    input_shape: Shape
    axes: Tuple[ResolvedAxis, ...]
    processing_shape: Shape
    final_shape: Shape
    shrunk: Tuple[bool, ...]
    is_identity: bool
    is_simple_slice: bool
    slice_dim0: bool

    @property
    def begin(self) -> Tuple[int, ...]:
        return tuple(axis.start for axis in self.axes)

    @property
    def end(self) -> Tuple[int, ...]:
        return tuple(axis.stop for axis in self.axes)

    @property
    def strides(self) -> Tuple[int, ...]:
        return tuple(axis.step for axis in self.axes)

    @property
    def num_elements(self) -> int:
        return num_elements(self.processing_shape)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_shape": list(self.input_shape),
            "axes": [[axis.start, axis.stop, axis.step] for axis in self.axes],
            "processing_shape": list(self.processing_shape),
            "final_shape": list(self.final_shape),
            "shrunk": list(self.shrunk),
            "is_identity": self.is_identity,
            "is_simple_slice": self.is_simple_slice,
            "slice_dim0": self.slice_dim0,
        }


@dataclass
class _DenseSpec:
    """One entry per input axis; a ``None`` bound takes the full extent."""

    dims: int
    begin: List[Optional[int]]
    end: List[Optional[int]]
    strides: List[int]
    shrink: List[bool]
    final_shape_gather_indices: List[int] = field(default_factory=list)


def num_elements(shape: Sequence[int]) -> int:
    total = 1
    for dim in shape:
        total *= int(dim)
    return total


def as_shape(shape: Any) -> Shape:
    try:
        dims = tuple(operator.index(dim) for dim in shape)
    except TypeError as exc:
        raise InvalidArgumentError(f"Shape must be a sequence of integers, got {shape!r}") from exc
    for dim in dims:
        if dim < 0:
            raise InvalidArgumentError(f"Shape dimensions must be non-negative, got {dims}")
    return dims


def resolve_spec(input_shape: Sequence[int], spec: Any) -> ResolvedSlice:
    """
    Resolve ``spec`` against ``input_shape``.

    The spec is decoded into per-axis variants and expanded into one dense
    entry per input axis (ellipsis expansion, new axes recorded, shrinks
    recorded), then each dense entry is canonicalized into a ``ResolvedAxis``.
    The processing shape has one entry per input axis; the final shape drops
    shrunk axes and inserts the new ones.
    """
    shape = as_shape(input_shape)
    entries = list(as_raw_spec(spec).axes())
    # No ellipsis means every trailing axis is taken whole.
    if not any(isinstance(entry, EllipsisAxis) for entry in entries):
        entries.append(EllipsisAxis())

    dense = _build_dense_spec(entries, len(shape))

    axes: List[ResolvedAxis] = []
    processing: List[int] = []
    is_identity = True
    is_simple_slice = True
    slice_dim0 = True
    for i, dim in enumerate(shape):
        begin, end, stride = dense.begin[i], dense.end[i], dense.strides[i]
        if stride == 0:
            raise InvalidArgumentError(f"strides[{i}] must be non-zero")
        if dense.shrink[i]:
            index = dim + begin if begin < 0 else begin
            if index < 0 or index >= dim:
                raise InvalidArgumentError(
                    f"slice index {begin} of dimension {i} out of bounds (size {dim})."
                )
            start, stop = index, index + 1
        else:
            start = _canonical(begin, dim, stride, c=0)
            stop = _canonical(end, dim, stride, c=1)

        take_all = stride == 1 and start == 0 and stop == dim
        is_identity &= take_all
        slice_dim0 &= (i == 0 and stride == 1) or take_all
        is_simple_slice &= stride == 1

        axes.append(ResolvedAxis(start, stop, stride))
        processing.append(_interval_size(start, stop, stride))

    final: List[int] = []
    for gather_index in dense.final_shape_gather_indices:
        if gather_index >= 0:
            final.append(processing[gather_index])
        elif gather_index == _NEW_AXIS:
            final.append(1)

    return ResolvedSlice(
        input_shape=shape,
        axes=tuple(axes),
        processing_shape=tuple(processing),
        final_shape=tuple(final),
        shrunk=tuple(dense.shrink),
        is_identity=is_identity,
        is_simple_slice=is_simple_slice,
        slice_dim0=slice_dim0,
    )


def _build_dense_spec(entries: Sequence[AxisSpec], rank: int) -> _DenseSpec:
    dense = _DenseSpec(
        dims=rank,
        begin=[None] * rank,
        end=[None] * rank,
        strides=[1] * rank,
        shrink=[False] * rank,
    )
    sparse_dims = len(entries)
    new_axes_after_ellipsis = 0
    ellipsis_seen = False
    for entry in entries:
        if isinstance(entry, EllipsisAxis):
            ellipsis_seen = True
        elif ellipsis_seen and isinstance(entry, NewAxis):
            new_axes_after_ellipsis += 1

    full_index = 0
    for i, entry in enumerate(entries):
        if isinstance(entry, EllipsisAxis):
            # The ellipsis spans whatever the remaining entries leave over.
            next_index = min(rank - (sparse_dims - i) + 1 + new_axes_after_ellipsis, rank)
            while full_index < next_index:
                dense.final_shape_gather_indices.append(full_index)
                full_index += 1
            continue
        if isinstance(entry, NewAxis):
            dense.final_shape_gather_indices.append(_NEW_AXIS)
            continue
        if full_index == rank:
            raise InvalidArgumentError(
                f"Index out of range using input dim {full_index}; input has only {rank} dims"
            )
        if isinstance(entry, Fixed):
            dense.begin[full_index] = entry.index
            dense.end[full_index] = entry.index + 1
            dense.shrink[full_index] = True
            dense.final_shape_gather_indices.append(_SHRINK_AXIS)
        else:
            if isinstance(entry, Range):
                dense.begin[full_index] = entry.start
                dense.end[full_index] = entry.stop
                dense.strides[full_index] = entry.step
            elif not isinstance(entry, Full):
                raise InvalidArgumentError(f"Unsupported axis spec: {entry!r}")
            dense.final_shape_gather_indices.append(full_index)
        full_index += 1
    return dense


def _canonical(value: Optional[int], dim: int, stride: int, *, c: int) -> int:
    # c selects the bound: 0 for begin, 1 for end. None takes the full extent.
    valid_range = (0, dim) if stride > 0 else (-1, dim - 1)
    if value is None:
        return valid_range[c] if stride > 0 else valid_range[(c + 1) & 1]
    forward = dim + value if value < 0 else value
    return max(valid_range[0], min(forward, valid_range[1]))


def _interval_size(start: int, stop: int, step: int) -> int:
    interval = stop - start
    if interval == 0 or (interval < 0) != (step < 0):
        return 0
    return interval // step + (1 if interval % step else 0)
