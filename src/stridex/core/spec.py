from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

from .exceptions import InvalidArgumentError

newaxis = None


@dataclass(frozen=True)
class Full:
    """Whole axis, step 1."""


@dataclass(frozen=True)
class Fixed:
    """Single index; the axis is dropped from the result."""

    index: int


@dataclass(frozen=True)
class Range:
    """``start:stop:step``; a ``None`` bound takes the full extent."""

    start: Optional[int] = None
    stop: Optional[int] = None
    step: int = 1


@dataclass(frozen=True)
class NewAxis:
    pass


@dataclass(frozen=True)
class EllipsisAxis:
    pass


AxisSpec = Union[Full, Fixed, Range, NewAxis, EllipsisAxis]


def _bit(mask: int, i: int) -> bool:
    return bool(mask & (1 << i))


@dataclass(frozen=True)
class RawSpec:
    """
    Sparse slicing specification in bitmask form.

    Entry ``i`` of ``begin``/``end``/``strides`` is modified by bit ``i`` of
    each mask:

    * ``begin_mask``/``end_mask`` ignore the given bound and use the full
      extent in the walk direction.
    * ``ellipsis_mask`` expands entry ``i`` over every input axis the other
      entries leave unspecified. At most one bit may be set.
    * ``new_axis_mask`` inserts a size-1 axis without consuming an input axis.
    * ``shrink_axis_mask`` selects the single index ``begin[i]`` and removes
      the axis from the final shape.
    """

    begin: Tuple[int, ...] = ()
    end: Tuple[int, ...] = ()
    strides: Tuple[int, ...] = ()
    begin_mask: int = 0
    end_mask: int = 0
    ellipsis_mask: int = 0
    new_axis_mask: int = 0
    shrink_axis_mask: int = 0

    def __post_init__(self):
        object.__setattr__(self, "begin", _int_tuple(self.begin, "begin"))
        object.__setattr__(self, "end", _int_tuple(self.end, "end"))
        object.__setattr__(self, "strides", _int_tuple(self.strides, "strides"))
        for name in (
            "begin_mask",
            "end_mask",
            "ellipsis_mask",
            "new_axis_mask",
            "shrink_axis_mask",
        ):
            value = int(getattr(self, name))
            if value < 0:
                raise InvalidArgumentError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    @property
    def dims(self) -> int:
        return len(self.begin)

    def validate(self) -> None:
        if not (len(self.begin) == len(self.end) == len(self.strides)):
            raise InvalidArgumentError(
                "Expected begin, end, and strides to be equal size, got "
                f"{len(self.begin)}, {len(self.end)}, and {len(self.strides)}"
            )
        if self.ellipsis_mask & (self.ellipsis_mask - 1):
            raise InvalidArgumentError(
                f"Multiple ellipses in slice spec not allowed (ellipsis_mask={self.ellipsis_mask})"
            )

    def axes(self) -> Tuple[AxisSpec, ...]:
        """Decode the bitmasks into one explicit variant per entry."""
        self.validate()
        decoded = []
        for i in range(self.dims):
            if _bit(self.ellipsis_mask, i):
                decoded.append(EllipsisAxis())
            elif _bit(self.new_axis_mask, i):
                decoded.append(NewAxis())
            elif _bit(self.shrink_axis_mask, i):
                # The walk along a shrunk axis is always forward, but a zero
                # stride is rejected here as it is on every other axis.
                if self.strides[i] == 0:
                    raise InvalidArgumentError(f"strides[{i}] must be non-zero")
                decoded.append(Fixed(self.begin[i]))
            else:
                start = None if _bit(self.begin_mask, i) else self.begin[i]
                stop = None if _bit(self.end_mask, i) else self.end[i]
                step = self.strides[i]
                if start is None and stop is None and step == 1:
                    decoded.append(Full())
                else:
                    decoded.append(Range(start, stop, step))
        return tuple(decoded)

    @classmethod
    def from_axes(cls, axes: Iterable[AxisSpec]) -> "RawSpec":
        begin, end, strides = [], [], []
        masks = {"begin": 0, "end": 0, "ellipsis": 0, "new_axis": 0, "shrink_axis": 0}
        for i, axis in enumerate(axes):
            flags: Tuple[str, ...] = ()
            if isinstance(axis, EllipsisAxis):
                entry, flags = (0, 0, 1), ("ellipsis",)
            elif isinstance(axis, NewAxis):
                entry, flags = (0, 0, 1), ("new_axis",)
            elif isinstance(axis, Fixed):
                entry, flags = (axis.index, axis.index + 1, 1), ("shrink_axis",)
            elif isinstance(axis, Full):
                entry, flags = (0, 0, 1), ("begin", "end")
            elif isinstance(axis, Range):
                if axis.start is None:
                    flags += ("begin",)
                if axis.stop is None:
                    flags += ("end",)
                entry = (axis.start or 0, axis.stop or 0, axis.step)
            else:
                raise InvalidArgumentError(f"Unsupported axis spec: {axis!r}")
            begin.append(entry[0])
            end.append(entry[1])
            strides.append(entry[2])
            for flag in flags:
                masks[flag] |= 1 << i
        return cls(
            begin=tuple(begin),
            end=tuple(end),
            strides=tuple(strides),
            begin_mask=masks["begin"],
            end_mask=masks["end"],
            ellipsis_mask=masks["ellipsis"],
            new_axis_mask=masks["new_axis"],
            shrink_axis_mask=masks["shrink_axis"],
        )

    @classmethod
    def from_index(cls, key: Any) -> "RawSpec":
        """Build a spec from Python indexing syntax (``x[1:3, ..., None, 0]``)."""
        if not isinstance(key, tuple):
            key = (key,)
        axes = []
        for item in key:
            if isinstance(item, slice):
                start = None if item.start is None else _as_index(item.start)
                stop = None if item.stop is None else _as_index(item.stop)
                step = 1 if item.step is None else _as_index(item.step)
                if start is None and stop is None and step == 1:
                    axes.append(Full())
                else:
                    axes.append(Range(start, stop, step))
            elif item is Ellipsis:
                axes.append(EllipsisAxis())
            elif item is None:
                axes.append(NewAxis())
            else:
                axes.append(Fixed(_as_index(item)))
        return cls.from_axes(axes)


def as_raw_spec(spec: Any) -> RawSpec:
    """Accept a ``RawSpec``, a textual index or a Python index key."""
    if isinstance(spec, RawSpec):
        return spec
    if isinstance(spec, str):
        from .parser import parse_spec

        return parse_spec(spec)
    return RawSpec.from_index(spec)


def _as_index(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Boolean index {value!r} is not supported")
    try:
        return operator.index(value)
    except TypeError as exc:
        raise InvalidArgumentError(
            f"Only integers, slices, ellipsis and newaxis are valid indices, got {value!r}"
        ) from exc


def _int_tuple(values: Iterable[Any], name: str) -> Tuple[int, ...]:
    try:
        return tuple(operator.index(v) for v in values)
    except TypeError as exc:
        raise InvalidArgumentError(f"{name} must contain integers, got {values!r}") from exc
