from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple

import numpy as np
from numpy.lib.stride_tricks import as_strided

from .exceptions import BackendError, InvalidArgumentError


class SliceBackend(Protocol):
    name: str
    row_copy: bool

    def asarray(self, value: Any, like: Any = None) -> Any:
        """Return ``value`` as a backend array (no copy when possible)."""

    def shape(self, array: Any) -> Tuple[int, ...]: ...

    def itemsize(self, array: Any) -> int: ...

    def is_contiguous(self, array: Any) -> bool: ...

    def check_writable(self, array: Any) -> None: ...

    def empty(self, shape: Sequence[int], like: Any) -> Any: ...

    def zeros(self, shape: Sequence[int], like: Any) -> Any: ...

    def reshape(self, array: Any, shape: Sequence[int]) -> Any: ...

    def copy(self, array: Any) -> Any: ...

    def flat(self, array: Any) -> Any: ...

    def read_window(self, array: Any, window) -> Any: ...

    def write_window(self, array: Any, window, values: Any) -> None: ...

    def write_all(self, array: Any, values: Any) -> None: ...

    def copy_row(self, dst: Any, dst_row: int, src: Any, src_row: int, start: int, stop: int) -> None: ...

    def prefetch(self, array: Any, row: int) -> None: ...


class NumpyBackend:
    """Host execution over ``numpy.ndarray`` buffers."""

    name = "numpy"
    row_copy = True

    def __init__(self, device: str = "cpu"):
        if device not in {"auto", "cpu"}:
            raise BackendError(f"NumPy backend only supports CPU execution, got device '{device}'")
        self.device = "cpu"

    def asarray(self, value: Any, like: Any = None) -> np.ndarray:
        if like is not None:
            return np.asarray(value, dtype=like.dtype)
        return np.asarray(value)

    def shape(self, array: np.ndarray) -> Tuple[int, ...]:
        return tuple(int(dim) for dim in array.shape)

    def itemsize(self, array: np.ndarray) -> int:
        return int(array.itemsize)

    def is_contiguous(self, array: np.ndarray) -> bool:
        return bool(array.flags.c_contiguous)

    def check_writable(self, array: Any) -> None:
        if not isinstance(array, np.ndarray):
            raise InvalidArgumentError(
                f"Assignment target must be a numpy.ndarray, got {type(array).__name__}"
            )
        if not array.flags.writeable:
            raise InvalidArgumentError("Assignment target is read-only")

    def empty(self, shape: Sequence[int], like: np.ndarray) -> np.ndarray:
        return np.empty(tuple(shape), dtype=like.dtype)

    def zeros(self, shape: Sequence[int], like: np.ndarray) -> np.ndarray:
        return np.zeros(tuple(shape), dtype=like.dtype)

    def reshape(self, array: np.ndarray, shape: Sequence[int]) -> np.ndarray:
        return np.reshape(array, tuple(shape))

    def copy(self, array: np.ndarray) -> np.ndarray:
        return np.array(array, copy=True)

    def flat(self, array: np.ndarray) -> np.ndarray:
        return array.reshape(-1)

    def _view(self, array: np.ndarray, window) -> np.ndarray:
        # Anchor a 1-element view at the window origin, then stride from it.
        anchor = array[tuple(slice(index, index + 1) for index in window.origin)]
        strides = tuple(step * stride for step, stride in zip(window.steps, array.strides))
        return as_strided(
            anchor,
            shape=window.shape,
            strides=strides,
            writeable=bool(array.flags.writeable),
        )

    def read_window(self, array: np.ndarray, window) -> np.ndarray:
        return np.array(self._view(array, window), copy=True)

    def write_window(self, array: np.ndarray, window, values: np.ndarray) -> None:
        np.copyto(self._view(array, window), values, casting="unsafe")

    def write_all(self, array: np.ndarray, values: np.ndarray) -> None:
        np.copyto(array, np.reshape(values, array.shape), casting="unsafe")

    def copy_row(
        self,
        dst: np.ndarray,
        dst_row: int,
        src: np.ndarray,
        src_row: int,
        start: int,
        stop: int,
    ) -> None:
        np.copyto(dst[dst_row], src[src_row, start:stop])

    def prefetch(self, array: np.ndarray, row: int) -> None:
        # No portable cache hint from Python.
        return None


def is_torch_tensor(value: Any) -> bool:
    module = type(value).__module__ or ""
    return module.startswith("torch") and hasattr(value, "storage_offset")


def select_backend(backend: str, device: str, *samples: Any) -> SliceBackend:
    """Pick the backend for one call; ``auto`` follows the array types given."""
    name = backend
    if name == "auto":
        name = "torch" if any(is_torch_tensor(s) for s in samples) else "numpy"
    if name == "numpy":
        if any(is_torch_tensor(s) for s in samples):
            raise BackendError("NumPy backend cannot operate on torch tensors; use backend='torch'")
        return NumpyBackend(device)
    if name == "torch":
        from ..torch_backend.backend import TorchBackend

        return TorchBackend(device)
    raise BackendError(f"Unknown backend '{backend}'")


def describe_backend(instance: Optional[SliceBackend]) -> str:
    if instance is None:
        return "none"
    device = getattr(instance, "device", None)
    return f"{instance.name}:{device}" if device else instance.name
