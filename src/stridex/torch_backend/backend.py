from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from ..core.exceptions import BackendError, InvalidArgumentError

try:
    import torch
except Exception:  # pragma: no cover - torch optional
    torch = None


# --------------------------------------------------------------------------- #
# Torch runtime
# --------------------------------------------------------------------------- #


def _resolve_device(device_spec: str) -> Optional["torch.device"]:
    if torch is None:
        raise BackendError("PyTorch is not available")
    spec = device_spec or "auto"
    if spec == "auto":
        return None
    device = torch.device(spec)
    if device.type == "cuda" and not torch.cuda.is_available():
        raise BackendError("Requested CUDA device but torch.cuda.is_available() is False")
    if device.type == "mps":
        mps_backend = getattr(torch.backends, "mps", None)
        if mps_backend is None or not mps_backend.is_available():
            raise BackendError("Requested MPS device but torch.backends.mps.is_available() is False")
    return device


class TorchBackend:
    """
    Strided walks over ``torch.Tensor`` storage on any torch device.

    Torch views cannot carry negative strides, so reversed axes are walked
    forward from their last selected element and flipped afterwards.
    """

    name = "torch"
    row_copy = False

    def __init__(self, device: str = "auto"):
        self._device = _resolve_device(device)
        self.device = str(self._device) if self._device is not None else "auto"

    def asarray(self, value: Any, like: Any = None):
        device = self._device
        if like is not None:
            device = like.device
            tensor = torch.as_tensor(value, dtype=like.dtype, device=device)
        else:
            tensor = torch.as_tensor(value, device=device)
        return tensor

    def shape(self, array) -> Tuple[int, ...]:
        return tuple(int(dim) for dim in array.shape)

    def itemsize(self, array) -> int:
        return int(array.element_size())

    def is_contiguous(self, array) -> bool:
        return bool(array.is_contiguous())

    def check_writable(self, array: Any) -> None:
        if torch is None or not isinstance(array, torch.Tensor):
            raise InvalidArgumentError(
                f"Assignment target must be a torch.Tensor, got {type(array).__name__}"
            )
        if self._device is not None and array.device != self._device:
            raise InvalidArgumentError(
                f"Assignment target lives on {array.device}, expected {self._device}"
            )
        if array.requires_grad and array.is_leaf:
            raise InvalidArgumentError("Assignment target is a leaf tensor that requires grad")

    def empty(self, shape: Sequence[int], like):
        return torch.empty(tuple(shape), dtype=like.dtype, device=like.device)

    def zeros(self, shape: Sequence[int], like):
        return torch.zeros(tuple(shape), dtype=like.dtype, device=like.device)

    def reshape(self, array, shape: Sequence[int]):
        return array.reshape(tuple(shape))

    def copy(self, array):
        return array.clone()

    def flat(self, array):
        return array.view(-1)

    def _view(self, array, window) -> Tuple[Any, List[int]]:
        offset = array.storage_offset()
        sizes: List[int] = []
        strides: List[int] = []
        flips: List[int] = []
        for axis, (start, step, size) in enumerate(zip(window.origin, window.steps, window.shape)):
            stride = step * array.stride(axis)
            offset += start * array.stride(axis)
            if stride < 0:
                offset += (size - 1) * stride
                stride = -stride
                flips.append(axis)
            sizes.append(size)
            strides.append(stride)
        return array.as_strided(sizes, strides, offset), flips

    def read_window(self, array, window):
        view, flips = self._view(array, window)
        if flips:
            return view.flip(flips)
        return view.clone()

    def write_window(self, array, window, values) -> None:
        view, flips = self._view(array, window)
        values = _detached_source(array, values.to(device=array.device, dtype=array.dtype))
        if flips:
            values = values.flip(flips)
        with torch.no_grad():
            view.copy_(values)

    def write_all(self, array, values) -> None:
        values = values.reshape(array.shape).to(device=array.device, dtype=array.dtype)
        with torch.no_grad():
            array.copy_(_detached_source(array, values))

    def copy_row(self, dst, dst_row, src, src_row, start, stop) -> None:
        raise BackendError("Row copies are only available on the host backend")

    def prefetch(self, array, row: int) -> None:
        return None


def _detached_source(target, values):
    # copy_ refuses sources that overlap the written-to storage.
    if target.untyped_storage().data_ptr() == values.untyped_storage().data_ptr():
        return values.clone()
    return values
