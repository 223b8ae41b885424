from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .backends import SliceBackend, describe_backend, select_backend
from .classifier import SlicePath, classify
from .exceptions import InvalidArgumentError, UnimplementedError, format_shape
from .resolver import ResolvedSlice, as_shape, resolve_spec
from .stats import compute_slice_stats
from .walker import (
    DEFAULT_MAX_RANK,
    WalkMode,
    copy_contiguous_lead,
    copy_identity,
    copy_simple_2d,
    walk,
    walker_for_rank,
)


def _json_ready(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (np.integer, np.floating)):
        return value.item()
    if isinstance(value, dict):
        return {str(k): _json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_ready(v) for v in value]
    return str(value)


def _normalize_device_spec(spec: str) -> str:
    device = (spec or "").strip()
    if not device:
        return "auto"
    lowered = device.lower()
    if lowered == "gpu":
        return "cuda"
    if lowered.startswith("gpu:"):
        return "cuda:" + lowered.split(":", 1)[1]
    if lowered.startswith("mps"):
        return "mps"
    return lowered


@dataclass(frozen=True)
class SliceConfig:
    """
    Execution switches for the slice engine.

    * ``backend`` is ``"auto"`` (numpy arrays run on numpy, torch tensors on
      torch), ``"numpy"`` or ``"torch"``.
    * ``device`` is ``"auto"``, ``"cpu"``, ``"cuda"``, ``"cuda:N"`` or ``"mps"``;
      the numpy backend only accepts cpu/auto.
    * ``max_rank`` caps the processing rank the strided walker accepts.
    * ``fast_paths`` enables the identity / contiguous / row-copy paths;
      when off every extraction goes through the strided walker.
    * ``zero_copy`` lets identity and contiguous-lead extractions return a
      view that aliases the input instead of a copy.
    """

    backend: str = "auto"  # "auto" | "numpy" | "torch"
    device: str = "auto"  # "auto" | "cpu" | "cuda" | "mps" | "cuda:N"
    max_rank: int = DEFAULT_MAX_RANK
    fast_paths: bool = True
    zero_copy: bool = False
    explain_timings: bool = True

    def normalized(self) -> "SliceConfig":
        backend = (self.backend or "auto").lower()
        if backend not in {"auto", "numpy", "torch"}:
            raise ValueError(f"Unsupported backend: {self.backend}")
        device = _normalize_device_spec(self.device)
        if device not in {"auto", "cpu", "mps"} and not device.startswith("cuda"):
            raise ValueError(f"Unsupported device: {self.device}")
        max_rank = int(self.max_rank)
        if max_rank < 1:
            raise ValueError("max_rank must be positive")
        return replace(
            self,
            backend=backend,
            device=device,
            max_rank=max_rank,
            fast_paths=bool(self.fast_paths),
            zero_copy=bool(self.zero_copy),
            explain_timings=bool(self.explain_timings),
        )


class SliceEngine:
    """Runs strided slices, their gradients and slice assignments."""

    def __init__(self, config: Optional[SliceConfig] = None):
        self.config = (config or SliceConfig()).normalized()
        self.logs: List[Dict[str, Any]] = []

    # Public API ----------------------------------------------------------------
    def resolve(self, input_shape: Sequence[int], spec: Any) -> ResolvedSlice:
        start = self._clock()
        resolved = resolve_spec(input_shape, spec)
        self._log("resolve", resolved, path=None, backend=None, itemsize=0, start=start)
        return resolved

    def slice(self, array: Any, spec: Any):
        cfg = self.config
        start = self._clock()
        backend = select_backend(cfg.backend, cfg.device, array)
        source = backend.asarray(array)
        resolved = resolve_spec(backend.shape(source), spec)
        path = self._extract_path(backend, source, resolved)

        if path is SlicePath.IDENTITY:
            out = copy_identity(backend, source, resolved, zero_copy=cfg.zero_copy)
        elif path is SlicePath.CONTIGUOUS_LEAD:
            out = copy_contiguous_lead(backend, source, resolved, zero_copy=cfg.zero_copy)
        elif resolved.num_elements == 0:
            out = backend.empty(resolved.final_shape, like=source)
        elif path is SlicePath.SIMPLE_2D:
            out = copy_simple_2d(backend, source, resolved)
        else:
            walked = walk(backend, source, resolved, WalkMode.EXTRACT, max_rank=cfg.max_rank)
            out = backend.reshape(walked, resolved.final_shape)

        self._log(
            "slice",
            resolved,
            path=path,
            backend=backend,
            itemsize=backend.itemsize(source),
            start=start,
        )
        return out

    def grad(self, shape: Any, spec: Any, dy: Any):
        cfg = self.config
        start = self._clock()
        input_shape = _shape_descriptor(shape)
        backend = select_backend(cfg.backend, cfg.device, dy)
        grad_in = backend.asarray(dy)
        resolved = resolve_spec(input_shape, spec)

        dy_shape = backend.shape(grad_in)
        if dy_shape != resolved.final_shape:
            raise InvalidArgumentError(
                f"shape of dy was {format_shape(dy_shape)} instead of "
                f"{format_shape(resolved.final_shape)}"
            )
        processing_rank = len(resolved.processing_shape)
        if processing_rank > 0 and resolved.num_elements > 0:
            walker_for_rank(processing_rank, cfg.max_rank)

        out = backend.zeros(input_shape, like=grad_in)
        if processing_rank == 0:
            backend.write_all(out, grad_in)
        elif resolved.num_elements > 0:
            walk(backend, out, resolved, WalkMode.GRADIENT, grad_in, max_rank=cfg.max_rank)

        self._log(
            "grad",
            resolved,
            path=SlicePath.IDENTITY if processing_rank == 0 else SlicePath.GENERIC,
            backend=backend,
            itemsize=backend.itemsize(grad_in),
            start=start,
        )
        return out

    def assign(self, ref: Any, spec: Any, value: Any) -> None:
        """
        Write ``value`` into the region of ``ref`` selected by ``spec``.

        ``ref`` is mutated in place; the caller must hold exclusive access to
        it for the duration of the call. ``value`` must already have the
        sliced shape; broadcasting is not performed.
        """
        cfg = self.config
        start = self._clock()
        backend = select_backend(cfg.backend, cfg.device, ref)
        backend.check_writable(ref)
        resolved = resolve_spec(backend.shape(ref), spec)
        rhs = backend.asarray(value, like=ref)

        rhs_shape = backend.shape(rhs)
        if rhs_shape != resolved.final_shape:
            raise UnimplementedError(
                f"sliced l-value shape {format_shape(resolved.final_shape)} does not match "
                f"r-value shape {format_shape(rhs_shape)}. "
                "Automatic broadcasting not yet implemented."
            )

        processing_rank = len(resolved.processing_shape)
        if resolved.num_elements > 0:
            if processing_rank == 0:
                backend.write_all(ref, rhs)
            else:
                walk(backend, ref, resolved, WalkMode.ASSIGN, rhs, max_rank=cfg.max_rank)

        self._log(
            "assign",
            resolved,
            path=SlicePath.IDENTITY if processing_rank == 0 else SlicePath.GENERIC,
            backend=backend,
            itemsize=backend.itemsize(ref),
            start=start,
        )

    def explain(self, *, json: bool = False):
        lines: List[str] = []
        total_time_ms = 0.0
        total_bytes = 0
        for entry in self.logs:
            kind = entry["kind"]
            op = entry["op"]
            details: List[str] = []
            if op.get("path"):
                details.append(f"path={op['path']}")
            details.append(f"in={tuple(op['input_shape'])}")
            details.append(f"out={tuple(op['final_shape'])}")
            if op.get("backend"):
                details.append(f"backend={op['backend']}")
            bytes_total = op.get("bytes_total")
            if bytes_total:
                details.append(_format_metric(bytes_total, "bytes"))
                total_bytes += int(bytes_total)
            duration = op.get("duration_ms")
            if duration is not None:
                details.append(f"time={duration:.3f}ms")
                total_time_ms += float(duration)
            lines.append(f"[{kind}] " + " ".join(details))

        summary: Dict[str, Any] = {
            "ops": len(self.logs),
            "total_time_ms": total_time_ms,
            "bytes_total": total_bytes,
        }
        if self.logs:
            parts = [f"total={total_time_ms:.3f}ms", f"ops={len(self.logs)}"]
            if total_bytes:
                parts.append(_format_metric(total_bytes, "bytes"))
            lines.append(f"[perf] {' '.join(parts)}")

        if json:
            return {
                "logs": [_json_ready(entry) for entry in self.logs],
                "summary": summary,
            }
        return "\n".join(lines)

    # Internal helpers ----------------------------------------------------------
    def _extract_path(self, backend: SliceBackend, source: Any, resolved: ResolvedSlice) -> SlicePath:
        processing_rank = len(resolved.processing_shape)
        if processing_rank == 0:
            return SlicePath.IDENTITY
        if self.config.fast_paths:
            path = classify(
                resolved,
                contiguous=backend.is_contiguous(source),
                row_copy=backend.row_copy,
            )
        else:
            path = SlicePath.GENERIC
        if path is SlicePath.GENERIC and resolved.num_elements > 0:
            walker_for_rank(processing_rank, self.config.max_rank)
        return path

    def _clock(self) -> Optional[float]:
        return time.perf_counter() if self.config.explain_timings else None

    def _log(
        self,
        kind: str,
        resolved: ResolvedSlice,
        *,
        path: Optional[SlicePath],
        backend: Optional[SliceBackend],
        itemsize: int,
        start: Optional[float],
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000.0 if start is not None else None
        stats = compute_slice_stats(kind, resolved.input_shape, resolved.final_shape, itemsize)
        entry = {
            "kind": kind,
            "op": {
                "path": path.value if path is not None else None,
                "backend": describe_backend(backend) if backend is not None else None,
                "input_shape": list(resolved.input_shape),
                "processing_shape": list(resolved.processing_shape),
                "final_shape": list(resolved.final_shape),
                "duration_ms": duration_ms,
                **(stats if itemsize else {"elements": stats["elements"]}),
            },
        }
        self.logs.append(entry)


def _format_metric(value: float, unit: str) -> str:
    magnitude = float(value)
    for threshold, label in ((1e12, "T"), (1e9, "G"), (1e6, "M"), (1e3, "K")):
        if magnitude >= threshold:
            return f"{unit}={magnitude / threshold:.2f}{label}"
    return f"{unit}={magnitude:.2f}"


def _shape_descriptor(shape: Any):
    if isinstance(shape, (tuple, list)):
        return as_shape(shape)
    descriptor = np.asarray(shape)
    if descriptor.ndim != 1:
        raise InvalidArgumentError(
            f"shape must be 1-D, got shape.shape = {format_shape(descriptor.shape)}"
        )
    if descriptor.size and not np.issubdtype(descriptor.dtype, np.integer):
        raise InvalidArgumentError(f"shape must have integer type, got {descriptor.dtype}")
    return as_shape(descriptor.tolist())


# Functional entry points -------------------------------------------------------


def strided_slice(array: Any, spec: Any, *, config: Optional[SliceConfig] = None):
    return SliceEngine(config).slice(array, spec)


def strided_slice_grad(shape: Any, spec: Any, dy: Any, *, config: Optional[SliceConfig] = None):
    return SliceEngine(config).grad(shape, spec, dy)


def strided_slice_assign(
    ref: Any,
    spec: Any,
    value: Any,
    *,
    config: Optional[SliceConfig] = None,
) -> None:
    SliceEngine(config).assign(ref, spec, value)
