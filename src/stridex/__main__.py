from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

import numpy as np

from .core.engine import SliceConfig, SliceEngine
from .core.exceptions import StridexError


def _parse_shape(text: str) -> Tuple[int, ...]:
    cleaned = text.strip().strip("()[]")
    if not cleaned:
        return ()
    try:
        return tuple(int(part) for part in cleaned.split(",") if part.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid shape: {text!r}") from exc


def _load_array(path: Path) -> np.ndarray:
    try:
        if str(path).lower().endswith(".npz"):
            with np.load(path) as archive:
                return archive[archive.files[0]]
        if str(path).lower().endswith(".json"):
            return np.asarray(json.loads(path.read_text(encoding="utf-8")))
        return np.load(path)
    except FileNotFoundError as exc:
        raise SystemExit(f"Input file not found: {path}") from exc


def _write_output(path: Path, tensor: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if str(path).lower().endswith(".npz"):
        np.savez(path, np.asarray(tensor))
    elif str(path).lower().endswith(".json"):
        path.write_text(json.dumps(np.asarray(tensor).tolist(), indent=2), encoding="utf-8")
    else:
        np.save(path, np.asarray(tensor))


def _resolve(shape: Tuple[int, ...], spec: str, as_json: bool) -> None:
    resolved = SliceEngine().resolve(shape, spec)
    if as_json:
        print(json.dumps(resolved.to_dict(), indent=2))
        return
    for i, axis in enumerate(resolved.axes):
        marker = " (shrink)" if resolved.shrunk[i] else ""
        print(f"axis {i}: start={axis.start} stop={axis.stop} step={axis.step}{marker}")
    print(f"processing_shape={resolved.processing_shape}")
    print(f"final_shape={resolved.final_shape}")


def _slice(
    input_path: Path,
    spec: str,
    out: Optional[Path],
    backend: str,
    explain: bool,
) -> None:
    engine = SliceEngine(SliceConfig(backend=backend))
    result = engine.slice(_load_array(input_path), spec)
    if out is None:
        np.set_printoptions(suppress=True)
        print(np.asarray(result))
    else:
        _write_output(out, result)
    if explain:
        print(engine.explain(), file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="stridex command line utilities")
    subparsers = parser.add_subparsers(dest="cmd")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a slice spec against a shape")
    resolve_parser.add_argument("--shape", type=_parse_shape, required=True, help="e.g. 4,5,6")
    resolve_parser.add_argument("--spec", required=True, help='e.g. "2, ..., ::-1"')
    resolve_parser.add_argument("--json", action="store_true", help="Emit JSON")

    slice_parser = subparsers.add_parser("slice", help="Slice an array stored on disk")
    slice_parser.add_argument("input", type=Path, help="Input array (.npy/.npz/.json)")
    slice_parser.add_argument("--spec", required=True, help='e.g. "1:3, ::-1"')
    slice_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Optional output path (.npy/.npz/.json). If omitted, prints the result",
    )
    slice_parser.add_argument(
        "--backend",
        default="numpy",
        choices=["numpy", "torch"],
        help="Execution backend to use (default: numpy)",
    )
    slice_parser.add_argument("--explain", action="store_true", help="Print the explain log")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.cmd == "resolve":
            _resolve(args.shape, args.spec, args.json)
            return
        if args.cmd == "slice":
            _slice(args.input, args.spec, args.out, args.backend, args.explain)
            return
    except StridexError as exc:
        raise SystemExit(f"error: {exc}") from exc

    parser.print_help()


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
