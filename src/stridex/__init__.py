from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _load_version

from .core.classifier import SlicePath, classify
from .core.engine import (
    SliceConfig,
    SliceEngine,
    strided_slice,
    strided_slice_assign,
    strided_slice_grad,
)
from .core.exceptions import (
    BackendError,
    InvalidArgumentError,
    SpecParseError,
    StridexError,
    UnimplementedError,
)
from .core.parser import parse_index, parse_spec
from .core.resolver import ResolvedAxis, ResolvedSlice, resolve_spec
from .core.spec import (
    EllipsisAxis,
    Fixed,
    Full,
    NewAxis,
    Range,
    RawSpec,
    newaxis,
)
from .core.walker import DEFAULT_MAX_RANK, WalkMode

try:
    __version__ = _load_version("stridex")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "strided_slice",
    "strided_slice_grad",
    "strided_slice_assign",
    "resolve_spec",
    "SliceConfig",
    "SliceEngine",
    "RawSpec",
    "Full",
    "Fixed",
    "Range",
    "NewAxis",
    "EllipsisAxis",
    "newaxis",
    "ResolvedAxis",
    "ResolvedSlice",
    "SlicePath",
    "classify",
    "WalkMode",
    "DEFAULT_MAX_RANK",
    "parse_index",
    "parse_spec",
    "StridexError",
    "InvalidArgumentError",
    "UnimplementedError",
    "SpecParseError",
    "BackendError",
    "__version__",
]
