"""Core slicing modules for stridex."""

__all__ = [
    "backends",
    "classifier",
    "engine",
    "exceptions",
    "parser",
    "resolver",
    "spec",
    "stats",
    "walker",
]
