"""Setuptools build hooks for stridex."""

from __future__ import annotations

from setuptools import setup

# Pure Python package; metadata lives in pyproject.toml. Keeping the default
# command classes lets the wheel build as ``py3-none-any``.
setup()
