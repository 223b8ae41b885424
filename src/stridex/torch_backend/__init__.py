"""Torch execution backend for stridex (requires ``torch``)."""
