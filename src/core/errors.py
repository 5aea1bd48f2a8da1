"""Exceptions raised inside the core and its adapters."""

from __future__ import annotations


class TransportError(RuntimeError):
    """A feed or notification sink could not be reached or parsed."""


class CycleAlreadyRunning(RuntimeError):
    """A manual cycle was requested while another cycle held the slot."""
