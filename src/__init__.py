# src/__init__.py — v1
"""SignalCX analysis orchestration layer."""

__version__ = "0.1.0"
