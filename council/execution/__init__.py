"""Execution layer: the provider cascade."""

from .cascade import CascadeExecutor, CascadeResponse, label_for

__all__ = ["CascadeExecutor", "CascadeResponse", "label_for"]
