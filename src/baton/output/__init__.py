"""Output type system for structured responses."""

from .base import OutputSchema, resolve_output_schema

__all__ = ["OutputSchema", "resolve_output_schema"]
