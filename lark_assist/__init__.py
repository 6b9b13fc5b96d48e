"""LARK field-assistant command pipeline."""

__version__ = "2026.10.0"
