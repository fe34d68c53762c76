"""
Utility helpers for StructFuzz
"""

from .value_report import format_value_report, show_value, write_value_report

__all__ = ["format_value_report", "show_value", "write_value_report"]
