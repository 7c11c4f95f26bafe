"""Exporters for converting diagnostic reports to output formats."""

from .json_exporter import report_to_dict, to_json

__all__ = ["report_to_dict", "to_json"]
