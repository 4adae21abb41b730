"""Reporting utilities for neurograph."""

from .metrics import CsvSink, JsonlSink

__all__ = ["CsvSink", "JsonlSink"]
