"""Reporting utilities for digitnet."""

from .artifacts import describe_network, write_manifest
from .metrics import CsvSink, JsonlSink
from .plots import ErrorPlot

__all__ = ["CsvSink", "ErrorPlot", "JsonlSink", "describe_network", "write_manifest"]
