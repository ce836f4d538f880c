"""Shared testing fixtures for the chart-docs test suite."""

from .charts import ChartBuilder, build_tree  # noqa: F401

__all__ = ["ChartBuilder", "build_tree"]
