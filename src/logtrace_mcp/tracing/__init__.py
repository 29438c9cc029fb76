"""Trace/span correlation and aggregation."""
