"""Compliance Vantage - compliance analytics and dashboard aggregation."""

__version__ = "1.0.0"
