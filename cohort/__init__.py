"""Cohort: capacity-bounded group membership service."""

__version__ = "1.0.0"
