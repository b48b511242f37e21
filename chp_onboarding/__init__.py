"""Bulk registration of Community Health Promoters from Excel rosters."""

__version__ = "0.1.0"
