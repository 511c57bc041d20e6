"""
Loads JSON documents into BigQuery tables with per-row failure reconciliation.
"""

__version__ = "0.1.0"
