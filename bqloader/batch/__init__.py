"""
Batch insert reconciliation: collect, insert, reconcile.
"""

from .collector import ERROR_MESSAGE_ATTRIBUTE, BatchCollector
from .diagnostics import build_diagnostic_document, format_created_at, format_errors
from .pipeline import BatchReport, InsertPipeline, summarize
from .reconciler import ReconcileSummary, Reconciler

__all__ = [
    "ERROR_MESSAGE_ATTRIBUTE",
    "BatchCollector",
    "build_diagnostic_document",
    "format_created_at",
    "format_errors",
    "BatchReport",
    "InsertPipeline",
    "summarize",
    "ReconcileSummary",
    "Reconciler",
]
