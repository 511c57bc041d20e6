"""
Record payload transformation.
"""

from .row_transformer import TransformedRow, drop_null_values, parse_document, transform

__all__ = [
    "TransformedRow",
    "drop_null_values",
    "parse_document",
    "transform",
]
