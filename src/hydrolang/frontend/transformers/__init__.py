"""
Hydrolang AST Transformers
==========================

Specialized transformers for different syntax tree node types.
"""

from .base import HydroTransformer
from .literals import LiteralParser
from .expressions import BinaryExpressionParser

__all__ = [
    'HydroTransformer',
    'LiteralParser',
    'BinaryExpressionParser',
]
