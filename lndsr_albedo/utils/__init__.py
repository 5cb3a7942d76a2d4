"""
Utility modules for albedo processing.

This package contains:
- Surface classification and class statistics for the BRDF table
"""

from . import clustering

__all__ = ["clustering"]
