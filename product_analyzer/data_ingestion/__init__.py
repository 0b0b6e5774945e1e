"""
Data Ingestion Package
Reads product lists into analysis records.
"""

from .reader import ProductReader

__all__ = ['ProductReader']
