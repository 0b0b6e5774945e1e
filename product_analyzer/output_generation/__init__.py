"""
Output Generation Package
Writes enriched analysis records to disk.
"""

from .file_writer import FileWriter

__all__ = ['FileWriter']
