"""
Product Analyzer
AI-assisted e-commerce product enrichment: model calls, JSON recovery and
analysis record updates.
"""

__version__ = "0.1.0"
