"""
LLM Extraction Package
Handles LLM-based enrichment of product analyses, one section at a time.
"""

from .base_enricher import BaseSectionEnricher, EnrichmentResult
from .batch_processor import BatchProcessor
from .section_enrichers import SECTION_ENRICHERS, create_enrichers

__all__ = ['BaseSectionEnricher', 'EnrichmentResult', 'BatchProcessor', 'SECTION_ENRICHERS', 'create_enrichers']
