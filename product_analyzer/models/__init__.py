"""
Models Package
Product, analysis record and enrichment section data structures.
"""

from .product_model import AnalysisRecord, ProductData
from .section_models import DescriptionData, HSClassification, PricingData

__all__ = ['AnalysisRecord', 'ProductData', 'DescriptionData', 'HSClassification', 'PricingData']
