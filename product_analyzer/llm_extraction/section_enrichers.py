"""
Section Enrichers
Concrete enrichment sections: pricing, marketing description, technical
specifications and customs (HS code) classification.
"""

import logging
from typing import Any, Dict, Optional, Type

from .base_enricher import BaseSectionEnricher
from .utils.api_utils import APIManager
from product_analyzer.models.product_model import AnalysisRecord, ProductData
from product_analyzer.models.section_models import DescriptionData, HSClassification, PricingData

logger = logging.getLogger(__name__)

PLATFORM_FORMATS = {
    'odoo': "- HTML structure with <p>, <ul>, <li>\n- Technical, professional tone\n- 300-500 words",
    'shopify': "- Plain markdown\n- Marketing tone\n- 200-400 words",
    'prestashop': "- Rich HTML\n- Clear bullet points\n- 250-450 words",
}


def _product_block(product: ProductData) -> str:
    return (
        f"- Product: {product.name or 'N/A'}\n"
        f"- Brand: {product.brand or 'N/A'}\n"
        f"- EAN: {product.ean or 'N/A'}\n"
        f"- Category: {product.category or 'N/A'}"
    )


class PricingEnricher(BaseSectionEnricher):
    """Market prices, recommended selling price and margin."""

    section_name = 'pricing'
    temperature = 0.3
    max_tokens = 1000

    def create_prompt(self, product: ProductData) -> str:
        purchase = f"{product.purchase_price}€" if product.purchase_price else 'N/A'
        return f"""Research the selling prices for this product:
{_product_block(product)}
- Purchase price: {purchase}

Look up the prices competitors charge online (Amazon, Cdiscount, etc.)

Provide as JSON:
{{
  "recommended_selling_price": number (recommended selling price in €),
  "market_average_price": number (average market price in €),
  "suggested_margin_percentage": number (recommended margin in %),
  "price_sources": ["site1.com", "site2.com"] (where the prices were found)
}}

IMPORTANT: All prices must be in euros (decimal number). If the purchase price is given, the margin must allow a reasonable profit (30-50%). Return ONLY the JSON."""

    def normalize(self, raw: Any, product: ProductData) -> Dict[str, Any]:
        pricing = PricingData.model_validate(self.require_mapping(raw))

        margin = pricing.suggested_margin_percentage
        if product.purchase_price and pricing.recommended_selling_price:
            margin = ((pricing.recommended_selling_price - product.purchase_price)
                      / product.purchase_price) * 100

        # A zero margin is stored as missing
        pricing.suggested_margin_percentage = round(margin, 2) if margin else None
        return pricing.model_dump()

    def apply(self, record: AnalysisRecord, data: Dict[str, Any]) -> None:
        record.merge_analysis_result(self.section_name, data)


class DescriptionEnricher(BaseSectionEnricher):
    """SEO product description formatted for the target platform."""

    section_name = 'description'
    temperature = 0.5
    max_tokens = 2000

    def __init__(self, api_manager: Optional[APIManager] = None, target_platform: str = 'odoo', **kwargs):
        super().__init__(api_manager, **kwargs)
        self.target_platform = target_platform.lower()

    def create_prompt(self, product: ProductData) -> str:
        platform_format = PLATFORM_FORMATS.get(self.target_platform, '')
        return f"""Write a professional, SEO-optimized e-commerce product description for the {self.target_platform} platform.

{_product_block(product)}

Search the web for the product's exact characteristics.

Expected format for {self.target_platform}:
{platform_format}

Return ONLY a JSON:
{{
  "description_html": "<full description>",
  "short_description": "<100-word summary>",
  "seo_keywords": ["word1", "word2", "word3"]
}}"""

    def normalize(self, raw: Any, product: ProductData) -> Dict[str, Any]:
        description = DescriptionData.model_validate(self.require_mapping(raw))
        if not description.description_html and not description.short_description:
            raise ValueError("Reply has no description text")
        return description.model_dump()

    def apply(self, record: AnalysisRecord, data: Dict[str, Any]) -> None:
        record.long_description = data.get('description_html')
        record.analysis_result = {
            **(record.analysis_result or {}),
            'short_description': data.get('short_description'),
            'seo_keywords': data.get('seo_keywords', []),
        }
        record.touch()


class SpecificationsEnricher(BaseSectionEnricher):
    """Technical specifications, stored as returned."""

    section_name = 'specifications'
    temperature = 0.3
    max_tokens = 1500

    def create_prompt(self, product: ProductData) -> str:
        return f"""Search the web for the detailed technical specifications of this product:

{_product_block(product)}

Return ONLY a JSON with at least 10 characteristics:
{{
  "dimensions": "<dimensions in cm>",
  "weight": "<weight in kg>",
  "color": "<color>",
  "material": "<materials>",
  "warranty": "<warranty length>",
  "origin": "<country of origin>",
  "certifications": ["cert1", "cert2"],
  "additional_characteristics": {{
    "spec1": "value1",
    "spec2": "value2"
  }}
}}"""

    def normalize(self, raw: Any, product: ProductData) -> Dict[str, Any]:
        specs = self.require_mapping(raw)
        if not specs:
            raise ValueError("Reply has no specifications")
        return specs

    def apply(self, record: AnalysisRecord, data: Dict[str, Any]) -> None:
        record.specifications = data
        record.touch()


class HSCodeEnricher(BaseSectionEnricher):
    """Harmonized System code, tax rate and Odoo category."""

    section_name = 'hs_code'
    temperature = 0.2
    max_tokens = 800

    def create_prompt(self, product: ProductData) -> str:
        return f"""Determine the HS (Harmonized System) code and the appropriate Odoo e-commerce category for:

{_product_block(product)}

Search the web if needed to classify it correctly.

Return ONLY a JSON:
{{
  "hs_code": "<8-10 digit HS code>",
  "hs_description": "<HS description>",
  "odoo_category": "<full Odoo category path, e.g. Electronics/Audio/Headphones>",
  "tax_rate": <applicable VAT rate in %>,
  "country_of_origin": "<likely country of origin>"
}}"""

    def normalize(self, raw: Any, product: ProductData) -> Dict[str, Any]:
        classification = HSClassification.model_validate(self.require_mapping(raw))
        if not classification.hs_code and not classification.odoo_category:
            raise ValueError("Reply has neither an HS code nor a category")
        return classification.model_dump()

    def apply(self, record: AnalysisRecord, data: Dict[str, Any]) -> None:
        record.odoo_attributes = {**record.odoo_attributes, **data}
        record.touch()


SECTION_ENRICHERS: Dict[str, Type[BaseSectionEnricher]] = {
    PricingEnricher.section_name: PricingEnricher,
    DescriptionEnricher.section_name: DescriptionEnricher,
    SpecificationsEnricher.section_name: SpecificationsEnricher,
    HSCodeEnricher.section_name: HSCodeEnricher,
}


def create_enrichers(sections, api_manager: Optional[APIManager] = None,
                     target_platform: str = 'odoo') -> Dict[str, BaseSectionEnricher]:
    """Instantiate enrichers for the named sections, sharing one API manager."""
    api_manager = api_manager or APIManager()
    enrichers = {}
    for section in sections:
        enricher_class = SECTION_ENRICHERS.get(section)
        if enricher_class is None:
            raise ValueError(f"Unknown section '{section}'. Available sections: {list(SECTION_ENRICHERS)}")
        if enricher_class is DescriptionEnricher:
            enrichers[section] = enricher_class(api_manager, target_platform=target_platform)
        else:
            enrichers[section] = enricher_class(api_manager)
    logger.info(f"Created enrichers: {list(enrichers)}")
    return enrichers
