"""
Section Models
Pydantic models describing the normalized output of each enrichment section.
"""

import re
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

_NUMBER = re.compile(r'-?\d+(?:[.,]\d+)?')


def coerce_number(value: Any) -> Optional[float]:
    """Read a number from a JSON value or from a salvaged string like '19,90 €'."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER.search(value.replace(' ', ''))
        if match:
            return float(match.group().replace(',', '.'))
    return None


def coerce_list(value: Any) -> List[Any]:
    """Lists pass through; salvaged comma-free strings become one-item lists."""
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


class PricingData(BaseModel):
    """Normalized pricing section."""
    recommended_selling_price: Optional[float] = Field(None, description="Recommended selling price in EUR")
    market_average_price: Optional[float] = Field(None, description="Average market price in EUR")
    suggested_margin_percentage: Optional[float] = Field(None, description="Margin in percent")
    price_sources: List[str] = Field(default_factory=list, description="Sites the prices came from")

    @field_validator('recommended_selling_price', 'market_average_price', 'suggested_margin_percentage',
                     mode='before')
    @classmethod
    def _number(cls, value):
        return coerce_number(value)

    @field_validator('price_sources', mode='before')
    @classmethod
    def _sources(cls, value):
        return [str(source) for source in coerce_list(value)]


class DescriptionData(BaseModel):
    """Normalized marketing description section."""
    description_html: Optional[str] = None
    short_description: Optional[str] = None
    seo_keywords: List[str] = Field(default_factory=list)

    @field_validator('description_html', 'short_description', mode='before')
    @classmethod
    def _text(cls, value):
        if value is None:
            return None
        return str(value)

    @field_validator('seo_keywords', mode='before')
    @classmethod
    def _keywords(cls, value):
        return [str(keyword) for keyword in coerce_list(value)]


class HSClassification(BaseModel):
    """Customs code and catalogue category for the Odoo export."""
    hs_code: Optional[str] = None
    hs_description: Optional[str] = None
    odoo_category: Optional[str] = None
    tax_rate: Optional[float] = None
    country_of_origin: Optional[str] = None

    @field_validator('hs_code', 'hs_description', 'odoo_category', 'country_of_origin', mode='before')
    @classmethod
    def _text(cls, value):
        if value is None:
            return None
        return str(value).strip() or None

    @field_validator('tax_rate', mode='before')
    @classmethod
    def _rate(cls, value):
        return coerce_number(value)
