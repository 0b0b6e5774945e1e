"""
Product Data Model
Provides the data structures for products submitted for analysis and for the
analysis records that enrichment sections are merged into.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, ClassVar


def _clean(value: Any) -> Optional[str]:
    """Normalize a raw cell value to a stripped string or None."""
    if value is None:
        return None
    # pandas NaN is the only value not equal to itself
    if isinstance(value, float) and value != value:
        return None
    text = str(value).strip()
    return text or None


def _to_price(value: Any) -> Optional[float]:
    text = _clean(value)
    if text is None:
        return None
    try:
        return float(text.replace('€', '').replace(',', '.').strip())
    except ValueError:
        return None


@dataclass
class ProductData:
    """
    A product submitted for analysis: a name, a barcode, or a URL, plus
    whatever catalogue attributes the source provided.
    """
    name: Optional[str] = None
    brand: Optional[str] = None
    ean: Optional[str] = None
    category: Optional[str] = None
    purchase_price: Optional[float] = None
    url: Optional[str] = None

    # Columns from the source file with no standard field
    additional_data: Dict[str, Any] = field(default_factory=dict)

    STANDARD_FIELDS: ClassVar[List[str]] = [
        'name', 'brand', 'ean', 'category', 'purchase_price', 'url'
    ]

    # Column name variations seen in supplier and platform exports
    FIELD_ALIASES: ClassVar[Dict[str, List[str]]] = {
        'name': ['product_name', 'productname', 'product', 'title', 'nom', 'description'],
        'brand': ['marque', 'manufacturer', 'brand_name', 'vendor'],
        'ean': ['barcode', 'gtin', 'ean13', 'upc', 'code_barre'],
        'category': ['product_category', 'categorie', 'product_type'],
        'purchase_price': ['cost', 'cost_price', 'prix_achat', 'purchaseprice', 'buy_price'],
        'url': ['product_url', 'link', 'source_url'],
    }

    def __post_init__(self):
        self.name = _clean(self.name)
        self.brand = _clean(self.brand)
        self.category = _clean(self.category)
        self.url = _clean(self.url)
        ean = _clean(self.ean)
        # Spreadsheets read barcodes as floats
        if ean and ean.endswith('.0') and ean[:-2].isdigit():
            ean = ean[:-2]
        self.ean = ean
        if self.purchase_price is not None:
            self.purchase_price = _to_price(self.purchase_price)

    @property
    def identifier(self) -> Optional[str]:
        """Best available label for logs: name, then EAN, then URL."""
        return self.name or self.ean or self.url

    def is_empty(self) -> bool:
        return not (self.name or self.ean or self.url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the product data to a dictionary."""
        return {
            'name': self.name,
            'brand': self.brand,
            'ean': self.ean,
            'category': self.category,
            'purchase_price': self.purchase_price,
            'url': self.url,
            **self.additional_data
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductData":
        """
        Create a ProductData instance from a dictionary, matching column
        names case-insensitively against the standard fields and their aliases.

        Args:
            data: Dictionary containing product data

        Returns:
            ProductData: New instance with data from dictionary
        """
        mapping = cls.create_field_mapping(list(data.keys()))

        values: Dict[str, Any] = {}
        additional = {}
        for key, value in data.items():
            standard = mapping.get(key)
            if standard and standard not in values:
                values[standard] = value
            else:
                additional[key] = value

        return cls(**values, additional_data=additional)

    @classmethod
    def create_field_mapping(cls, source_columns: List[str]) -> Dict[str, str]:
        """
        Create a mapping from source column names to standard field names.

        Args:
            source_columns: List of source column names from input data

        Returns:
            Dict[str, str]: Mapping from source columns to standard field names
        """
        mapping = {}
        for source_col in source_columns:
            if source_col is None:
                continue

            col = str(source_col).lower().strip().replace(' ', '_')

            if col in cls.STANDARD_FIELDS:
                mapping[source_col] = col
                continue

            for standard_field, aliases in cls.FIELD_ALIASES.items():
                if col in aliases:
                    mapping[source_col] = standard_field
                    break

        return mapping


@dataclass
class AnalysisRecord:
    """
    A product analysis and the enrichment data merged into it.

    ``analysis_result`` is a free-form mapping; each enrichment section
    writes its own key and leaves the others untouched.
    """
    analysis_id: str
    product: ProductData
    analysis_result: Dict[str, Any] = field(default_factory=dict)
    long_description: Optional[str] = None
    specifications: Optional[Any] = None
    odoo_attributes: Dict[str, Any] = field(default_factory=dict)
    enrichment_errors: Dict[str, str] = field(default_factory=dict)
    updated_at: Optional[str] = None

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc).isoformat()

    def merge_analysis_result(self, section: str, data: Any) -> None:
        """Shallow-merge one section into analysis_result."""
        self.analysis_result = {
            **(self.analysis_result or {}),
            section: data
        }
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'analysis_id': self.analysis_id,
            'product': self.product.to_dict(),
            'analysis_result': self.analysis_result,
            'long_description': self.long_description,
            'specifications': self.specifications,
            'odoo_attributes': self.odoo_attributes,
            'enrichment_errors': self.enrichment_errors,
            'updated_at': self.updated_at,
        }
