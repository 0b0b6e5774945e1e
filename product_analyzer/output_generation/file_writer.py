"""
File Writer Module
Writes enriched analysis records as full JSON and as a flat CSV summary.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

import pandas as pd

from product_analyzer.models.product_model import AnalysisRecord

logger = logging.getLogger(__name__)


class FileWriter:
    """Handles writing output files."""

    def __init__(self, outputs_dir: str = "outputs"):
        self.outputs_dir = Path(outputs_dir)
        self.outputs_dir.mkdir(parents=True, exist_ok=True)

        # Summary columns in order
        self.summary_schema = [
            'analysis_id', 'name', 'brand', 'ean', 'category', 'purchase_price',
            'recommended_selling_price', 'market_average_price', 'suggested_margin_percentage',
            'hs_code', 'odoo_category', 'has_description', 'has_specifications',
            'failed_sections', 'updated_at'
        ]

    def summarize_record(self, record: AnalysisRecord, sections: Iterable[str]) -> Dict:
        """Flatten one record into a summary row."""
        pricing = record.analysis_result.get('pricing') or {}
        return {
            'analysis_id': record.analysis_id,
            'name': record.product.name,
            'brand': record.product.brand,
            'ean': record.product.ean,
            'category': record.product.category,
            'purchase_price': record.product.purchase_price,
            'recommended_selling_price': pricing.get('recommended_selling_price'),
            'market_average_price': pricing.get('market_average_price'),
            'suggested_margin_percentage': pricing.get('suggested_margin_percentage'),
            'hs_code': record.odoo_attributes.get('hs_code'),
            'odoo_category': record.odoo_attributes.get('odoo_category'),
            'has_description': bool(record.long_description),
            'has_specifications': bool(record.specifications),
            'failed_sections': ', '.join(s for s in sections if s in record.enrichment_errors),
            'updated_at': record.updated_at,
        }

    def prepare_dataframe(self, records: List[AnalysisRecord], sections: Iterable[str]) -> pd.DataFrame:
        """Build the summary DataFrame with proper column order."""
        sections = list(sections)
        rows = [self.summarize_record(record, sections) for record in records]
        df = pd.DataFrame(rows, columns=self.summary_schema)
        return df.fillna('')

    def write_outputs(self, records: List[AnalysisRecord], sections: Iterable[str],
                      prefix: str = 'enrichment') -> Dict[str, str]:
        """Write the JSON records file and the CSV summary.

        Returns:
            Dict[str, str]: output kind to written path
        """
        if not records:
            logger.warning("No records to write")
            return {}

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        json_path = self.outputs_dir / f"{prefix}_{timestamp}.json"
        csv_path = self.outputs_dir / f"{prefix}_{timestamp}_summary.csv"

        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump([record.to_dict() for record in records], f, indent=2, ensure_ascii=False, default=str)
        logger.info(f"Written {len(records)} records to {json_path}")

        summary_df = self.prepare_dataframe(records, sections)
        summary_df.to_csv(csv_path, index=False)
        logger.info(f"Written summary to {csv_path}")

        return {'json': str(json_path), 'summary_csv': str(csv_path)}
