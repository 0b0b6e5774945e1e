"""
Product Reader Module
Reads product lists (CSV, TSV, Excel, Parquet or JSON) into ProductData and
AnalysisRecord objects.
"""

import logging
from pathlib import Path
from typing import List, Optional, Set, Union

import pandas as pd

from product_analyzer.models.product_model import AnalysisRecord, ProductData

logger = logging.getLogger(__name__)


class ProductReader:
    """
    File reading service for product lists.

    Every column is read as text so barcodes keep their leading zeros;
    ProductData converts prices itself.
    """

    SUPPORTED_EXTENSIONS: Set[str] = {'.xlsx', '.xls', '.csv', '.tsv', '.parquet', '.json'}
    DEFAULT_ENCODING: str = 'utf-8'
    FALLBACK_ENCODING: str = 'latin-1'

    def read_file(self, file_path: Union[str, Path], **kwargs) -> pd.DataFrame:
        """Read a single file and return a DataFrame.

        Args:
            file_path: Path to the file
            **kwargs: Additional parameters to pass to underlying pandas read functions

        Returns:
            pd.DataFrame: DataFrame containing file contents

        Raises:
            ValueError: If file format is not supported
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(f"Reading file: {file_path.name}")
        ext = file_path.suffix.lower()

        if ext in {'.xlsx', '.xls'}:
            return pd.read_excel(file_path, **{'dtype': str, **kwargs})
        elif ext == '.csv':
            return self.read_csv(file_path, **kwargs)
        elif ext == '.tsv':
            return self.read_csv(file_path, **{**kwargs, 'sep': '\t'})
        elif ext == '.parquet':
            return pd.read_parquet(file_path, **kwargs)
        elif ext == '.json':
            return pd.read_json(file_path, **{'dtype': False, **kwargs})
        else:
            raise ValueError(f"Unsupported file format: {ext}")

    def read_csv(self, file_path: Union[str, Path], **kwargs) -> pd.DataFrame:
        """Read CSV file, falling back to Latin-1 when UTF-8 decoding fails."""
        params = {
            'encoding': self.DEFAULT_ENCODING,
            'on_bad_lines': 'warn',
            'dtype': str
        }
        params.update(kwargs)

        try:
            return pd.read_csv(file_path, **params)
        except UnicodeDecodeError:
            logger.warning(f"UTF-8 decoding failed for {Path(file_path).name}, trying Latin-1")
            params['encoding'] = self.FALLBACK_ENCODING
            return pd.read_csv(file_path, **params)

    def read_products(self, file_path: Union[str, Path], limit: Optional[int] = None) -> List[ProductData]:
        """Read a product file into ProductData objects, dropping rows with no identity."""
        df = self.read_file(file_path)
        if limit:
            df = df.head(limit)

        products = []
        for row in df.to_dict(orient='records'):
            product = ProductData.from_dict(row)
            if product.is_empty():
                logger.warning(f"Skipping row with no name, EAN or URL: {row}")
                continue
            products.append(product)

        logger.info(f"Read {len(products)} products from {Path(file_path).name}")
        return products

    def read_records(self, file_path: Union[str, Path], id_column: str = 'analysis_id',
                     limit: Optional[int] = None) -> List[AnalysisRecord]:
        """Read a product file into fresh analysis records.

        The record id comes from ``id_column`` when present, else the row position.
        """
        records = []
        for index, product in enumerate(self.read_products(file_path, limit=limit)):
            analysis_id = product.additional_data.pop(id_column, None)
            if analysis_id is None or (isinstance(analysis_id, float) and analysis_id != analysis_id):
                analysis_id = str(index + 1)
            records.append(AnalysisRecord(analysis_id=str(analysis_id), product=product))
        return records
