"""
Batch Processor for Section Enrichment
Handles enriching many analysis records with caching, a thread pool and
per-record error collection.
"""

import json
import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

import pandas as pd

from .base_enricher import BaseSectionEnricher, EnrichmentResult
from product_analyzer.config import get_cache_file
from product_analyzer.models.product_model import AnalysisRecord, ProductData

logger = logging.getLogger(__name__)


class BatchProcessor:
    """Enrich large batches of analysis records with LLM section enrichers."""

    def __init__(self, enrichers: Dict[str, BaseSectionEnricher], cache_file: Optional[str] = None,
                 max_workers: int = 5):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.enrichers = enrichers
        self.cache_file = cache_file or get_cache_file()
        self.cache = self._load_cache()
        self.cache_lock = Lock()  # Thread safety for cache
        self.max_workers = max_workers

    def _load_cache(self) -> Dict[str, Dict]:
        """Load enrichment cache to avoid re-querying the same products."""
        try:
            cache_path = Path(self.cache_file)
            if cache_path.exists() and cache_path.stat().st_size > 0:
                with open(cache_path, 'r') as f:
                    return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load cache: {e}")
        return {}

    def _save_cache(self):
        """Save enrichment cache."""
        try:
            cache_path = Path(self.cache_file)
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            with self.cache_lock:
                snapshot = dict(self.cache)
            with open(cache_path, 'w') as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"Could not save cache: {e}")

    @staticmethod
    def _get_cache_key(section: str, product: ProductData, target_platform: Optional[str] = None) -> str:
        """Generate cache key for section + product identity (+ platform for descriptions)."""
        content = f"{section}:{product.name or ''}:{product.brand or ''}:{product.ean or ''}"
        if section == 'pricing':
            content += f":{product.purchase_price or ''}"
        if target_platform:
            content += f":{target_platform}"
        return hashlib.sha256(content.encode()).hexdigest()

    def _enrich_section(self, record: AnalysisRecord, section: str,
                        enricher: BaseSectionEnricher) -> EnrichmentResult:
        cache_key = self._get_cache_key(section, record.product, getattr(enricher, 'target_platform', None))

        with self.cache_lock:
            cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {section}: {record.product.identifier}")
            enricher.apply(record, cached)
            record.enrichment_errors.pop(section, None)
            return EnrichmentResult(section=section, successful=True, data=cached, from_cache=True)

        result = enricher.enrich(record)
        if result.successful:
            with self.cache_lock:
                self.cache[cache_key] = result.data
        return result

    def _process_single_record(self, record: AnalysisRecord) -> List[EnrichmentResult]:
        """Run every enricher on one record; a failing section never stops the others."""
        if record.product.is_empty():
            logger.warning(f"Skipping record {record.analysis_id}: no name, EAN or URL")
            for section in self.enrichers:
                record.enrichment_errors[section] = 'missing product identity'
            return []

        results = []
        for section, enricher in self.enrichers.items():
            try:
                results.append(self._enrich_section(record, section, enricher))
            except Exception as e:
                logger.error(f"Error enriching {section} for {record.analysis_id}: {e}", exc_info=True)
                record.enrichment_errors[section] = str(e)
                results.append(EnrichmentResult(section=section, successful=False, error=str(e)))
        return results

    def process_records(self, records: List[AnalysisRecord]) -> List[AnalysisRecord]:
        """Enrich records in parallel and return them in their original order."""
        if not records:
            return []

        logger.info(f"Enriching {len(records)} records with sections {list(self.enrichers)}")
        successes = 0
        failures = 0

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._process_single_record, record): record for record in records}
            for future in as_completed(futures):
                record = futures[future]
                try:
                    results = future.result()
                except Exception as e:
                    logger.error(f"Record {record.analysis_id} failed: {e}", exc_info=True)
                    failures += 1
                    continue
                successes += sum(1 for r in results if r.successful)
                failures += sum(1 for r in results if not r.successful)

        self._save_cache()
        logger.info(f"Batch complete: {successes} sections enriched, {failures} failed")
        return records

    def process_dataframe(self, df: pd.DataFrame, id_column: Optional[str] = None) -> List[AnalysisRecord]:
        """Build analysis records from a product DataFrame and enrich them."""
        records = []
        for index, row in enumerate(df.to_dict(orient='records')):
            analysis_id = str(row.get(id_column)) if id_column and row.get(id_column) is not None else str(index)
            product = ProductData.from_dict({k: v for k, v in row.items() if k != id_column})
            records.append(AnalysisRecord(analysis_id=analysis_id, product=product))
        return self.process_records(records)
