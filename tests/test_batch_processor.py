"""
Unit tests for BatchProcessor class.
Tests batch enrichment, caching, and error handling across records.
"""
import os
import json
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock

import pandas as pd

from product_analyzer.llm_extraction.batch_processor import BatchProcessor
from product_analyzer.llm_extraction.section_enrichers import DescriptionEnricher, PricingEnricher
from product_analyzer.llm_extraction.utils.api_utils import AIResponse
from product_analyzer.models.product_model import AnalysisRecord, ProductData


class TestBatchProcessor(unittest.TestCase):
    """Test cases for BatchProcessor."""

    def setUp(self):
        """Set up test resources."""
        self.temp_dir = tempfile.mkdtemp()
        self.cache_file = os.path.join(self.temp_dir, 'cache.json')

        self.api_manager = MagicMock()
        self.api_manager.call_with_fallback.return_value = AIResponse(
            success=True,
            content='{"recommended_selling_price": 30, "market_average_price": 28}',
            provider='ollama'
        )
        self.enrichers = {'pricing': PricingEnricher(self.api_manager)}
        self.processor = BatchProcessor(self.enrichers, cache_file=self.cache_file, max_workers=2)

        self.records = [
            AnalysisRecord(analysis_id='1', product=ProductData(name='Lamp', ean='111', purchase_price=20)),
            AnalysisRecord(analysis_id='2', product=ProductData(name='Desk', ean='222')),
        ]

    def tearDown(self):
        """Clean up resources."""
        shutil.rmtree(self.temp_dir)

    def test_process_records_enriches_each_record(self):
        records = self.processor.process_records(self.records)

        self.assertEqual([r.analysis_id for r in records], ['1', '2'])
        self.assertEqual(records[0].analysis_result['pricing']['recommended_selling_price'], 30.0)
        self.assertAlmostEqual(records[0].analysis_result['pricing']['suggested_margin_percentage'], 50.0)
        self.assertEqual(records[1].analysis_result['pricing']['market_average_price'], 28.0)
        self.assertEqual(self.api_manager.call_with_fallback.call_count, 2)

    def test_cache_is_saved_and_reused(self):
        """Test that a second run over the same products does not call the model."""
        self.processor.process_records(self.records)

        with open(self.cache_file) as f:
            self.assertEqual(len(json.load(f)), 2)

        fresh_records = [
            AnalysisRecord(analysis_id='3', product=ProductData(name='Lamp', ean='111', purchase_price=20)),
        ]
        second = BatchProcessor(self.enrichers, cache_file=self.cache_file)
        second.process_records(fresh_records)

        self.assertEqual(self.api_manager.call_with_fallback.call_count, 2)
        self.assertEqual(fresh_records[0].analysis_result['pricing']['recommended_selling_price'], 30.0)

    def test_description_cache_is_kept_per_platform(self):
        """Test that a cached description for one platform is not reused for another."""
        self.api_manager.call_with_fallback.return_value = AIResponse(
            success=True, content='{"description_html": "<p>odoo html</p>", "short_description": "Lamp"}',
            provider='ollama'
        )
        odoo = BatchProcessor({'description': DescriptionEnricher(self.api_manager, target_platform='odoo')},
                              cache_file=self.cache_file)
        odoo.process_records([AnalysisRecord(analysis_id='1', product=ProductData(name='Lamp', ean='111'))])

        self.api_manager.call_with_fallback.return_value = AIResponse(
            success=True, content='{"description_html": "Shopify text", "short_description": "Lamp"}',
            provider='ollama'
        )
        shopify = BatchProcessor({'description': DescriptionEnricher(self.api_manager, target_platform='shopify')},
                                 cache_file=self.cache_file)
        record = AnalysisRecord(analysis_id='2', product=ProductData(name='Lamp', ean='111'))
        shopify.process_records([record])

        self.assertEqual(record.long_description, 'Shopify text')
        self.assertEqual(self.api_manager.call_with_fallback.call_count, 2)

    def test_cache_hit_clears_previous_section_error(self):
        self.processor.process_records(self.records[:1])
        record = AnalysisRecord(analysis_id='3', product=ProductData(name='Lamp', ean='111', purchase_price=20),
                                enrichment_errors={'pricing': 'PROVIDER_DOWN: All AI providers failed'})

        BatchProcessor(self.enrichers, cache_file=self.cache_file).process_records([record])

        self.assertEqual(record.enrichment_errors, {})
        self.assertIn('pricing', record.analysis_result)

    def test_record_without_identity_is_skipped(self):
        record = AnalysisRecord(analysis_id='empty', product=ProductData(brand='Acme'))

        self.processor.process_records([record])

        self.assertEqual(record.enrichment_errors, {'pricing': 'missing product identity'})
        self.api_manager.call_with_fallback.assert_not_called()

    def test_failing_enricher_does_not_stop_other_sections(self):
        broken = MagicMock()
        broken.enrich.side_effect = RuntimeError('boom')
        processor = BatchProcessor({'broken': broken, 'pricing': self.enrichers['pricing']},
                                   cache_file=self.cache_file)

        records = processor.process_records(self.records[:1])

        self.assertEqual(records[0].enrichment_errors, {'broken': 'boom'})
        self.assertIn('pricing', records[0].analysis_result)

    def test_failed_sections_are_not_cached(self):
        self.api_manager.call_with_fallback.return_value = AIResponse(
            success=False, error='All AI providers failed', error_code='PROVIDER_DOWN'
        )

        records = self.processor.process_records(self.records)

        self.assertIn('pricing', records[0].enrichment_errors)
        self.assertEqual(self.processor.cache, {})

    def test_process_dataframe(self):
        df = pd.DataFrame({
            'sku': ['A1', 'B2'],
            'product_name': ['Lamp', 'Desk'],
            'barcode': ['111', '222'],
        })

        records = self.processor.process_dataframe(df, id_column='sku')

        self.assertEqual([r.analysis_id for r in records], ['A1', 'B2'])
        self.assertEqual(records[0].product.name, 'Lamp')
        self.assertEqual(records[1].product.ean, '222')
        self.assertIn('pricing', records[1].analysis_result)

    def test_empty_batch(self):
        self.assertEqual(self.processor.process_records([]), [])

    def test_invalid_worker_count(self):
        with self.assertRaises(ValueError):
            BatchProcessor(self.enrichers, cache_file=self.cache_file, max_workers=0)


if __name__ == '__main__':
    unittest.main()
