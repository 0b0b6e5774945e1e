"""
Tests for the command-line scripts.
"""
import io
import os
import json
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

import recover_json
import run_enrichment
from product_analyzer.llm_extraction.utils.api_utils import AIResponse


class TestRecoverJsonScript(unittest.TestCase):
    """Test cases for recover_json.py."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, content):
        path = os.path.join(self.temp_dir, 'reply.txt')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def test_prints_recovered_json(self):
        path = self._write('Sure!\n```json\n{"hs_code": "85183000"}\n```')
        output = io.StringIO()

        with redirect_stdout(output):
            exit_code = recover_json.main([path])

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(output.getvalue()), {"hs_code": "85183000"})

    def test_failure_exit_code(self):
        path = self._write('I am not able to answer that.')

        self.assertEqual(recover_json.main([path]), 1)


class TestRunEnrichmentScript(unittest.TestCase):
    """Test cases for run_enrichment.py with the provider chain mocked."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.input_path = os.path.join(self.temp_dir, 'products.csv')
        with open(self.input_path, 'w', encoding='utf-8') as f:
            f.write('name,ean,purchase_price\nLamp,111,20\nDesk,222,\n')

        env_patcher = patch.dict(os.environ, {'ENRICHMENT_CACHE_FILE': os.path.join(self.temp_dir, 'cache.json')})
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

        manager_patcher = patch('product_analyzer.llm_extraction.utils.APIManager')
        self.mock_manager_class = manager_patcher.start()
        self.addCleanup(manager_patcher.stop)
        self.api_manager = self.mock_manager_class.return_value
        self.api_manager.get_provider_info.return_value = {}

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_runs_pricing_enrichment(self):
        self.api_manager.call_with_fallback.return_value = AIResponse(
            success=True, content='{"recommended_selling_price": 30}', provider='ollama'
        )
        output_dir = os.path.join(self.temp_dir, 'outputs')

        exit_code = run_enrichment.main([
            '--input', self.input_path, '--sections', 'pricing', '--output-dir', output_dir
        ])

        self.assertEqual(exit_code, 0)
        json_files = [f for f in os.listdir(output_dir) if f.endswith('.json')]
        self.assertEqual(len(json_files), 1)
        with open(os.path.join(output_dir, json_files[0]), encoding='utf-8') as f:
            records = json.load(f)
        self.assertEqual(len(records), 2)
        self.assertEqual(records[0]['analysis_result']['pricing']['recommended_selling_price'], 30.0)

    def test_unknown_section_fails(self):
        exit_code = run_enrichment.main([
            '--input', self.input_path, '--sections', 'astrology', '--output-dir', self.temp_dir
        ])

        self.assertEqual(exit_code, 1)

    def test_missing_input_fails(self):
        exit_code = run_enrichment.main([
            '--input', os.path.join(self.temp_dir, 'missing.csv'), '--output-dir', self.temp_dir
        ])

        self.assertEqual(exit_code, 1)


if __name__ == '__main__':
    unittest.main()
