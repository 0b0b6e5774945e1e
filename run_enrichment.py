#!/usr/bin/env python3
"""
Run AI enrichment on a product list.

This script provides a simple command-line interface to:
1. Read products (name, EAN, brand, purchase price...) from a CSV/Excel/JSON file
2. Enrich each product with the requested sections through the AI provider chain
3. Write the enriched records as JSON plus a CSV summary

Usage:
    python run_enrichment.py --input products.csv --sections "pricing,hs_code" --output-dir ./outputs
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

os.makedirs('logs', exist_ok=True)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('logs/enrichment.log', mode='a'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Run AI enrichment on a product list')
    parser.add_argument(
        '--input',
        type=str,
        required=True,
        help='Product file (CSV, TSV, Excel, Parquet or JSON)'
    )
    parser.add_argument(
        '--sections',
        type=str,
        default='pricing,description,specifications,hs_code',
        help='Comma-separated list of sections to enrich (e.g., "pricing,hs_code")'
    )
    parser.add_argument(
        '--platform',
        type=str,
        default='odoo',
        choices=['odoo', 'shopify', 'prestashop'],
        help='Target platform for the description format'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        default='./outputs',
        help='Directory to save enrichment outputs'
    )
    parser.add_argument(
        '--limit',
        type=int,
        default=0,
        help='Maximum number of products to process (0 processes all)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=5,
        help='Number of records enriched in parallel'
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the enrichment run."""
    args = parse_args(argv)

    sections = [section.strip() for section in args.sections.split(',') if section.strip()]
    logger.info(f"Sections to enrich: {sections}")

    from product_analyzer.data_ingestion import ProductReader
    from product_analyzer.llm_extraction import BatchProcessor, create_enrichers
    from product_analyzer.llm_extraction.utils import APIManager
    from product_analyzer.output_generation import FileWriter

    try:
        api_manager = APIManager()
        logger.info(f"Provider chain: {api_manager.get_provider_info()}")

        enrichers = create_enrichers(sections, api_manager=api_manager, target_platform=args.platform)
        records = ProductReader().read_records(args.input, limit=args.limit or None)

        processor = BatchProcessor(enrichers, max_workers=args.workers)
        records = processor.process_records(records)

        output_files = FileWriter(args.output_dir).write_outputs(records, sections)

        failed = sum(1 for record in records if record.enrichment_errors)
        logger.info("=" * 50)
        logger.info("Enrichment completed:")
        logger.info(f"- Total records processed: {len(records)}")
        logger.info(f"- Records with failed sections: {failed}")
        for kind, path in output_files.items():
            logger.info(f"- {kind}: {path}")
        logger.info("=" * 50)

        return 0

    except Exception as e:
        logger.error(f"Failed to run enrichment: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
