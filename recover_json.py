#!/usr/bin/env python3
"""
Recover JSON from a saved model reply.

Reads raw model text from a file (or stdin), prints the recovered JSON and
the strategy that produced it.

Usage:
    python recover_json.py reply.txt
    cat reply.txt | python recover_json.py
"""

import argparse
import json
import logging
import sys

from product_analyzer.llm_extraction.utils.result_parser import RecoveryFailed, recover_with_strategy

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Recover JSON from raw model text')
    parser.add_argument('path', nargs='?', help='File with the model reply (default: stdin)')
    parser.add_argument('--verbose', action='store_true', help='Log each strategy attempt')
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger('product_analyzer').setLevel(logging.DEBUG)

    if args.path:
        with open(args.path, 'r', encoding='utf-8') as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    try:
        result = recover_with_strategy(text)
    except RecoveryFailed as e:
        logger.error(str(e))
        return 1

    logger.info(f"Recovered with strategy: {result.strategy}")
    print(json.dumps(result.value, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
