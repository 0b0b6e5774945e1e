"""
Result Parser Module
Recovers structured data (JSON objects or arrays) from raw LLM response text.

Strategies are tried in a fixed order and the first one that succeeds wins:
direct parse, ```json fence extraction, greedy bracket scan with cleanup,
and finally a flat key/value salvage.
"""

import re
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

# Configure logging
logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 200
MIN_SALVAGED_PAIRS = 4

_FENCE_PATTERN = re.compile(r'```json\s*([\s\S]*?)\s*```')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')
_TRAILING_COMMA = re.compile(r',\s*([}\]])')
_BARE_KEY = re.compile(r'([{,]\s*)(\w+)(\s*:)', re.ASCII)
_KEY_VALUE = re.compile(r'["\']?(\w+)["\']?\s*:\s*([^,{}\[\]]+)', re.ASCII)


class RecoveryFailed(ValueError):
    """Raised when no strategy could recover structured data from the text."""

    def __init__(self, text: Any):
        if isinstance(text, str):
            self.text_length = len(text)
            self.snippet = text[:SNIPPET_LENGTH]
        else:
            self.text_length = 0
            self.snippet = ''
        super().__init__(
            f"Could not recover JSON from response "
            f"(length={self.text_length}): {self.snippet!r}"
        )


@dataclass
class RecoveryResult:
    """Recovered value plus the name of the strategy that produced it."""
    value: Any
    strategy: str


def strip_control_characters(text: str) -> str:
    """Remove C0 and C1 control characters."""
    return _CONTROL_CHARS.sub('', text)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that sit directly before a closing brace or bracket."""
    return _TRAILING_COMMA.sub(r'\1', text)


def quote_bare_keys(text: str) -> str:
    """Wrap unquoted object keys in double quotes."""
    return _BARE_KEY.sub(r'\1"\2"\3', text)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _loads(text: str) -> Any:
    """Strict json.loads: NaN, Infinity and -Infinity are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def parse_direct(text: str) -> Any:
    """Strategy 1: the whole text is already valid JSON."""
    return _loads(text)


def parse_markdown_fence(text: str) -> Any:
    """Strategy 2: parse the content of a ```json fenced block as-is."""
    match = _FENCE_PATTERN.search(text)
    if not match:
        raise ValueError("No ```json fence found")
    return _loads(match.group(1))


def find_bracket_span(text: str) -> Optional[str]:
    """Return the text from the first opening to the last closing bracket.

    The span is greedy and not balanced: the first ``{``/``[`` anywhere in
    the text and the last ``}``/``]`` anywhere in the text.
    """
    openings = [pos for pos in (text.find('{'), text.find('[')) if pos != -1]
    if not openings:
        return None
    start = min(openings)
    end = max(text.rfind('}'), text.rfind(']'))
    if end < start:
        return None
    return text[start:end + 1]


def parse_bracket_span(text: str) -> Any:
    """Strategy 3: greedy bracket span, cleaned up, then parsed."""
    span = find_bracket_span(text)
    if span is None:
        raise ValueError("No bracketed span found")

    cleaned = strip_control_characters(span)
    cleaned = remove_trailing_commas(cleaned)
    cleaned = quote_bare_keys(cleaned)
    return _loads(cleaned)


def salvage_key_values(text: str) -> Dict[str, str]:
    """Strategy 4: build a flat string mapping from ``key: value`` tokens.

    Values are never coerced: numbers and booleans stay strings.
    """
    pairs = {}
    for key, value in _KEY_VALUE.findall(text):
        pairs[key] = value.strip().strip('"\'').strip()

    if len(pairs) < MIN_SALVAGED_PAIRS:
        raise ValueError(f"Only {len(pairs)} key/value pairs found")
    return pairs


class ResultParser:
    """Parses and validates LLM API responses."""

    STRATEGIES: List[Tuple[str, Callable[[str], Any]]] = [
        ('direct', parse_direct),
        ('markdown_fence', parse_markdown_fence),
        ('bracket_scan', parse_bracket_span),
        ('key_value_salvage', salvage_key_values),
    ]

    def recover(self, text: str) -> RecoveryResult:
        """Run the strategies in order and return the first success.

        Args:
            text: Raw text response from LLM

        Returns:
            RecoveryResult: the recovered value and the winning strategy name

        Raises:
            RecoveryFailed: if every strategy fails
        """
        if not isinstance(text, str):
            logger.warning(f"Cannot recover JSON from {type(text).__name__}")
            raise RecoveryFailed(text)

        for name, strategy in self.STRATEGIES:
            try:
                value = strategy(text)
            except (ValueError, RecursionError) as e:
                logger.debug(f"Strategy {name} failed: {e}")
                continue

            logger.debug(f"Recovered JSON with strategy: {name}")
            return RecoveryResult(value=value, strategy=name)

        logger.warning(f"Failed to parse JSON from response: {text[:100]}...")
        raise RecoveryFailed(text)

    def parse_json_response(self, response: str) -> Optional[Any]:
        """Parse JSON from an LLM response, returning None on failure."""
        try:
            return self.recover(response).value
        except RecoveryFailed:
            return None

    @staticmethod
    def validate_extraction_fields(parsed_json: Dict[str, Any], required_fields: list) -> bool:
        """Validate that extraction result contains all required fields.

        Args:
            parsed_json: Parsed extraction result
            required_fields: List of field names that must be present

        Returns:
            bool: True if all required fields are present
        """
        if not parsed_json or not isinstance(parsed_json, dict):
            return False

        return all(field in parsed_json for field in required_fields)


_default_parser = ResultParser()


def recover_with_strategy(text: str) -> RecoveryResult:
    """Recover structured data and report which strategy produced it."""
    return _default_parser.recover(text)


def recover(text: str) -> Any:
    """Recover structured data from raw model text or raise RecoveryFailed."""
    return _default_parser.recover(text).value
