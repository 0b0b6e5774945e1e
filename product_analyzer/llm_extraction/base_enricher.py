"""
Base Section Enricher
Provides the common flow shared by every enrichment section: build a prompt
from product data, call the provider chain, recover JSON from the reply,
normalize it and merge it into the analysis record.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .utils.api_utils import AIResponse, APIManager
from .utils.result_parser import RecoveryFailed, RecoveryResult, ResultParser
from product_analyzer.models.product_model import AnalysisRecord, ProductData

logger = logging.getLogger(__name__)

STRICT_JSON_REMINDER = (
    "\n\nIMPORTANT: your previous answer could not be read. "
    "Reply with ONLY valid JSON: no markdown, no comments, no text before or after."
)


@dataclass
class EnrichmentResult:
    """Outcome of enriching one section of one record."""
    section: str
    successful: bool
    data: Optional[Any] = None
    provider: Optional[str] = None
    strategy: Optional[str] = None
    error: Optional[str] = None
    from_cache: bool = False


class BaseSectionEnricher(ABC):
    """Base class for LLM-based enrichment of one analysis section."""

    section_name: str = ''
    model: Optional[str] = 'qwen3-coder:480b-cloud'
    temperature: float = 0.7
    max_tokens: int = 2000

    def __init__(self, api_manager: Optional[APIManager] = None,
                 result_parser: Optional[ResultParser] = None):
        self.api_manager = api_manager or APIManager()
        self.result_parser = result_parser or ResultParser()

    @abstractmethod
    def create_prompt(self, product: ProductData) -> str:
        """Build the user prompt for this section."""
        pass

    @abstractmethod
    def normalize(self, raw: Any, product: ProductData) -> Any:
        """Turn the recovered value into the stored section data.

        Raises:
            ValueError: if the recovered value cannot be used
        """
        pass

    @abstractmethod
    def apply(self, record: AnalysisRecord, data: Any) -> None:
        """Write normalized section data into the record."""
        pass

    def call_llm(self, prompt: str) -> AIResponse:
        """Send the prompt through the provider chain."""
        return self.api_manager.call_with_fallback(
            system_prompt=None,
            user_prompt=prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

    def parse_response(self, response: str) -> RecoveryResult:
        """Recover structured data from the model reply."""
        return self.result_parser.recover(response)

    @staticmethod
    def require_mapping(raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise ValueError(f"Expected a JSON object, got {type(raw).__name__}")
        return raw

    def extract(self, product: ProductData) -> EnrichmentResult:
        """Call the model and return normalized section data without touching any record.

        A reply that cannot be recovered is retried once with a strict
        JSON-only reminder appended to the prompt.
        """
        prompt = self.create_prompt(product)
        last_error = None

        for current_prompt in (prompt, prompt + STRICT_JSON_REMINDER):
            response = self.call_llm(current_prompt)
            if not response.success:
                logger.error(f"[{self.section_name}] AI call failed ({response.error_code}): {response.error}")
                return EnrichmentResult(
                    section=self.section_name,
                    successful=False,
                    error=f"{response.error_code}: {response.error}"
                )

            try:
                recovered = self.parse_response(response.content)
            except RecoveryFailed as e:
                last_error = str(e)
                logger.warning(f"[{self.section_name}] Could not recover JSON from {response.provider} reply")
                continue

            try:
                data = self.normalize(recovered.value, product)
            except ValueError as e:
                logger.error(f"[{self.section_name}] Invalid section data: {e}")
                return EnrichmentResult(
                    section=self.section_name,
                    successful=False,
                    provider=response.provider,
                    strategy=recovered.strategy,
                    error=str(e)
                )

            logger.info(
                f"[{self.section_name}] Enriched {product.identifier} "
                f"via {response.provider} ({recovered.strategy})"
            )
            return EnrichmentResult(
                section=self.section_name,
                successful=True,
                data=data,
                provider=response.provider,
                strategy=recovered.strategy
            )

        return EnrichmentResult(section=self.section_name, successful=False, error=last_error)

    def enrich(self, record: AnalysisRecord) -> EnrichmentResult:
        """Extract this section for the record's product and merge it in on success."""
        result = self.extract(record.product)
        if result.successful:
            self.apply(record, result.data)
            record.enrichment_errors.pop(self.section_name, None)
        else:
            record.enrichment_errors[self.section_name] = result.error or 'unknown error'
        return result
