"""
API Utilities Module
Handles LLM interactions through an ordered chain of OpenAI-compatible
providers using LangChain, falling back to the next provider on failure.
"""

import os
import time
import random
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from langchain_core.messages import SystemMessage, HumanMessage
from langchain_openai import ChatOpenAI

from product_analyzer.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    GATEWAY_MODELS,
    OLLAMA_TO_GATEWAY_MODELS,
    ProviderConfig,
    get_max_rpm,
    get_provider_configs,
)

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class AIResponse:
    """Outcome of a call through the provider chain."""
    success: bool
    content: Optional[str] = None
    provider: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


def get_provider_compatible_model(requested_model: Optional[str], provider: str) -> str:
    """Translate a requested model name into one the target provider serves."""
    if not requested_model:
        if provider in ('lovable_ai', 'openrouter'):
            return 'google/gemini-2.5-flash'
        if provider == 'openai':
            return 'gpt-4o-mini'
        return 'gpt-oss:120b-cloud'

    if requested_model in GATEWAY_MODELS:
        return requested_model

    if provider != 'ollama' and requested_model in OLLAMA_TO_GATEWAY_MODELS:
        translated = OLLAMA_TO_GATEWAY_MODELS[requested_model]
        logger.info(f"Translating model {requested_model} -> {translated} for {provider}")
        return translated

    # Ollama model names always carry a tag
    if provider == 'ollama' and ':' not in requested_model:
        return 'gpt-oss:120b-cloud'

    return requested_model


def get_error_code(error: Any) -> str:
    """Classify a provider error into a stable error code."""
    if not error:
        return 'UNKNOWN'

    status = getattr(error, 'status', None) or getattr(error, 'status_code', None)
    message = str(getattr(error, 'message', None) or error).lower()

    if status == 401 or 'token' in message or 'auth' in message:
        return 'TOKEN_EXPIRED'
    if status == 402 or 'payment' in message or 'credits' in message:
        return 'PAYMENT_REQUIRED'
    if status == 429 or 'rate limit' in message or 'quota' in message:
        return 'RATE_LIMIT'
    if status == 503 or 'unavailable' in message or 'down' in message:
        return 'PROVIDER_DOWN'
    if status == 412 or 'config' in message or 'api key' in message:
        return 'PROVIDER_CONFIG_MISSING'

    return 'UNKNOWN'


class APIManager:
    """Manages LLM interactions with rate limiting, retries and provider fallback."""

    def __init__(
        self,
        providers: Optional[List[ProviderConfig]] = None,
        max_rpm: Optional[int] = None,
        env: Optional[Mapping[str, str]] = None
    ):
        """Initialize the API manager.

        Args:
            providers: Provider chain (uses the environment-resolved defaults if None)
            max_rpm: Maximum requests per minute across all providers
            env: Mapping used to look up API keys (defaults to os.environ)
        """
        self.env = os.environ if env is None else env
        self.providers = sorted(
            providers if providers is not None else get_provider_configs(self.env),
            key=lambda c: c.priority
        )
        self.max_rpm = max_rpm or get_max_rpm()
        if self.max_rpm <= 0:
            raise ValueError("max_rpm must be positive")

        # Rate limiting
        self.request_times = []
        self._lock = threading.RLock()

    def enforce_rate_limit(self) -> None:
        """Enforce API rate limits to prevent 429 errors."""
        current_time = time.time()

        with self._lock:
            # Remove requests older than 1 minute
            self.request_times = [t for t in self.request_times if current_time - t < 60]

            # If we're at the limit, wait
            if len(self.request_times) >= self.max_rpm:
                sleep_time = max(0, 60 - (current_time - self.request_times[0])) + random.uniform(0.5, 1.5)
                logger.info(f"Rate limit reached, sleeping for {sleep_time:.2f} seconds")
                # Release lock during sleep to prevent blocking other threads
                self._lock.release()
                try:
                    time.sleep(sleep_time)
                finally:
                    self._lock.acquire()

            self.request_times.append(time.time())

    def _resolve_api_key(self, config: ProviderConfig) -> Optional[str]:
        return self.env.get(config.api_key_env) or None

    def _create_chat_model(
        self,
        config: ProviderConfig,
        api_key: Optional[str],
        model: Optional[str],
        temperature: float,
        max_tokens: int
    ) -> ChatOpenAI:
        """Initialize a LangChain chat model pointed at the provider's endpoint."""
        init_params = {
            "model": get_provider_compatible_model(model, config.provider),
            "base_url": config.base_url,
            # Local Ollama accepts any key but the client requires one
            "api_key": api_key or "ollama",
            "temperature": temperature,
            "max_tokens": max_tokens,
            "max_retries": 0,
        }
        if config.timeout is not None:
            init_params["timeout"] = config.timeout

        return ChatOpenAI(**init_params)

    def get_available_providers(self, skip_providers: Iterable[str] = ()) -> List[ProviderConfig]:
        """Active providers with enough configuration to be called, in priority order."""
        skipped = set(skip_providers)
        available = []
        for config in self.providers:
            if not config.is_active or config.provider in skipped:
                continue
            if not config.base_url:
                logger.info(f"Skipping {config.provider} (no URL configured)")
                continue
            if config.requires_api_key and not self._resolve_api_key(config):
                logger.info(f"Skipping {config.provider} (no API key)")
                continue
            available.append(config)
        return available

    def call_with_fallback(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        skip_providers: Iterable[str] = (),
        max_retries: int = 1
    ) -> AIResponse:
        """Call the provider chain, moving to the next provider on any failure.

        Args:
            system_prompt: Optional system message
            user_prompt: User message for the chat completion
            model: Preferred model (translated per provider)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            skip_providers: Provider names to leave out of the chain
            max_retries: Attempts per provider before falling back

        Returns:
            AIResponse with the completion text, or the last error when every
            provider failed
        """
        # Input validation
        if not user_prompt or not isinstance(user_prompt, str):
            raise ValueError("user_prompt must be a non-empty string")
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        temperature = DEFAULT_TEMPERATURE if temperature is None else temperature
        max_tokens = max_tokens or DEFAULT_MAX_TOKENS

        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=user_prompt))

        logger.info(f"Starting AI call with fallback, preferred model: {model or 'auto'}")
        last_error: Optional[Exception] = None

        for config in self.get_available_providers(skip_providers):
            chat_model = self._create_chat_model(
                config, self._resolve_api_key(config), model, temperature, max_tokens
            )

            for attempt in range(max_retries):
                try:
                    logger.info(f"Trying provider: {config.provider}")
                    self.enforce_rate_limit()

                    start_time = time.time()
                    response = chat_model.invoke(messages)
                    duration = time.time() - start_time
                    logger.info(f"{config.provider} responded in {duration * 1000:.0f}ms")

                    content = response.content if hasattr(response, 'content') else response
                    return AIResponse(
                        success=True,
                        content=str(content).strip(),
                        provider=config.provider
                    )

                except Exception as e:
                    last_error = e
                    logger.warning(
                        f"Provider {config.provider} failed on attempt {attempt + 1} "
                        f"({get_error_code(e)}): {type(e).__name__}: {e}"
                    )
                    if attempt < max_retries - 1:
                        sleep_time = (2 ** attempt) + random.uniform(0, 1)
                        logger.info(f"Retrying in {sleep_time:.2f} seconds")
                        time.sleep(sleep_time)

        logger.error("All AI providers failed")
        return AIResponse(
            success=False,
            error=str(last_error) if last_error else 'All AI providers failed',
            error_code='PROVIDER_DOWN'
        )

    def get_provider_info(self) -> Dict[str, Any]:
        """Get information about the provider chain configuration."""
        return {
            "providers": [
                {
                    "provider": config.provider,
                    "priority": config.priority,
                    "is_active": config.is_active,
                    "configured": bool(config.base_url) and (
                        not config.requires_api_key or bool(self._resolve_api_key(config))
                    ),
                }
                for config in self.providers
            ],
            "max_rpm": self.max_rpm,
        }
