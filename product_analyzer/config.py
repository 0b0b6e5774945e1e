"""
Configuration
Provider chain defaults and environment-driven settings.
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000
DEFAULT_MAX_RPM = 100
DEFAULT_CACHE_FILE = "data/processed/.enrichment_cache.json"

# Only Ollama calls are bounded by a timeout
OLLAMA_TIMEOUT_SECONDS = 15.0

GATEWAY_MODELS = [
    'openai/gpt-5-mini', 'openai/gpt-5', 'openai/gpt-5-nano',
    'google/gemini-2.5-pro', 'google/gemini-2.5-flash',
    'google/gemini-2.5-flash-lite'
]

# Ollama cloud models and their gateway equivalents
OLLAMA_TO_GATEWAY_MODELS = {
    'gpt-oss:120b-cloud': 'google/gemini-2.5-pro',
    'gpt-oss:20b-cloud': 'google/gemini-2.5-flash',
    'qwen3-coder:480b-cloud': 'google/gemini-2.5-pro',
    'deepseek-v3.1:671b-cloud': 'google/gemini-2.5-pro',
    'kimi-k2:1t-cloud': 'google/gemini-2.5-flash',
    'glm-4.6:cloud': 'google/gemini-2.5-flash'
}


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one OpenAI-compatible chat provider."""
    provider: str
    priority: int
    is_active: bool
    base_url: Optional[str]
    api_key_env: str
    default_model: str
    timeout: Optional[float] = None
    requires_api_key: bool = True


DEFAULT_PROVIDERS: List[ProviderConfig] = [
    ProviderConfig(
        provider='ollama', priority=1, is_active=True,
        base_url=None,  # resolved from OLLAMA_URL
        api_key_env='OLLAMA_API_KEY',
        default_model='gpt-oss:120b-cloud',
        timeout=OLLAMA_TIMEOUT_SECONDS,
        requires_api_key=False
    ),
    ProviderConfig(
        provider='lovable_ai', priority=2, is_active=True,
        base_url='https://ai.gateway.lovable.dev/v1',
        api_key_env='LOVABLE_API_KEY',
        default_model='google/gemini-2.5-flash'
    ),
    ProviderConfig(
        provider='openai', priority=3, is_active=False,
        base_url='https://api.openai.com/v1',
        api_key_env='OPENAI_API_KEY',
        default_model='gpt-4o-mini'
    ),
    ProviderConfig(
        provider='openrouter', priority=4, is_active=False,
        base_url='https://openrouter.ai/api/v1',
        api_key_env='OPENROUTER_API_KEY',
        default_model='google/gemini-2.5-flash'
    ),
]


def get_provider_configs(env: Optional[Dict[str, str]] = None) -> List[ProviderConfig]:
    """Return the provider chain sorted by priority, resolved against the environment.

    ``AI_ACTIVE_PROVIDERS`` (comma-separated) overrides which providers are
    active. The Ollama base URL comes from ``OLLAMA_URL``.
    """
    env = os.environ if env is None else env
    active_override = env.get('AI_ACTIVE_PROVIDERS')
    active_names = None
    if active_override:
        active_names = {name.strip() for name in active_override.split(',') if name.strip()}
        logger.info(f"Active providers overridden: {sorted(active_names)}")

    configs = []
    for config in DEFAULT_PROVIDERS:
        if active_names is not None:
            config = replace(config, is_active=config.provider in active_names)
        if config.provider == 'ollama':
            ollama_url = env.get('OLLAMA_URL')
            config = replace(config, base_url=f"{ollama_url.rstrip('/')}/v1" if ollama_url else None)
        configs.append(config)

    return sorted(configs, key=lambda c: c.priority)


def get_max_rpm() -> int:
    """Requests per minute allowed across all providers."""
    return int(os.getenv('AI_MAX_RPM', DEFAULT_MAX_RPM))


def get_cache_file() -> str:
    """Path of the enrichment cache file."""
    return os.getenv('ENRICHMENT_CACHE_FILE', DEFAULT_CACHE_FILE)
