"""
LLM Utilities Package
Contains utility modules for API handling and result parsing.
"""

from .api_utils import AIResponse, APIManager, get_error_code, get_provider_compatible_model
from .result_parser import (
    RecoveryFailed,
    RecoveryResult,
    ResultParser,
    recover,
    recover_with_strategy,
)

__all__ = [
    'AIResponse', 'APIManager', 'get_error_code', 'get_provider_compatible_model',
    'RecoveryFailed', 'RecoveryResult', 'ResultParser', 'recover', 'recover_with_strategy',
]
