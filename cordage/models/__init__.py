"""
Model layer: request/response records, backend contract and registry.
"""

from cordage.models.base_llm import BaseLlm
from cordage.models.llm_request import LlmRequest
from cordage.models.llm_response import LlmResponse
from cordage.models.registry import ModelRegistry

__all__ = ["BaseLlm", "LlmRequest", "LlmResponse", "ModelRegistry"]
