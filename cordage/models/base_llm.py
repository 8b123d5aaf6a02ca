"""
Model backend contract.

Backends turn an LlmRequest into one response or a lazy stream of partial
responses. Provider SDK wiring lives outside this package.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from pydantic import BaseModel, ConfigDict, Field

from cordage.models.llm_request import LlmRequest
from cordage.models.llm_response import LlmResponse


class BaseLlm(BaseModel, ABC):
    """
    Unified model abstract base class.

    Implementations stream LlmResponse objects. When ``stream`` is False they
    yield exactly one complete response; when True they may yield any number
    of ``partial=True`` chunks followed by the aggregated final response.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")

    model: str = Field(description="Model name understood by the backend")

    @classmethod
    def supported_models(cls) -> list[str]:
        """Regex patterns of model names this class can serve."""
        return []

    @abstractmethod
    def generate_content_async(
        self, llm_request: LlmRequest, stream: bool = False
    ) -> AsyncIterator[LlmResponse]:
        """
        Generate content for ``llm_request``.

        Args:
            llm_request: Reconstructed contents, tool declarations and instruction
            stream: Whether partial chunks may be produced

        Yields:
            LlmResponse: Responses in production order
        """
        raise NotImplementedError


__all__ = ["BaseLlm"]
