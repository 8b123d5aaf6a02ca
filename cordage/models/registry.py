"""
Model registry.

Maps model names to backend classes by regex. Hosts create one registry,
register their backends at startup and hand it to the runner; nothing in the
package keeps a process-wide instance.
"""

import re

from cordage.errors import ModelNotFoundError
from cordage.models.base_llm import BaseLlm
from cordage.utils.logging import get_logger

logger = get_logger(__name__)


class ModelRegistry:
    """
    Model name to backend class table.

    Responsibilities:
    - Register backend classes under their supported name patterns
    - Resolve a model name to a class, caching the lookup
    - Create backend instances
    """

    def __init__(self):
        self._registry: dict[str, type[BaseLlm]] = {}
        self._cache: dict[str, type[BaseLlm]] = {}

    def register(self, llm_cls: type[BaseLlm], patterns: list[str] | None = None) -> None:
        """
        Register a backend class.

        Args:
            llm_cls: BaseLlm subclass
            patterns: Regex patterns to register, defaults to llm_cls.supported_models()
        """
        for pattern in patterns or llm_cls.supported_models():
            if pattern in self._registry:
                logger.warning(
                    "model_pattern_overridden",
                    pattern=pattern,
                    previous=self._registry[pattern].__name__,
                    current=llm_cls.__name__,
                )
            self._registry[pattern] = llm_cls
        self._cache.clear()
        logger.debug("model_registered", model_class=llm_cls.__name__)

    def resolve(self, model: str) -> type[BaseLlm]:
        """Return the backend class serving ``model``."""
        if model in self._cache:
            return self._cache[model]

        for pattern, llm_cls in self._registry.items():
            if re.fullmatch(pattern, model):
                self._cache[model] = llm_cls
                return llm_cls

        raise ModelNotFoundError(f"Model {model} not found.")

    def new_llm(self, model: str) -> BaseLlm:
        return self.resolve(model)(model=model)

    def has(self, model: str) -> bool:
        try:
            self.resolve(model)
        except ModelNotFoundError:
            return False
        return True

    def clear(self) -> None:
        """Drop every registration (teardown)."""
        self._registry.clear()
        self._cache.clear()


__all__ = ["ModelRegistry"]
