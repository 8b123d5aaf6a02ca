"""
Tests for the model registry and request building.
"""

import sys

import pytest
from pydantic import ValidationError

from cordage.agents import RunConfig
from cordage.config import CordageSettings
from cordage.errors import ModelNotFoundError
from cordage.models import BaseLlm, LlmRequest, LlmResponse, ModelRegistry
from cordage.tools import FunctionTool


class EchoLlm(BaseLlm):
    @classmethod
    def supported_models(cls) -> list[str]:
        return [r"echo-.*"]

    async def generate_content_async(self, llm_request, stream=False):
        yield LlmResponse()


@pytest.fixture
def registry():
    registry = ModelRegistry()
    yield registry
    registry.clear()


def test_register_with_supported_models(registry):
    registry.register(EchoLlm)

    assert registry.resolve("echo-1") is EchoLlm
    assert registry.has("echo-large") is True
    assert registry.has("gpt-x") is False


def test_new_llm_sets_model_name(registry):
    registry.register(EchoLlm)
    llm = registry.new_llm("echo-7")
    assert isinstance(llm, EchoLlm)
    assert llm.model == "echo-7"


def test_patterns_must_match_whole_name(registry):
    registry.register(EchoLlm)
    with pytest.raises(ModelNotFoundError):
        registry.resolve("my-echo-1")


def test_explicit_patterns_override_class_patterns(registry):
    registry.register(EchoLlm, patterns=[r"custom"])
    assert registry.has("custom") is True
    assert registry.has("echo-1") is False


def test_clear_drops_registrations(registry):
    registry.register(EchoLlm)
    registry.resolve("echo-1")

    registry.clear()

    assert registry.has("echo-1") is False


def test_request_appends_instructions_and_tools():
    def lookup(term: str) -> str:
        """Look a term up."""
        return term

    request = LlmRequest(model="echo-1")
    request.append_instructions(["Be brief."])
    request.append_instructions(["Be kind."])
    request.append_tools([FunctionTool(lookup)])

    assert request.system_instruction == "Be brief.\n\nBe kind."
    assert request.tool_declarations[0]["name"] == "lookup"
    assert "lookup" in request.tools_dict
    assert "tools_dict" not in request.model_dump()


def test_run_config_defaults_to_settings_ceiling():
    assert RunConfig().max_llm_calls > 0


def test_run_config_rejects_unbounded_ceiling():
    with pytest.raises(ValidationError):
        RunConfig(max_llm_calls=sys.maxsize)


def test_run_config_allows_disabled_ceiling():
    assert RunConfig(max_llm_calls=0).max_llm_calls == 0


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("CORDAGE_MAX_LLM_CALLS", "7")
    monkeypatch.setenv("CORDAGE_LOG_LEVEL", "DEBUG")

    settings = CordageSettings()

    assert settings.max_llm_calls == 7
    assert settings.log_level == "DEBUG"
