import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "backend" / "src"))

from adapters import create_embedder, list_embedder_providers, list_llm_providers
from adapters.embedding import OllamaEmbedder
from adapters.llm import OpenAILLM
from errors import ConfigurationError
from pipelines import create_embedder_from_config, create_llm_from_config


def test_registered_providers() -> None:
    assert set(list_embedder_providers()) == {"openai", "ollama"}
    assert set(list_llm_providers()) == {"openai", "ollama"}


def test_unknown_provider_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="Unknown embedder provider"):
        create_embedder("nope", model="m")


def test_embedder_from_config_skips_empty_values() -> None:
    config = {
        "embedding": {
            "provider": "ollama",
            "model": "nomic-embed-text",
            "dimension": 768,
            "api_key": "",
        }
    }

    embedder = create_embedder_from_config(config)

    assert isinstance(embedder, OllamaEmbedder)
    assert embedder.dimension == 768
    assert "api_key" not in embedder.kwargs


def test_llm_from_config_defaults() -> None:
    llm = create_llm_from_config({"llm": {"api_key": "test-key"}})

    assert isinstance(llm, OpenAILLM)
    assert llm.model == "gpt-4o-mini"
    assert llm.temperature == 0.2
