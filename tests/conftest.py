"""Shared fixtures."""

import io

import pytest
from rich.console import Console

from category_diffusion.config import AppConfig, CacheConfig, LLMConfig, WikiConfig
from fakes import API_URL, PROXY_URL


@pytest.fixture
def wiki_config() -> WikiConfig:
    return WikiConfig(api_url=API_URL, delay_seconds=0.0)


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(proxy_url=PROXY_URL)


@pytest.fixture
def cache_config(tmp_path) -> CacheConfig:
    return CacheConfig(directory=tmp_path / "cache")


@pytest.fixture
def app_config(wiki_config, llm_config, cache_config) -> AppConfig:
    return AppConfig(
        category="Category:Test",
        wiki=wiki_config,
        llm=llm_config,
        cache=cache_config,
    )


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)
