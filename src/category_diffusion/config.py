"""Configuration management with Pydantic models."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from category_diffusion.utils.titles import normalize_category_title


class WikiConfig(BaseModel):
    """Configuration for the MediaWiki API client."""

    api_url: str = "https://commons.wikimedia.org/w/api.php"
    user_agent: str = "CategoryDiffusion/0.1 (category diffusion helper)"
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    page_size: int = Field(default=500, ge=1, le=500)  # cmlimit
    titles_per_query: int = Field(default=50, ge=1, le=50)  # API batch-title limit
    delay_seconds: float = Field(default=0.1, ge=0.0, le=60.0)


class CrawlConfig(BaseModel):
    """Bounds for the subcategory crawl and the file listing."""

    max_tree_depth: int = Field(default=5, ge=1, le=20)
    max_tree_nodes: int = Field(default=2000, ge=1)
    max_files_per_category: int = Field(default=200, ge=1)


class LLMConfig(BaseModel):
    """Configuration for the chat-completions proxy."""

    proxy_url: str = "https://publicai-proxy.alaexis.workers.dev"
    model: str = "aisingapore/Qwen-SEA-LION-v4-32B-IT"
    max_tokens: int = Field(default=2048, ge=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=120.0, ge=1.0, le=600.0)
    files_per_batch: int = Field(default=20, ge=1, le=200)
    api_key: str | None = None


class CacheConfig(BaseModel):
    """Configuration for persisted results."""

    enabled: bool = True
    directory: Path = Path("~/.cache/category-diffusion")
    prefix: str = "catdiffusion-"

    @property
    def resolved_directory(self) -> Path:
        return self.directory.expanduser()


class AppConfig(BaseModel):
    """Main application configuration."""

    category: str
    wiki: WikiConfig = Field(default_factory=WikiConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    use_api_edit: bool = False  # consumed by the edit-submission flow, not the analysis
    verbose: bool = False

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return normalize_category_title(value)

    @classmethod
    def from_toml(cls, path: Path, category: str | None = None) -> "AppConfig":
        """Load config from a TOML file, optionally overriding the category."""
        try:
            import tomllib  # type: ignore[import-not-found]
        except ModuleNotFoundError:
            import tomli as tomllib  # type: ignore[import-not-found]
        with open(path, "rb") as f:
            data = tomllib.load(f)
        if category is not None:
            data["category"] = category
        return cls.model_validate(data)

    def to_toml(self) -> str:
        """Serialize config to TOML format."""
        data = self.model_dump(mode="json", exclude_none=True)
        return _dict_to_toml(data)


def _toml_value(v: Any) -> str:
    """Format a Python value as a TOML literal."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, str):
        escaped = v.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(v, list):
        items = ", ".join(_toml_value(i) for i in v)
        return f"[{items}]"
    return f'"{v}"'


def _dict_to_toml(data: dict) -> str:
    """Convert a nested dict to TOML string (one level of tables)."""
    lines: list[str] = []
    # Scalars must precede the first table header
    for k, v in data.items():
        if not isinstance(v, dict):
            lines.append(f"{k} = {_toml_value(v)}")
    for k, v in data.items():
        if isinstance(v, dict):
            lines.append(f"\n[{k}]")
            for sk, sv in v.items():
                lines.append(f"{sk} = {_toml_value(sv)}")
    return "\n".join(lines) + "\n"
