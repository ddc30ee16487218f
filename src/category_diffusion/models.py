"""Data models shared by the pipeline stages."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Receives human-readable status lines while a stage runs
ProgressCallback = Callable[[str], None]


class RunStatus(str, Enum):
    """Lifecycle state of a pipeline run."""

    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class FileRecord(BaseModel):
    """Metadata gathered for a single file."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    categories: list[str] = Field(default_factory=list)  # prefix stripped, server order


class CacheEntry(BaseModel):
    """Persisted snapshot of a finished run."""

    model_config = ConfigDict(populate_by_name=True)

    vocabulary: list[str] = Field(default_factory=list, alias="subcategories")
    records: dict[str, FileRecord] = Field(default_factory=dict, alias="fileMetadata")
    suggestions: dict[str, list[str]] = Field(default_factory=dict)


@dataclass
class PipelineRun:
    """Progress record for one analysis of one category.

    Every stage reads and writes this object; a new run starts from a fresh
    (cleared) state.
    """

    category: str
    status: RunStatus = RunStatus.IDLE
    vocabulary: list[str] = field(default_factory=list)
    records: dict[str, FileRecord] = field(default_factory=dict)
    suggestions: dict[str, list[str]] = field(default_factory=dict)
    status_message: str = ""
    from_cache: bool = False
    file_count: int = 0
    failed_expansions: int = 0
    failed_chunks: int = 0
    failed_batches: int = 0
    wiki_requests: int = 0
    llm_calls: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    def begin(self) -> None:
        """Clear results of any previous run and enter the running state."""
        self.vocabulary = []
        self.records = {}
        self.suggestions = {}
        self.status_message = ""
        self.from_cache = False
        self.file_count = 0
        self.failed_expansions = 0
        self.failed_chunks = 0
        self.failed_batches = 0
        self.wiki_requests = 0
        self.llm_calls = 0
        self.started_at = time.monotonic()
        self.finished_at = 0.0
        self.status = RunStatus.RUNNING

    def finish(self, message: str) -> None:
        self.status = RunStatus.DONE
        self.status_message = message
        self.finished_at = time.monotonic()

    def fail(self, message: str) -> None:
        self.status = RunStatus.ERROR
        self.status_message = message
        self.finished_at = time.monotonic()

    def restore(self, entry: CacheEntry) -> None:
        """Adopt a cached result and jump straight to done."""
        self.vocabulary = list(entry.vocabulary)
        self.records = dict(entry.records)
        self.suggestions = {k: list(v) for k, v in entry.suggestions.items()}
        self.file_count = len(self.suggestions)
        self.from_cache = True
        self.status = RunStatus.DONE
        self.status_message = "Loaded cached suggestions."

    def to_cache_entry(self) -> CacheEntry:
        return CacheEntry(
            vocabulary=self.vocabulary,
            records=self.records,
            suggestions=self.suggestions,
        )

    @property
    def duration(self) -> float:
        if self.started_at and self.finished_at:
            return self.finished_at - self.started_at
        return 0.0
