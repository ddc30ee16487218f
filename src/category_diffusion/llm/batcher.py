"""Batched model invocation and merging of validated suggestions."""

import logging
from collections.abc import Iterable, Mapping, Sequence

from category_diffusion.errors import LLMError, ResponseParseError
from category_diffusion.llm.client import LLMClient
from category_diffusion.llm.parser import parse_response
from category_diffusion.llm.prompt import build_prompt
from category_diffusion.models import FileRecord, ProgressCallback

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Ask the model for suggestions ``files_per_batch`` files at a time.

    Batches run strictly one after another. A batch whose call fails or whose
    reply cannot be parsed contributes nothing; the remaining batches still
    run.
    """

    def __init__(
        self,
        llm: LLMClient,
        category: str,
        files_per_batch: int = 20,
        max_depth: int = 5,
        progress: ProgressCallback | None = None,
    ):
        self.llm = llm
        self.category = category
        self.files_per_batch = files_per_batch
        self.max_depth = max_depth
        self._progress = progress
        self.batch_count: int = 0
        self.failed_batches: int = 0

    async def suggest(
        self,
        vocabulary: Sequence[str],
        records: Mapping[str, FileRecord],
        file_titles: Iterable[str] = (),
    ) -> dict[str, list[str]]:
        """Return suggestions for every record title and every title in ``file_titles``.

        ``file_titles`` is the full listing the records were fetched for;
        files missing from ``records`` are not sent to the model but still
        get an (empty) entry.
        """
        titles = list(records)
        batches = [
            titles[i:i + self.files_per_batch]
            for i in range(0, len(titles), self.files_per_batch)
        ]
        self.batch_count = len(batches)
        self.failed_batches = 0
        allowed = frozenset(vocabulary)

        suggestions: dict[str, list[str]] = {}
        for idx, batch in enumerate(batches, start=1):
            if self._progress:
                self._progress(f"LLM batch {idx}/{len(batches)} ({len(batch)} files)…")

            prompt = build_prompt(
                self.category,
                vocabulary,
                [records[title] for title in batch],
                self.max_depth,
            )
            try:
                reply = await self.llm.complete(prompt)
                batch_result = parse_response(reply, allowed)
            except (LLMError, ResponseParseError) as e:
                logger.warning("LLM batch %d/%d failed: %s", idx, len(batches), e)
                self.failed_batches += 1
                continue

            members = set(batch)
            for title, picks in batch_result.items():
                if title in members:
                    suggestions[title] = picks
                else:
                    logger.debug("Ignoring suggestion for file outside batch: %s", title)

        for title in [*titles, *file_titles]:
            suggestions.setdefault(title, [])
        return suggestions
