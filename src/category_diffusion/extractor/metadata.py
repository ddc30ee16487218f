"""Chunked retrieval of per-file descriptions and categories."""

import logging
from collections.abc import Sequence

from category_diffusion.errors import WikiAPIError
from category_diffusion.extractor.description import extract_description
from category_diffusion.models import FileRecord, ProgressCallback
from category_diffusion.utils.titles import CATEGORY_PREFIX, strip_prefix
from category_diffusion.wiki.client import WikiClient, WikiPage

logger = logging.getLogger(__name__)


class MetadataFetcher:
    """Build a :class:`FileRecord` for every file the wiki returns.

    Titles are requested in chunks of ``chunk_size``, sequentially. When a
    chunk request fails, the files of that chunk are left out of the result.
    """

    def __init__(
        self,
        client: WikiClient,
        chunk_size: int = 50,
        progress: ProgressCallback | None = None,
    ):
        self.client = client
        self.chunk_size = chunk_size
        self._progress = progress
        self.failed_chunks: int = 0

    async def fetch_metadata(self, file_titles: Sequence[str]) -> dict[str, FileRecord]:
        """Return records keyed by file title, in input order where possible."""
        self.failed_chunks = 0
        chunks = [
            list(file_titles[i:i + self.chunk_size])
            for i in range(0, len(file_titles), self.chunk_size)
        ]

        records: dict[str, FileRecord] = {}
        for idx, chunk in enumerate(chunks, start=1):
            if self._progress:
                self._progress(f"Fetching file metadata: batch {idx}/{len(chunks)}…")
            try:
                pages = await self.client.query_pages(chunk)
            except WikiAPIError as e:
                logger.warning(
                    "Metadata chunk %d/%d (%d files) failed: %s", idx, len(chunks), len(chunk), e
                )
                self.failed_chunks += 1
                continue

            by_title = {page.title: page for page in pages}
            # Requested order first; titles the server normalized come after
            for title in chunk:
                page = by_title.pop(title, None)
                if page is not None:
                    records[title] = _to_record(page)
            for page in by_title.values():
                records[page.title] = _to_record(page)

        return records


def _to_record(page: WikiPage) -> FileRecord:
    return FileRecord(
        title=page.title,
        description=extract_description(page.content),
        categories=[strip_prefix(c, CATEGORY_PREFIX) for c in page.categories],
    )
