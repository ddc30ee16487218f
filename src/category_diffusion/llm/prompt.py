"""Prompt construction for one batch of files."""

from collections.abc import Sequence

from category_diffusion.models import FileRecord
from category_diffusion.utils.titles import CATEGORY_PREFIX, FILE_PREFIX, strip_prefix

NO_DESCRIPTION = "(no description)"
NO_CATEGORIES = "(none)"


def build_prompt(
    category: str,
    vocabulary: Sequence[str],
    files: Sequence[FileRecord],
    max_depth: int,
) -> str:
    """Build the instruction text for a batch.

    The full vocabulary is always included, one name per line, so every
    batch sees the same set of allowed answers.
    """
    category_name = strip_prefix(category, CATEGORY_PREFIX)

    file_sections = []
    for i, record in enumerate(files, start=1):
        name = strip_prefix(record.title, FILE_PREFIX)
        description = record.description or NO_DESCRIPTION
        current = ", ".join(record.categories) if record.categories else NO_CATEGORIES
        file_sections.append(
            f"{i}. Name: {name}\n"
            f"   Description: {description}\n"
            f"   Current categories: {current}"
        )

    return (
        f'You are helping categorize Wikimedia Commons files. The category "{category_name}" '
        "needs to be diffused: its files should be moved into more specific subcategories.\n\n"
        f"Here are ALL available subcategories (within {max_depth} levels of depth):\n"
        + "\n".join(vocabulary)
        + "\n\n"
        "For each file below, pick 3-5 categories from the list above that best fit the file. "
        "Only use categories from the list above. "
        "If none of the listed categories fit well, return an empty list for that file.\n\n"
        "Output ONLY a single valid JSON object and nothing else, in this exact format "
        '(use full file names with the "File:" prefix as keys):\n'
        '{"File:filename1.jpg": ["Cat1", "Cat2"], "File:filename2.jpg": ["Cat3"]}\n\n'
        "Files:\n\n" + "\n\n".join(file_sections)
    )
