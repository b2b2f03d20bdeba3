from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from summify_search.domain.models import ChapterWithBook, Query


@runtime_checkable
class ChapterRepositoryPort(Protocol):
    """Read access to chapters joined with their books.

    Failures raise ``StorageError``; there is no fallback for a dead store.
    """

    def find_text_candidates(self, query: Query, limit: int = 200) -> list[ChapterWithBook]:
        """Chapters whose title, text, book title or author contains the query (ILIKE)."""
        ...

    def get_chapters(self, chapter_ids: Sequence[int]) -> list[ChapterWithBook]:
        """Chapters by id; unknown ids are skipped."""
        ...
