from summify_search.domain.models import BookRecord, ChapterRecord, ChapterWithBook, Query
from summify_search.domain.services.lexical_matching import (
    AUTHOR_DISTANCE,
    BOOK_TITLE_DISTANCE,
    TEXT_AND_TITLE_WORD_DISTANCE,
    TEXT_MATCH_DISTANCE,
    TITLE_MATCH_DISTANCE,
    classify,
    match_chapters,
)
from summify_search.domain.services.relevance_scoring import score


def make(
    chapter_id: int,
    title: str,
    text: str = "",
    book_title: str = "Some Book",
    author: str = "Some Author",
    book_id: int = 1,
) -> ChapterWithBook:
    return ChapterWithBook(
        chapter=ChapterRecord(id=chapter_id, book_id=book_id, title=title, text=text),
        book=BookRecord(id=book_id, title=book_title, author=author),
    )


class TestClassify:
    def test_priority_order(self) -> None:
        q = Query.parse("team leadership")
        assert classify(q, make(1, "Team Leadership Basics")) == TITLE_MATCH_DISTANCE
        assert (
            classify(q, make(2, "Building a Team", text="notes on team leadership"))
            == TEXT_AND_TITLE_WORD_DISTANCE
        )
        assert classify(q, make(3, "Chapter 3", text="about team leadership")) == TEXT_MATCH_DISTANCE
        assert classify(q, make(4, "Intro", book_title="Team Leadership 101")) == BOOK_TITLE_DISTANCE
        assert classify(q, make(5, "Intro", author="Team Leadership Inc")) == AUTHOR_DISTANCE

    def test_no_match_is_none(self) -> None:
        assert classify(Query.parse("leadership"), make(1, "Cooking", text="pasta")) is None

    def test_case_insensitive(self) -> None:
        assert classify(Query.parse("LEADERSHIP"), make(1, "level 5 leadership")) == 0.1

    def test_exact_title_scores_in_top_band(self) -> None:
        q = Query.parse("Level 5 Leadership")
        d = classify(q, make(1, "Level 5 Leadership"))
        assert d == TITLE_MATCH_DISTANCE
        assert 75 <= score(d) <= 85


class TestMatchChapters:
    def candidates(self) -> list[ChapterWithBook]:
        return [
            make(10, "Intro", text="leadership " * 3),
            make(11, "Leadership", text="short"),
            make(12, "Other", text="a much longer text about leadership and more words"),
            make(13, "Unrelated", text="nothing here"),
            make(14, "Leadership Again", text="longer body text here"),
        ]

    def test_drops_non_matching_candidates(self) -> None:
        hits = match_chapters(Query.parse("leadership"), self.candidates())
        assert 13 not in {h.chapter_id for h in hits}

    def test_ordering_by_distance_then_longer_text(self) -> None:
        hits = match_chapters(Query.parse("leadership"), self.candidates())
        assert [h.chapter_id for h in hits] == [14, 11, 12, 10]
        assert [h.metric for h in hits] == [0.1, 0.1, 0.4, 0.4]

    def test_idempotent(self) -> None:
        q = Query.parse("leadership")
        first = match_chapters(q, self.candidates())
        second = match_chapters(q, list(reversed(self.candidates())))
        assert first == second

    def test_limit_and_duplicates(self) -> None:
        cands = self.candidates() + [make(11, "Leadership", text="short")]
        hits = match_chapters(Query.parse("leadership"), cands, limit=2)
        assert [h.chapter_id for h in hits] == [14, 11]
