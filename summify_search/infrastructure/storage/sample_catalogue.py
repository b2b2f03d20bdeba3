"""A small catalogue of well-known business books for demos and local testing."""

from __future__ import annotations

from summify_search.domain.models import BookRecord, ChapterRecord
from summify_search.infrastructure.storage.sqlite_chapter_repository import (
    SQLiteChapterRepository,
)

SAMPLE_CATALOGUE: tuple[tuple[BookRecord, tuple[tuple[str, str], ...]], ...] = (
    (
        BookRecord(
            id=0,
            title="Good to Great",
            author="Jim Collins",
            cover_url="https://covers.openlibrary.org/b/id/8739161-M.jpg",
            isbn="9780066620992",
        ),
        (
            (
                "Level 5 Leadership",
                "Level 5 leaders are ambitious first and foremost for the cause, the "
                "organization and its mission, not themselves. They display a compelling "
                "modesty and an almost stoic resolve to do whatever it takes to make the "
                "company great, channeling ego needs into the larger goal of building a "
                "great company. This kind of leadership blends personal humility with "
                "intense professional will.",
            ),
            (
                "First Who, Then What",
                "The good-to-great leaders began the transformation by first getting the "
                "right people on the bus and the wrong people off the bus, and then figured "
                "out where to drive it. Comparison companies followed the "
                "genius-with-a-thousand-helpers model, where a single leader sets a vision "
                "and enlists capable helpers to execute it.",
            ),
            (
                "Confront the Brutal Facts",
                "All good-to-great companies began by confronting the brutal facts of their "
                "current reality. When you start with an honest effort to determine the "
                "truth, the right decisions often become self-evident. This means creating "
                "a culture where the truth is heard, while keeping unwavering faith that "
                "you will prevail in the end.",
            ),
        ),
    ),
    (
        BookRecord(
            id=0,
            title="The 7 Habits of Highly Effective People",
            author="Stephen R. Covey",
            cover_url="https://covers.openlibrary.org/b/id/8231262-M.jpg",
            isbn="9780743269513",
        ),
        (
            (
                "Be Proactive",
                "Proactive people recognize that they are responsible for their own "
                "choices. Instead of reacting to conditions, they act on values and focus "
                "their energy on their circle of influence. Personal leadership starts with "
                "taking the initiative rather than waiting for circumstances to change.",
            ),
            (
                "Begin with the End in Mind",
                "Start every project with a clear picture of the destination. Writing a "
                "personal mission statement turns values into direction and makes planning "
                "and decision making consistent with what matters most. This is the habit "
                "of personal leadership and vision.",
            ),
            (
                "Put First Things First",
                "Effective self-management means organizing and executing around priorities. "
                "Time spent on important but not urgent activities such as planning, "
                "relationship building and prevention drives long-term productivity and "
                "reduces the crises that consume a manager's week.",
            ),
        ),
    ),
    (
        BookRecord(
            id=0,
            title="Drive: The Surprising Truth About What Motivates Us",
            author="Daniel H. Pink",
            cover_url="https://covers.openlibrary.org/b/id/6836657-M.jpg",
            isbn="9781594484803",
        ),
        (
            (
                "Autonomy",
                "People want to direct their own lives. Autonomy over task, time, team and "
                "technique produces engagement rather than compliance. Management built on "
                "control works for routine work, but creative performance depends on "
                "self-direction and intrinsic motivation.",
            ),
            (
                "Mastery",
                "Mastery is the desire to get better at something that matters. It is a "
                "mindset and it demands effort and deliberate practice over many years. "
                "Flow experiences, where challenge meets skill, are the building blocks of "
                "growth and development.",
            ),
            (
                "Purpose",
                "Autonomous people working toward mastery perform at high levels, but those "
                "who do so in service of a larger objective achieve even more. Organizations "
                "that make purpose part of their culture and strategy attract motivated "
                "people, and leadership that explains the why earns commitment.",
            ),
        ),
    ),
)


def seed_sample_catalogue(repo: SQLiteChapterRepository) -> int:
    """Insert the sample books and chapters; no-op when books already exist.

    Returns the number of chapters inserted.
    """
    if repo.count_books() > 0:
        return 0
    inserted = 0
    for book, chapters in SAMPLE_CATALOGUE:
        book_id = repo.add_book(book)
        for number, (title, text) in enumerate(chapters, start=1):
            repo.add_chapter(
                ChapterRecord(id=0, book_id=book_id, title=title, text=text, chapter_number=number)
            )
            inserted += 1
    return inserted
