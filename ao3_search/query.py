from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional
from urllib.parse import quote

from .extractor import ResultExtractor
from .interfaces import PageFetcher, QueryValue, WorkExtractor
from .models import Work
from .values import (
    ArchiveWarning,
    Category,
    CompletionStatus,
    CrossoverStatus,
    DateRange,
    Flag,
    MultiSelect,
    MultiString,
    NumericRange,
    Rating,
    SortBy,
    SortDirection,
    TextValue,
)

from logging import getLogger

logger = getLogger(__name__)

BASE_AO3_SEARCH_URL = "https://archiveofourown.org/works/search"

# (wire key, 属性名, describe() のラベル)。この順で出力する
_FIELDS: tuple[tuple[str, str, Optional[str]], ...] = (
    ("query", "any_field", None),
    ("title", "title", "title"),
    ("authors", "authors", "author"),
    ("revised_at", "date", "date"),
    ("complete", "completion_status", "completion_status"),
    ("crossover", "crossover_status", "crossover"),
    ("single_chapter", "is_single_chapter", "is single chapter"),
    ("word_count", "word_count", "word count"),
    ("fandom_names", "fandoms", "fandoms"),
    ("rating_ids", "rating", "rating"),
    ("archive_warning_ids", "archive_warnings", "archive warnings"),
    ("category_ids", "categories", "categories"),
    ("character_names", "characters", "characters"),
    ("relationship_name", "relationships", "relationships"),
    ("freeform_names", "additional_tags", "additional tags"),
    ("hits", "hits", "hits"),
    ("kudos_count", "kudos", "kudos"),
    # AO3側のパラメータ名がこのスペル
    ("commets_count", "comments", "comments"),
    ("bookmarks_count", "bookmarks", "bookmarks"),
)

# ソートは is_present に関係なく必ず送る
_SORT_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("sort_column", "sort_by", "Sort by"),
    ("sort_direction", "sort_direction", "Sort direction"),
)


def _pair(key: str, value: str, *, array: bool = False) -> str:
    suffix = "[]" if array else ""
    return f"work_search[{key}]{suffix}={quote(value, safe='')}"


def _pairs(key: str, value: QueryValue) -> list[str]:
    rendered = value.render()
    if isinstance(rendered, str):
        return [_pair(key, rendered)]
    return [_pair(key, v, array=True) for v in rendered]


@dataclass(frozen=True)
class QueryBuilder:
    """
    AO3 の作品検索条件。

    イミュータブル。setter は更新済みのコピーを返すのでチェーンして使う:

        q = QueryBuilder().set_title("x").only_completed().set_rating(Rating.MATURE)
        works = await q.execute(fetcher)

    setter は失敗しない（between(21, 13) のような値もそのまま送る）。
    """

    # 全フィールド検索
    any_field: TextValue = TextValue()
    title: TextValue = TextValue()
    authors: MultiString = MultiString()
    # 最終更新日（更新がなければ投稿日）
    date: DateRange = DateRange()
    completion_status: CompletionStatus = CompletionStatus.IGNORE
    crossover_status: CrossoverStatus = CrossoverStatus.IGNORE
    is_single_chapter: Flag = Flag()
    word_count: NumericRange = NumericRange()
    fandoms: MultiString = MultiString()
    rating: Rating = Rating.NONE
    archive_warnings: MultiSelect[ArchiveWarning] = field(default_factory=MultiSelect)
    categories: MultiSelect[Category] = field(default_factory=MultiSelect)
    characters: MultiString = MultiString()
    relationships: MultiString = MultiString()
    additional_tags: MultiString = MultiString()
    hits: NumericRange = NumericRange()
    kudos: NumericRange = NumericRange()
    comments: NumericRange = NumericRange()
    bookmarks: NumericRange = NumericRange()
    sort_by: SortBy = SortBy.BEST_MATCH
    sort_direction: SortDirection = SortDirection.DESCENDING

    def set_query(self, text: str) -> "QueryBuilder":
        return replace(self, any_field=TextValue(text))

    def set_title(self, title: str) -> "QueryBuilder":
        return replace(self, title=TextValue(title))

    def set_authors(self, authors: Iterable[str]) -> "QueryBuilder":
        return replace(self, authors=MultiString(tuple(authors)))

    def push_author(self, author: str) -> "QueryBuilder":
        return replace(self, authors=self.authors.appended(author))

    def set_date_range(self, date: DateRange) -> "QueryBuilder":
        return replace(self, date=date)

    def only_completed(self) -> "QueryBuilder":
        return replace(self, completion_status=CompletionStatus.ONLY_COMPLETED)

    def only_incomplete(self) -> "QueryBuilder":
        return replace(self, completion_status=CompletionStatus.ONLY_INCOMPLETE)

    def ignore_completion_status(self) -> "QueryBuilder":
        return replace(self, completion_status=CompletionStatus.IGNORE)

    def only_crossover(self) -> "QueryBuilder":
        return replace(self, crossover_status=CrossoverStatus.ONLY_CROSSOVER)

    def only_non_crossover(self) -> "QueryBuilder":
        return replace(self, crossover_status=CrossoverStatus.ONLY_NON_CROSSOVER)

    def ignore_crossover_status(self) -> "QueryBuilder":
        return replace(self, crossover_status=CrossoverStatus.IGNORE)

    def single_chapter(self, is_single_chapter: bool) -> "QueryBuilder":
        return replace(self, is_single_chapter=Flag(is_single_chapter))

    def set_word_count(self, word_count: NumericRange) -> "QueryBuilder":
        return replace(self, word_count=word_count)

    def set_fandoms(self, fandoms: Iterable[str]) -> "QueryBuilder":
        return replace(self, fandoms=MultiString(tuple(fandoms)))

    def push_fandom(self, fandom: str) -> "QueryBuilder":
        return replace(self, fandoms=self.fandoms.appended(fandom))

    def set_rating(self, rating: Rating) -> "QueryBuilder":
        return replace(self, rating=rating)

    def set_archive_warnings(self, warnings: Iterable[ArchiveWarning]) -> "QueryBuilder":
        return replace(self, archive_warnings=MultiSelect(tuple(warnings)))

    def add_archive_warning(self, warning: ArchiveWarning) -> "QueryBuilder":
        return replace(self, archive_warnings=self.archive_warnings.appended(warning))

    def set_categories(self, categories: Iterable[Category]) -> "QueryBuilder":
        return replace(self, categories=MultiSelect(tuple(categories)))

    def push_category(self, category: Category) -> "QueryBuilder":
        return replace(self, categories=self.categories.appended(category))

    def set_characters(self, characters: Iterable[str]) -> "QueryBuilder":
        return replace(self, characters=MultiString(tuple(characters)))

    def push_character(self, character: str) -> "QueryBuilder":
        return replace(self, characters=self.characters.appended(character))

    def set_relationships(self, relationships: Iterable[str]) -> "QueryBuilder":
        return replace(self, relationships=MultiString(tuple(relationships)))

    def push_relationship(self, relationship: str) -> "QueryBuilder":
        return replace(self, relationships=self.relationships.appended(relationship))

    def set_additional_tags(self, tags: Iterable[str]) -> "QueryBuilder":
        return replace(self, additional_tags=MultiString(tuple(tags)))

    def push_additional_tag(self, tag: str) -> "QueryBuilder":
        return replace(self, additional_tags=self.additional_tags.appended(tag))

    def set_hits(self, hits: NumericRange) -> "QueryBuilder":
        return replace(self, hits=hits)

    def set_kudos(self, kudos: NumericRange) -> "QueryBuilder":
        return replace(self, kudos=kudos)

    def set_comments(self, comments: NumericRange) -> "QueryBuilder":
        return replace(self, comments=comments)

    def set_bookmarks(self, bookmarks: NumericRange) -> "QueryBuilder":
        return replace(self, bookmarks=bookmarks)

    def set_sort_by(self, sort_by: SortBy) -> "QueryBuilder":
        return replace(self, sort_by=sort_by)

    def set_sort_direction(self, sort_direction: SortDirection) -> "QueryBuilder":
        return replace(self, sort_direction=sort_direction)

    def render_query_string(self) -> str:
        parts: list[str] = []
        for key, attr, _ in _FIELDS:
            value: QueryValue = getattr(self, attr)
            if not value.is_present():
                continue
            parts.extend(_pairs(key, value))
        for key, attr, _ in _SORT_FIELDS:
            parts.extend(_pairs(key, getattr(self, attr)))
        return "&".join(parts)

    def url(self, base_url: str = BASE_AO3_SEARCH_URL) -> str:
        return f"{base_url}?{self.render_query_string()}"

    def describe(self) -> str:
        lines = ["Query:"]
        for _, attr, label in _FIELDS:
            value = getattr(self, attr)
            if label is None or not value.is_present():
                continue
            lines.append(f"\t{label}: {value}")
        for _, attr, label in _SORT_FIELDS:
            lines.append(f"\t{label}: {getattr(self, attr)}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.describe()

    async def execute(
        self, fetcher: PageFetcher, extractor: Optional[WorkExtractor] = None
    ) -> list[Work]:
        """
        検索を1回投げて結果ページを Work に変換する。
        通信エラーはそのまま投げる（リトライしない）。
        """
        page = await fetcher.fetch(self.url())
        works = (extractor or ResultExtractor()).extract(page.html)
        logger.info(f"{len(works)} works: {page.final_url}")
        return list(works)

    async def simple_search(
        self,
        text: str,
        fetcher: PageFetcher,
        extractor: Optional[WorkExtractor] = None,
    ) -> list[Work]:
        return await self.set_query(text).execute(fetcher, extractor)
