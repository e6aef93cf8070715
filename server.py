from __future__ import annotations

import os
from datetime import date
from typing import Optional, List

import httpx
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ao3_search.extractor import ExtractionError, ExtractorConfig, ResultExtractor
from ao3_search.fetchers import BlockedPageError, FetchPolicy, HttpxPageFetcher
from ao3_search.interfaces import PageFetcher
from ao3_search.models import Work
from ao3_search.query import QueryBuilder
from ao3_search.values import (
    ArchiveWarning,
    Category,
    CompletionStatus,
    CrossoverStatus,
    DateRange,
    NumericRange,
    Period,
    RangeKind,
    Rating,
    SortBy,
    SortDirection,
)


# -----------------------
# Request / Response
# -----------------------


class RangeIn(BaseModel):
    kind: RangeKind = RangeKind.NONE
    low: int = Field(0, ge=0)
    high: int = Field(0, ge=0)

    def to_value(self) -> NumericRange:
        return NumericRange(self.kind, self.low, self.high)


class DateRangeIn(RangeIn):
    period: Period = Period.DAYS

    def to_value(self) -> DateRange:
        return DateRange(self.kind, self.low, self.high, self.period)


class SearchRequest(BaseModel):
    q: str = Field("", description="Any field")
    title: str = ""
    authors: List[str] = Field(default_factory=list)
    date: DateRangeIn = Field(default_factory=DateRangeIn)
    complete: CompletionStatus = CompletionStatus.IGNORE
    crossover: CrossoverStatus = CrossoverStatus.IGNORE
    single_chapter: bool = False
    word_count: RangeIn = Field(default_factory=RangeIn)
    fandoms: List[str] = Field(default_factory=list)
    rating: Rating = Field(default=Rating.NONE, description="AO3 rating id (0 = any)")
    archive_warnings: List[ArchiveWarning] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    characters: List[str] = Field(default_factory=list)
    relationships: List[str] = Field(default_factory=list)
    additional_tags: List[str] = Field(default_factory=list)
    hits: RangeIn = Field(default_factory=RangeIn)
    kudos: RangeIn = Field(default_factory=RangeIn)
    comments: RangeIn = Field(default_factory=RangeIn)
    bookmarks: RangeIn = Field(default_factory=RangeIn)
    sort_by: SortBy = SortBy.BEST_MATCH
    sort_direction: SortDirection = SortDirection.DESCENDING

    def to_query(self) -> QueryBuilder:
        q = (
            QueryBuilder()
            .set_query(self.q)
            .set_title(self.title)
            .set_authors(self.authors)
            .set_date_range(self.date.to_value())
            .single_chapter(self.single_chapter)
            .set_word_count(self.word_count.to_value())
            .set_fandoms(self.fandoms)
            .set_rating(self.rating)
            .set_archive_warnings(self.archive_warnings)
            .set_categories(self.categories)
            .set_characters(self.characters)
            .set_relationships(self.relationships)
            .set_additional_tags(self.additional_tags)
            .set_hits(self.hits.to_value())
            .set_kudos(self.kudos.to_value())
            .set_comments(self.comments.to_value())
            .set_bookmarks(self.bookmarks.to_value())
            .set_sort_by(self.sort_by)
            .set_sort_direction(self.sort_direction)
        )
        if self.complete is CompletionStatus.ONLY_COMPLETED:
            q = q.only_completed()
        elif self.complete is CompletionStatus.ONLY_INCOMPLETE:
            q = q.only_incomplete()
        if self.crossover is CrossoverStatus.ONLY_CROSSOVER:
            q = q.only_crossover()
        elif self.crossover is CrossoverStatus.ONLY_NON_CROSSOVER:
            q = q.only_non_crossover()
        return q


class WorkOut(BaseModel):
    id: str
    url: str
    title: str
    authors: List[str]
    date: date
    is_complete: bool
    is_crossover: bool
    word_count: int
    fandoms: List[str]
    rating: Optional[int] = None
    summary: Optional[str] = None

    @classmethod
    def from_work(cls, w: Work) -> "WorkOut":
        return cls(
            id=w.id,
            url=w.url,
            title=w.title,
            authors=list(w.authors),
            date=w.date,
            is_complete=w.is_complete,
            is_crossover=w.is_crossover,
            word_count=w.word_count,
            fandoms=list(w.fandoms),
            rating=w.rating.value if w.rating is not None else None,
            summary=w.summary,
        )


class SearchResponse(BaseModel):
    query_string: str
    works: List[WorkOut]


# -----------------------
# App + Lifespan
# -----------------------

app = FastAPI(title="ao3-search-server")

# shared singletons
_http_client: httpx.AsyncClient | None = None
_fetcher: PageFetcher | None = None
_extractor: ResultExtractor | None = None


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


@app.on_event("startup")
async def startup() -> None:
    global _http_client, _fetcher, _extractor

    _http_client = httpx.AsyncClient()
    _fetcher = HttpxPageFetcher(
        _http_client,
        policy=FetchPolicy(timeout_s=_env_float("FETCH_TIMEOUT_S", 20.0)),
    )
    _extractor = ResultExtractor(
        ExtractorConfig(
            skip_invalid_records=_env_bool("SKIP_INVALID_RECORDS", False),
        )
    )


@app.on_event("shutdown")
async def shutdown() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


@app.post("/search", response_model=SearchResponse)
async def search(req: SearchRequest) -> SearchResponse:
    """
    POST /search
    body: { "q": "...", "fandoms": [...], "rating": 10, ... }
    response: works[]
    """
    assert _fetcher is not None
    assert _extractor is not None

    query = req.to_query()
    try:
        works = await query.execute(_fetcher, _extractor)
    except BlockedPageError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except (ExtractionError, httpx.HTTPError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    return SearchResponse(
        query_string=query.render_query_string(),
        works=[WorkOut.from_work(w) for w in works],
    )
