import asyncio
import httpx

from ao3_search.extractor import ExtractorConfig, ResultExtractor
from ao3_search.fetchers import FetchPolicy, HttpxPageFetcher
from ao3_search.query import QueryBuilder
from ao3_search.values import (
    Category,
    DateRange,
    NumericRange,
    Period,
    Rating,
    SortBy,
)

from logging import getLogger, basicConfig, INFO, WARNING

basicConfig(level=WARNING, format="[%(levelname)s](%(name)s): %(message)s", force=True)
logger = getLogger("ao3_search.main")
getLogger("ao3_search").setLevel(INFO)


async def main():
    query = (
        QueryBuilder()
        .set_query("coffee shop")
        .push_fandom("Haikyuu!!")
        .only_completed()
        .set_rating(Rating.GENERAL)
        .push_category(Category.GEN)
        .set_word_count(NumericRange.between(1000, 20000))
        .set_date_range(DateRange.less_than(6, Period.MONTHS))
        .set_sort_by(SortBy.KUDOS)
    )
    print(query)

    async with httpx.AsyncClient() as client:
        fetcher = HttpxPageFetcher(client, policy=FetchPolicy(timeout_s=30.0))
        extractor = ResultExtractor(ExtractorConfig(skip_invalid_records=True))
        works = await query.execute(fetcher, extractor)

    for w in works:
        print(w.id, w.title, ", ".join(w.authors), w.word_count, w.date.isoformat())


if __name__ == "__main__":
    asyncio.run(main())
