from __future__ import annotations
from typing import TYPE_CHECKING, Protocol, Sequence, Union

if TYPE_CHECKING:
    from .models import PageFetchResult, Work


class QueryValue(Protocol):
    """
    検索フォームの1フィールド分の値。
    builder は is_present() が False のものは render() を呼ばない。
    """

    def render(self) -> Union[str, list[str]]: ...

    def is_present(self) -> bool: ...


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> "PageFetchResult": ...


class WorkExtractor(Protocol):
    def extract(self, html: str) -> Sequence["Work"]: ...
