from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterator, Optional

from bs4 import BeautifulSoup, Tag
from markdownify import markdownify as md

from .interfaces import WorkExtractor
from .models import Work
from .values import Rating

from logging import getLogger

logger = getLogger(__name__)

AO3_BASE_URL = "https://archiveofourown.org"


class ExtractionError(RuntimeError):
    pass


class CouldNotFindError(ExtractionError):
    def __init__(self, landmark: str) -> None:
        super().__init__(f"Could not find: {landmark}")
        self.landmark = landmark


class MalformedFieldError(ExtractionError):
    def __init__(self, field: str, raw: str) -> None:
        super().__init__(f"Malformed {field}: {raw!r}")
        self.field = field
        self.raw = raw


# -----------------------
# Tree walk
# -----------------------
# AO3のマークアップ前提はこのブロックと下のランドマーク定数に閉じ込める。
# ネストの深さは仮定しない（子孫を全部なめる）。

Predicate = Callable[[Tag], bool]


def _walk(root: Tag) -> Iterator[Tag]:
    # descendants は文書順の深さ優先
    for node in root.descendants:
        if isinstance(node, Tag):
            yield node


def find_first(root: Tag, predicate: Predicate) -> Optional[Tag]:
    for node in _walk(root):
        if predicate(node):
            return node
    return None


def find_all(root: Tag, predicate: Predicate) -> list[Tag]:
    return [node for node in _walk(root) if predicate(node)]


def attr_equals(name: str, value: str) -> Predicate:
    def _match(tag: Tag) -> bool:
        actual = tag.get(name)
        # class / rel は bs4 がリストで返す
        if isinstance(actual, list):
            return value in actual
        return actual == value

    return _match


def has_classes(*names: str) -> Predicate:
    def _match(tag: Tag) -> bool:
        classes = tag.get("class") or []
        return all(n in classes for n in names)

    return _match


def tag_with_class(tag_name: str, class_name: str) -> Predicate:
    has = has_classes(class_name)
    return lambda tag: tag.name == tag_name and has(tag)


def _text(tag: Tag) -> str:
    return " ".join(tag.get_text(" ").split())


# -----------------------
# Landmarks
# -----------------------

RECORD_MARKER = ("role", "article")
WORK_ID_PREFIX = "work_"
HEADING_CLASSES = ("fandoms", "heading")
AUTHOR_REL = "author"
FANDOM_TAG_CLASS = "tag"
# "21 Jan 2024"。strptime の %b はロケール依存なので月名は自前で引く
DATE_RE = re.compile(r"([0-9]{1,2}) ([A-Za-z]{3}) ([0-9]{4})")
_MONTHS = {
    m: i
    for i, m in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DIGITS_RE = re.compile(r"[0-9]+")

_RATING_CLASSES = {
    "rating-notrated": Rating.NOT_RATED,
    "rating-general-audience": Rating.GENERAL,
    "rating-teen": Rating.TEEN_AND_UP,
    "rating-mature": Rating.MATURE,
    "rating-explicit": Rating.EXPLICIT,
}


def _rating_of(tag: Tag) -> Optional[Rating]:
    for c in tag.get("class") or []:
        r = _RATING_CLASSES.get(c)
        if r is not None:
            return r
    return None


def normalize_markdown(text: str) -> str:
    text = text.replace("\r\n", "\n")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


@dataclass(frozen=True)
class ExtractorConfig:
    # True: 壊れたレコードはログに出してスキップ / False: 最初のエラーをそのまま投げる
    skip_invalid_records: bool = False
    base_url: str = AO3_BASE_URL


class ResultExtractor(WorkExtractor):
    """
    検索結果ページ -> Work のリスト。

    1レコードの抽出は all-or-nothing。ページ全体を諦めるか
    そのレコードだけ飛ばすかは ExtractorConfig で決める。
    """

    def __init__(self, config: ExtractorConfig = ExtractorConfig()) -> None:
        self._cfg = config

    def extract(self, html: str) -> list[Work]:
        soup = BeautifulSoup(html, "html.parser")
        name, value = RECORD_MARKER
        nodes = find_all(soup, attr_equals(name, value))
        if not nodes:
            # 0件ではなく「ページ構造が想定と違う」
            raise CouldNotFindError(f'{name}="{value}"')

        works: list[Work] = []
        for node in nodes:
            try:
                works.append(self.extract_one(node))
            except ExtractionError as e:
                if not self._cfg.skip_invalid_records:
                    raise
                logger.warning(f"skip record {node.get('id')}: {e}")

        logger.info(f"extracted {len(works)}/{len(nodes)} works")
        return works

    def extract_one(self, node: Tag) -> Work:
        work_id = self._work_id(node)

        href = f"/works/{work_id}"
        title_link = find_first(node, attr_equals("href", href))
        if title_link is None:
            raise CouldNotFindError(f'title (a[href="{href}"])')

        heading = find_first(node, has_classes(*HEADING_CLASSES))
        if heading is None:
            raise CouldNotFindError(f'class="{" ".join(HEADING_CLASSES)}"')
        authors = tuple(_text(a) for a in find_all(heading, attr_equals("rel", AUTHOR_REL)))
        fandoms = tuple(_text(t) for t in find_all(heading, has_classes(FANDOM_TAG_CLASS)))

        return Work(
            id=work_id,
            url=f"{self._cfg.base_url}{href}",
            title=_text(title_link),
            authors=authors,
            date=self._date(node),
            is_complete=self._is_complete(node),
            # 一覧にはクロスオーバーの明示フラグがないので複数ファンダムで判定
            is_crossover=len(fandoms) > 1,
            word_count=self._word_count(node),
            fandoms=fandoms,
            rating=self._rating(node),
            summary=self._summary(node),
        )

    @staticmethod
    def _work_id(node: Tag) -> str:
        raw = node.get("id")
        if not raw:
            raise CouldNotFindError("id")
        if not raw.startswith(WORK_ID_PREFIX):
            raise MalformedFieldError("id", raw)
        work_id = raw[len(WORK_ID_PREFIX) :]
        if not _DIGITS_RE.fullmatch(work_id):
            raise MalformedFieldError("id", raw)
        return work_id

    @staticmethod
    def _date(node: Tag) -> date:
        tag = find_first(node, tag_with_class("p", "datetime"))
        if tag is None:
            raise CouldNotFindError('p class="datetime"')
        raw = _text(tag)
        m = DATE_RE.fullmatch(raw)
        month = _MONTHS.get(m.group(2).lower()) if m else None
        if m is None or month is None:
            raise MalformedFieldError("date", raw)
        try:
            return date(int(m.group(3)), month, int(m.group(1)))
        except ValueError as e:
            raise MalformedFieldError("date", raw) from e

    @staticmethod
    def _word_count(node: Tag) -> int:
        tag = find_first(node, tag_with_class("dd", "words"))
        if tag is None:
            raise CouldNotFindError('dd class="words"')
        raw = _text(tag)
        digits = raw.replace(",", "")
        if not _DIGITS_RE.fullmatch(digits):
            raise MalformedFieldError("word count", raw)
        try:
            return int(digits)
        except ValueError as e:
            raise MalformedFieldError("word count", raw) from e

    @staticmethod
    def _is_complete(node: Tag) -> bool:
        required = find_first(node, has_classes("required-tags"))
        if required is None:
            raise CouldNotFindError('class="required-tags"')
        if find_first(required, has_classes("complete-yes")) is not None:
            return True
        if find_first(required, has_classes("complete-no")) is not None:
            return False
        raise CouldNotFindError('class="complete-yes" / class="complete-no"')

    @staticmethod
    def _rating(node: Tag) -> Optional[Rating]:
        tag = find_first(node, lambda t: _rating_of(t) is not None)
        return _rating_of(tag) if tag is not None else None

    @staticmethod
    def _summary(node: Tag) -> Optional[str]:
        tag = find_first(node, tag_with_class("blockquote", "summary"))
        if tag is None:
            return None
        return normalize_markdown(md(tag.decode_contents(), heading_style="ATX")) or None
