from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Tuple, TypeVar

from .interfaces import QueryValue


class Period(str, Enum):
    YEARS = "years"
    WEEKS = "weeks"
    MONTHS = "months"
    DAYS = "days"
    HOURS = "hours"

    def __str__(self) -> str:
        return self.value


class RangeKind(str, Enum):
    NONE = "none"
    EXACTLY = "exactly"
    MORE_THAN = "more_than"
    LESS_THAN = "less_than"
    BETWEEN = "between"


@dataclass(frozen=True)
class NumericRange:
    """
    word count / hits / kudos などの数値レンジ。
    between(lo, hi) は lo <= hi を検証しない（そのまま送る）。
    """

    kind: RangeKind = RangeKind.NONE
    low: int = 0
    high: int = 0

    @classmethod
    def none(cls) -> "NumericRange":
        return cls()

    @classmethod
    def exactly(cls, n: int) -> "NumericRange":
        return cls(RangeKind.EXACTLY, n)

    @classmethod
    def more_than(cls, n: int) -> "NumericRange":
        return cls(RangeKind.MORE_THAN, n)

    @classmethod
    def less_than(cls, n: int) -> "NumericRange":
        return cls(RangeKind.LESS_THAN, n)

    @classmethod
    def between(cls, low: int, high: int) -> "NumericRange":
        return cls(RangeKind.BETWEEN, low, high)

    def render(self) -> str:
        if self.kind is RangeKind.EXACTLY:
            return f"{self.low}"
        if self.kind is RangeKind.MORE_THAN:
            return f"> {self.low}"
        if self.kind is RangeKind.LESS_THAN:
            return f"< {self.low}"
        if self.kind is RangeKind.BETWEEN:
            return f"{self.low}-{self.high}"
        return ""

    def is_present(self) -> bool:
        return self.kind is not RangeKind.NONE

    def __str__(self) -> str:
        if self.kind is RangeKind.EXACTLY:
            return f"Exactly {self.low}"
        if self.kind is RangeKind.MORE_THAN:
            return f"More than {self.low}"
        if self.kind is RangeKind.LESS_THAN:
            return f"Less than {self.low}"
        if self.kind is RangeKind.BETWEEN:
            return f"Between {self.low} and {self.high}"
        return "None"


@dataclass(frozen=True)
class DateRange:
    """
    revised_at 用の相対日付レンジ。

    AO3の例（今日を 2012-04-25 とする）:
      - "7 days ago"   -> 4/18 に投稿/更新
      - "< 7 days ago" -> 過去7日以内
      - "> 8 weeks ago"-> 8週より前
      - "13-21 months" -> 13〜21ヶ月前（"ago" は付かない）
    """

    kind: RangeKind = RangeKind.NONE
    low: int = 0
    high: int = 0
    period: Period = Period.DAYS

    @classmethod
    def none(cls) -> "DateRange":
        return cls()

    @classmethod
    def exactly(cls, n: int, period: Period) -> "DateRange":
        return cls(RangeKind.EXACTLY, n, period=period)

    @classmethod
    def more_than(cls, n: int, period: Period) -> "DateRange":
        return cls(RangeKind.MORE_THAN, n, period=period)

    @classmethod
    def less_than(cls, n: int, period: Period) -> "DateRange":
        return cls(RangeKind.LESS_THAN, n, period=period)

    @classmethod
    def between(cls, low: int, high: int, period: Period) -> "DateRange":
        return cls(RangeKind.BETWEEN, low, high, period)

    def render(self) -> str:
        p = self.period.value
        if self.kind is RangeKind.EXACTLY:
            return f"{self.low} {p} ago"
        if self.kind is RangeKind.MORE_THAN:
            return f"> {self.low} {p} ago"
        if self.kind is RangeKind.LESS_THAN:
            return f"< {self.low} {p} ago"
        if self.kind is RangeKind.BETWEEN:
            return f"{self.low}-{self.high} {p}"
        return ""

    def is_present(self) -> bool:
        return self.kind is not RangeKind.NONE

    def __str__(self) -> str:
        p = self.period.value
        if self.kind is RangeKind.EXACTLY:
            return f"Exactly {self.low} {p} ago"
        if self.kind is RangeKind.MORE_THAN:
            return f"More than {self.low} {p} ago"
        if self.kind is RangeKind.LESS_THAN:
            return f"Less than {self.low} {p} ago"
        if self.kind is RangeKind.BETWEEN:
            return f"Between {self.low} and {self.high} {p} ago"
        return "None"


@dataclass(frozen=True)
class TextValue:
    value: str = ""

    def render(self) -> str:
        return self.value

    def is_present(self) -> bool:
        return self.value != ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Flag:
    # チェックボックス。常に送る
    value: bool = False

    def render(self) -> str:
        return "1" if self.value else "0"

    def is_present(self) -> bool:
        return True

    def __str__(self) -> str:
        return str(self.value).lower()


class CompletionStatus(Enum):
    IGNORE = ""
    ONLY_COMPLETED = "T"
    ONLY_INCOMPLETE = "F"

    def render(self) -> str:
        return self.value

    def is_present(self) -> bool:
        return self is not CompletionStatus.IGNORE

    def __str__(self) -> str:
        return _COMPLETION_LABELS[self]


_COMPLETION_LABELS = {
    CompletionStatus.IGNORE: "Don't care",
    CompletionStatus.ONLY_COMPLETED: "Only allow completed",
    CompletionStatus.ONLY_INCOMPLETE: "Only allow incomplete",
}


class CrossoverStatus(Enum):
    IGNORE = ""
    ONLY_CROSSOVER = "T"
    ONLY_NON_CROSSOVER = "F"

    def render(self) -> str:
        return self.value

    def is_present(self) -> bool:
        return self is not CrossoverStatus.IGNORE

    def __str__(self) -> str:
        return _CROSSOVER_LABELS[self]


_CROSSOVER_LABELS = {
    CrossoverStatus.IGNORE: "Don't care",
    CrossoverStatus.ONLY_CROSSOVER: "Only allow crossovers",
    CrossoverStatus.ONLY_NON_CROSSOVER: "Only allow non crossovers",
}


# 以下の数値IDはAO3側のタグIDそのもの。変更するとリモートの検索条件が黙って変わる
class Rating(Enum):
    NONE = 0
    NOT_RATED = 9
    GENERAL = 10
    TEEN_AND_UP = 11
    MATURE = 12
    EXPLICIT = 13

    def render(self) -> str:
        if self is Rating.NONE:
            return ""
        return str(self.value)

    def is_present(self) -> bool:
        return self is not Rating.NONE

    def __str__(self) -> str:
        return _RATING_LABELS[self]


_RATING_LABELS = {
    Rating.NONE: "None",
    Rating.NOT_RATED: "Work is not rated",
    Rating.GENERAL: "For General Audiences",
    Rating.TEEN_AND_UP: "For Teens And Up",
    Rating.MATURE: "For Mature Audiences",
    Rating.EXPLICIT: "Work is Explicit",
}


class ArchiveWarning(Enum):
    CREATOR_CHOSE_NOT_TO_USE_ARCHIVE_WARNINGS = 14
    NO_ARCHIVE_WARNINGS_APPLY = 16
    GRAPHIC_DEPICTION_OF_VIOLENCE = 17
    MAJOR_CHARACTER_DEATH = 18
    RAPE_NON_CON = 19
    UNDERAGE = 20

    def render(self) -> str:
        return str(self.value)

    def is_present(self) -> bool:
        # 「指定なし」に当たる選択肢がないので常にTrue
        return True

    def __str__(self) -> str:
        return _WARNING_LABELS[self]


_WARNING_LABELS = {
    ArchiveWarning.CREATOR_CHOSE_NOT_TO_USE_ARCHIVE_WARNINGS: "Creator Chose Not To Use Archive Warnings",
    ArchiveWarning.NO_ARCHIVE_WARNINGS_APPLY: "No Archive Warnings Apply",
    ArchiveWarning.GRAPHIC_DEPICTION_OF_VIOLENCE: "Graphic Depiction Of Violence",
    ArchiveWarning.MAJOR_CHARACTER_DEATH: "Major Character Death",
    ArchiveWarning.RAPE_NON_CON: "Rape/Non-Con",
    ArchiveWarning.UNDERAGE: "Underage",
}


class Category(Enum):
    GEN = 21
    FM = 22
    MM = 23
    OTHER = 24
    FF = 116
    MULTI = 2246

    def render(self) -> str:
        return str(self.value)

    def is_present(self) -> bool:
        return True

    def __str__(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    Category.GEN: "Gen",
    Category.FM: "F/M",
    Category.MM: "M/M",
    Category.OTHER: "Other",
    Category.FF: "F/F",
    Category.MULTI: "Multi",
}


class SortBy(Enum):
    BEST_MATCH = "_score"
    CREATOR = "authors_to_sort_on"
    TITLE = "title_to_sort_on"
    DATE_POSTED = "created_at"
    DATE_UPDATED = "revised_at"
    WORD_COUNT = "word_count"
    HITS = "hits"
    KUDOS = "kudos_count"
    COMMENTS = "comments_count"
    BOOKMARKS = "bookmarks_count"

    def render(self) -> str:
        return self.value

    def is_present(self) -> bool:
        return True

    def __str__(self) -> str:
        return _SORT_LABELS[self]


_SORT_LABELS = {
    SortBy.BEST_MATCH: "Best Match",
    SortBy.CREATOR: "Creator",
    SortBy.TITLE: "Title",
    SortBy.DATE_POSTED: "Date Posted",
    SortBy.DATE_UPDATED: "Date Updated",
    SortBy.WORD_COUNT: "Word Count",
    SortBy.HITS: "Hits",
    SortBy.KUDOS: "Kudos",
    SortBy.COMMENTS: "Comments",
    SortBy.BOOKMARKS: "Bookmarks",
}


class SortDirection(Enum):
    DESCENDING = "desc"
    ASCENDING = "asc"

    def render(self) -> str:
        return self.value

    def is_present(self) -> bool:
        return True

    def __str__(self) -> str:
        if self is SortDirection.ASCENDING:
            return "Ascending order"
        return "Descending order"


@dataclass(frozen=True)
class MultiString:
    """カンマ区切りで1パラメータにまとめる文字列リスト（authors, fandom_names など）"""

    values: Tuple[str, ...] = ()

    def render(self) -> str:
        return ",".join(self.values)

    def is_present(self) -> bool:
        return len(self.values) > 0

    def appended(self, value: str) -> "MultiString":
        return MultiString(self.values + (value,))

    def __str__(self) -> str:
        return f"[ {', '.join(self.values)} ]"


T = TypeVar("T", bound=QueryValue)


@dataclass(frozen=True)
class MultiSelect(Generic[T]):
    """
    コード値の複数選択。`key[]=code` を要素ごとに繰り返して送るので
    render は文字列のリストを返す。
    """

    values: Tuple[T, ...] = ()

    def render(self) -> list[str]:
        out: list[str] = []
        for v in self.values:
            rendered = v.render()
            if not isinstance(rendered, str):
                raise TypeError(f"nested multi-value is not supported: {v!r}")
            out.append(rendered)
        return out

    def is_present(self) -> bool:
        return len(self.values) > 0

    def appended(self, value: T) -> "MultiSelect[T]":
        return MultiSelect(self.values + (value,))

    def __str__(self) -> str:
        return f"[ {', '.join(str(v) for v in self.values)} ]"
