from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from .values import Rating


@dataclass(frozen=True)
class Work:
    id: str
    url: str
    title: str
    authors: Tuple[str, ...]
    # 最終更新日（更新がなければ投稿日）
    date: date
    is_complete: bool
    is_crossover: bool
    word_count: int
    fandoms: Tuple[str, ...]
    rating: Optional[Rating] = None
    summary: Optional[str] = None


@dataclass(frozen=True)
class PageFetchResult:
    requested_url: str
    final_url: str
    status_code: int
    content_type: Optional[str]
    html: str
