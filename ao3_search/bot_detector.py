from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional

from .models import PageFetchResult


@dataclass(frozen=True)
class BotDetectionConfig:
    # AO3は混雑時 429 + "Retry later" を返す
    treat_429_as_blocked: bool = True


class HttpBotDetector:
    """
    検索結果の代わりに返ってくるチャレンジ/制限ページをルールベースで判定。
    ここで弾かないと extractor が「role=article がない」という分かりにくいエラーになる。
    """

    _PATTERNS = [
        r"retry later",
        r"checking your browser",
        r"just a moment",
        r"cdn-cgi/challenge",
        r"enable javascript and cookies",
        r"verify you are human",
        r"too many requests",
    ]

    def __init__(self, cfg: BotDetectionConfig = BotDetectionConfig()) -> None:
        self._cfg = cfg
        self._rx = re.compile("|".join(self._PATTERNS), re.IGNORECASE)

    def detect(self, page: PageFetchResult) -> Optional[str]:
        """
        ブロックっぽい場合、理由文字列を返す。問題なければ None。
        """
        sc = page.status_code
        if sc == 429 and self._cfg.treat_429_as_blocked:
            return "rate_limited_429"

        if sc == 200 and self._rx.search(page.html or ""):
            # 通常の結果ページにも "Retry later" は出ないが、結果があれば信用する
            if 'role="article"' in page.html:
                return None
            return "challenge_page_200"

        return None
