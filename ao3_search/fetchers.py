from __future__ import annotations
from dataclasses import dataclass

import httpx

from .bot_detector import BotDetectionConfig, HttpBotDetector
from .interfaces import PageFetcher
from .models import PageFetchResult

from logging import getLogger

logger = getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124"


class BlockedPageError(RuntimeError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"blocked ({reason}): {url}")
        self.url = url
        self.reason = reason


@dataclass(frozen=True)
class FetchPolicy:
    timeout_s: float = 20.0
    user_agent: str = DEFAULT_USER_AGENT
    bot_detection: BotDetectionConfig = BotDetectionConfig()


class HttpxPageFetcher(PageFetcher):
    """
    GET 1回だけ。リトライもキャッシュもしない（必要なら client 側の transport で）。
    """

    def __init__(
        self, client: httpx.AsyncClient, policy: FetchPolicy = FetchPolicy()
    ) -> None:
        self._client = client
        self._policy = policy
        self._bot = HttpBotDetector(policy.bot_detection)

    async def fetch(self, url: str) -> PageFetchResult:
        logger.info(f"GET {url}")
        r = await self._client.get(
            url,
            follow_redirects=True,
            timeout=self._policy.timeout_s,
            headers={
                "User-Agent": self._policy.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            },
        )

        page = PageFetchResult(
            requested_url=url,
            final_url=str(r.url),
            status_code=r.status_code,
            content_type=r.headers.get("content-type"),
            html=r.text,
        )

        reason = self._bot.detect(page)
        if reason is not None:
            logger.warning(f"bot detect ({reason}): {url}")
            raise BlockedPageError(url, reason)

        # HTTPエラーは httpx の例外をそのまま上に流す
        r.raise_for_status()
        return page
