from fastapi.testclient import TestClient

import server
from ao3_search.models import PageFetchResult

RESULTS = """
<li id="work_7" role="article">
  <a href="/works/7">Seven</a>
  <div class="fandoms heading"><a rel="author">someone</a><a class="tag">F</a></div>
  <ul class="required-tags"><span class="complete-yes"></span></ul>
  <p class="datetime">07 Jul 2017</p>
  <dd class="words">7,000</dd>
</li>
"""


class FakeFetcher:
    def __init__(self, html: str) -> None:
        self.html = html
        self.urls: list[str] = []

    async def fetch(self, url: str):
        self.urls.append(url)
        return PageFetchResult(url, url, 200, "text/html", self.html)


def test_search_endpoint(monkeypatch):
    fake = FakeFetcher(RESULTS)
    with TestClient(server.app) as client:
        monkeypatch.setattr(server, "_fetcher", fake)
        r = client.post(
            "/search",
            json={
                "q": "seven",
                "complete": "T",
                "rating": 10,
                "categories": [116, 21],
                "kudos": {"kind": "more_than", "low": 7},
                "date": {"kind": "between", "low": 1, "high": 2, "period": "years"},
            },
        )

    assert r.status_code == 200
    body = r.json()
    qs = body["query_string"]
    assert "work_search[query]=seven" in qs
    assert "work_search[complete]=T" in qs
    assert "work_search[rating_ids]=10" in qs
    assert "work_search[category_ids][]=116&work_search[category_ids][]=21" in qs
    assert "work_search[kudos_count]=%3E%207" in qs
    assert "work_search[revised_at]=1-2%20years" in qs
    assert fake.urls[0].endswith(qs)

    [work] = body["works"]
    assert work["id"] == "7"
    assert work["word_count"] == 7000
    assert work["date"] == "2017-07-07"
    assert work["is_complete"] is True
    assert work["rating"] is None


def test_unparseable_page_is_bad_gateway(monkeypatch):
    with TestClient(server.app) as client:
        monkeypatch.setattr(server, "_fetcher", FakeFetcher("<html></html>"))
        r = client.post("/search", json={})
    assert r.status_code == 502
    assert "Could not find" in r.json()["detail"]
