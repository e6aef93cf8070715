from datetime import date

import pytest

from ao3_search.extractor import (
    CouldNotFindError,
    ExtractorConfig,
    MalformedFieldError,
    ResultExtractor,
)
from ao3_search.values import Rating


def blurb(
    raw_id="work_12345678",
    href="/works/12345678",
    title="Example Work",
    authors=("Author One", "Author Two"),
    fandoms=("Fandom A", "Fandom B"),
    updated="21 Jan 2024",
    words="12,345",
    complete="complete-yes",
    rating="rating-teen",
    summary="<p>A <em>short</em> summary.</p>",
):
    author_links = ", ".join(
        f'<a rel="author" href="/users/{a}/pseuds/{a}">{a}</a>' for a in authors
    )
    fandom_links = "".join(
        f'<a class="tag" href="/tags/{f}/works">{f}</a>' for f in fandoms
    )
    summary_html = (
        f'<blockquote class="userstuff summary">{summary}</blockquote>' if summary else ""
    )
    return f"""
    <li id="{raw_id}" class="work blurb group" role="article">
      <div class="header module">
        <h4 class="heading"><a href="{href}">{title}</a></h4>
        <h5 class="fandoms heading">
          <span class="landmark">by</span>
          <span><span>{author_links}</span></span>
          <span class="landmark">Fandoms:</span>
          {fandom_links}
        </h5>
        <ul class="required-tags">
          <li><a class="help symbol question modal"><span class="{rating} rating" title="Teen"><span class="text">Teen</span></span></a></li>
          <li><a class="help symbol question modal"><span class="{complete} iswip" title="Complete Work"><span class="text">Complete Work</span></span></a></li>
        </ul>
        <p class="datetime">{updated}</p>
      </div>
      {summary_html}
      <dl class="stats">
        <dt class="words">Words:</dt><dd class="words">{words}</dd>
      </dl>
    </li>
    """


def page(*records):
    return f"""
    <html><head><title>Works | Archive of Our Own</title></head>
    <body><main><ol class="work index group">{''.join(records)}</ol></main></body></html>
    """


def test_extracts_single_record():
    works = ResultExtractor().extract(page(blurb()))
    assert len(works) == 1
    w = works[0]
    assert w.id == "12345678"
    assert w.url == "https://archiveofourown.org/works/12345678"
    assert w.title == "Example Work"
    assert w.authors == ("Author One", "Author Two")
    assert w.fandoms == ("Fandom A", "Fandom B")
    assert w.date == date(2024, 1, 21)
    assert w.word_count == 12345
    assert w.is_complete is True
    assert w.is_crossover is True
    assert w.rating is Rating.TEEN_AND_UP
    assert w.summary == "A *short* summary."


def test_records_in_document_order():
    html = page(
        blurb(raw_id="work_2", href="/works/2", title="Second", fandoms=("F",)),
        blurb(raw_id="work_1", href="/works/1", title="First", complete="complete-no"),
    )
    works = ResultExtractor().extract(html)
    assert [w.title for w in works] == ["Second", "First"]
    assert works[0].is_crossover is False
    assert works[1].is_complete is False


def test_optional_fields_may_be_absent():
    w = ResultExtractor().extract(page(blurb(rating="", summary="", authors=())))[0]
    assert w.rating is None
    assert w.summary is None
    assert w.authors == ()


def test_missing_article_marker_is_an_error():
    html = "<html><body><p>No results found.</p></body></html>"
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert 'role="article"' in str(ei.value)


def test_missing_title_link_is_an_error():
    html = page(blurb(href="/works/99999999"))
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert "title" in ei.value.landmark
    assert "/works/12345678" in ei.value.landmark


def test_missing_heading_container_is_an_error():
    html = page(blurb()).replace('class="fandoms heading"', 'class="fandoms"')
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert str(ei.value) == 'Could not find: class="fandoms heading"'


def test_malformed_id_is_distinct_from_missing():
    with pytest.raises(MalformedFieldError) as ei:
        ResultExtractor().extract(page(blurb(raw_id="work_abc")))
    assert ei.value.field == "id"
    assert not isinstance(ei.value, CouldNotFindError)


def test_malformed_word_count():
    with pytest.raises(MalformedFieldError):
        ResultExtractor().extract(page(blurb(words="lots")))


def test_malformed_date():
    with pytest.raises(MalformedFieldError) as ei:
        ResultExtractor().extract(page(blurb(updated="yesterday")))
    assert ei.value.raw == "yesterday"


def test_skip_invalid_records_keeps_the_rest():
    html = page(
        blurb(raw_id="work_1", href="/works/1", title="Good"),
        blurb(raw_id="work_2", href="/works/404", title="Broken"),
    )
    with pytest.raises(CouldNotFindError):
        ResultExtractor().extract(html)

    works = ResultExtractor(ExtractorConfig(skip_invalid_records=True)).extract(html)
    assert [w.id for w in works] == ["1"]


def test_non_ascii_digits_in_word_count_are_malformed():
    with pytest.raises(MalformedFieldError) as ei:
        ResultExtractor().extract(page(blurb(words="1²")))
    assert ei.value.field == "word count"


def test_non_ascii_digits_in_word_count_do_not_abort_the_page():
    html = page(
        blurb(raw_id="work_1", href="/works/1"),
        blurb(raw_id="work_2", href="/works/2", words="١٢"),
    )
    works = ResultExtractor(ExtractorConfig(skip_invalid_records=True)).extract(html)
    assert [w.id for w in works] == ["1"]


def test_non_ascii_digits_in_id_are_malformed():
    with pytest.raises(MalformedFieldError) as ei:
        ResultExtractor().extract(page(blurb(raw_id="work_²", href="/works/²")))
    assert ei.value.field == "id"


def test_date_month_names_do_not_depend_on_locale():
    w = ResultExtractor().extract(page(blurb(updated="05 Dec 2019")))[0]
    assert w.date == date(2019, 12, 5)
    with pytest.raises(MalformedFieldError):
        ResultExtractor().extract(page(blurb(updated="31 Feb 2019")))


def test_missing_id_attribute():
    html = page(blurb()).replace('id="work_12345678" ', "")
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert ei.value.landmark == "id"


def test_missing_date():
    html = page(blurb()).replace('<p class="datetime">21 Jan 2024</p>', "")
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert ei.value.landmark == 'p class="datetime"'


def test_missing_word_count():
    html = page(blurb()).replace('<dd class="words">12,345</dd>', "")
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert ei.value.landmark == 'dd class="words"'


def test_missing_required_tags_block():
    html = page(blurb()).replace('class="required-tags"', 'class="tags"')
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(html)
    assert ei.value.landmark == 'class="required-tags"'


def test_missing_completion_marker():
    with pytest.raises(CouldNotFindError) as ei:
        ResultExtractor().extract(page(blurb(complete="status-unknown")))
    assert ei.value.landmark == 'class="complete-yes" / class="complete-no"'
