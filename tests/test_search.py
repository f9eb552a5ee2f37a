import pytest

from knowledge_search.retrieval.search import (
    SearchEngine,
    extract_snippet,
    subsequence_similarity,
)


@pytest.fixture()
def engine() -> SearchEngine:
    return SearchEngine()


def test_exact_title_match(engine, doc_factory) -> None:
    doc = doc_factory(
        title="SQL Injection",
        page_name="sqli",
        url="https://example.com/sqli",
        content="how sql injection works",
    )
    [result] = engine.search([doc], "sql injection")
    assert result.match_type == "exact_title"
    assert result.score >= 100
    # 100 exact title + 2 content + 5 short title
    assert result.score == 107


def test_content_only_match_with_short_title_boost(engine, doc_factory) -> None:
    doc = doc_factory(
        title="Web Security Guide",
        page_name="web security",
        url="https://example.com/web-security",
        content="injection basics. blind injection. error based injection.",
    )
    [result] = engine.search([doc], "injection")
    assert result.match_type == "content"
    assert result.score == 11


def test_long_title_gets_no_boost(engine, doc_factory) -> None:
    doc = doc_factory(
        title="A very long title that goes on and on for more than fifty characters",
        page_name="long",
        url="https://example.com/long",
        content="one injection here",
    )
    [result] = engine.search([doc], "injection")
    assert result.score == 2


def test_signals_are_additive_and_first_signal_sets_match_type(engine, doc_factory) -> None:
    doc = doc_factory(
        title="Other",
        page_name="xss payloads",
        url="https://example.com/xss",
        content="xss",
    )
    [result] = engine.search([doc], "XSS")
    # page name 30 + url 20 + content 2 + short title 5
    assert result.score == 57
    assert result.match_type == "page_name"


def test_fuzzy_fallback_for_misspelled_title(engine, doc_factory) -> None:
    doc = doc_factory(
        title="Kubernetes",
        page_name="k8s",
        url="https://example.com/k8s",
        content="container orchestration",
    )
    similarity = subsequence_similarity("kubernets", "kubernetes") + subsequence_similarity(
        "kubernets", "k8s"
    )
    assert similarity > 0.7

    [result] = engine.search([doc], "kubernets", fuzzy=True)
    assert result.match_type == "fuzzy"
    assert result.score == int(10 * similarity) + 5


def test_fuzzy_disabled_or_weak_similarity_excludes(engine, doc_factory) -> None:
    doc = doc_factory(title="Kubernetes", page_name="k8s", url="https://example.com/k8s")
    assert engine.search([doc], "kubernets", fuzzy=False) == []

    unrelated = doc_factory(title="Docker", page_name="docker", url="https://example.com/d")
    assert engine.search([unrelated], "kubernets") == []


def test_exact_title_outranks_content_only(engine, doc_factory) -> None:
    content_doc = doc_factory(
        title="Notes",
        page_name="notes",
        url="https://example.com/notes",
        content="ssrf " * 40,
    )
    title_doc = doc_factory(title="SSRF", page_name="a", url="https://example.com/a")
    results = engine.search([content_doc, title_doc], "ssrf")
    assert [r.title for r in results] == ["SSRF", "Notes"]


def test_results_sorted_descending_with_stable_ties(engine, doc_factory) -> None:
    docs = [
        doc_factory(title="First", url="https://example.com/1", page_name="1", content="token"),
        doc_factory(title="Token", url="https://example.com/2", page_name="2"),
        doc_factory(title="Second", url="https://example.com/3", page_name="3", content="token"),
    ]
    results = engine.search(docs, "token")
    assert [r.title for r in results] == ["Token", "First", "Second"]
    assert results == engine.search(docs, "token")


def test_blank_query_returns_nothing(engine, doc_factory) -> None:
    assert engine.search([doc_factory(content="anything")], "   ") == []


def test_query_is_trimmed_and_case_folded(engine, doc_factory) -> None:
    doc = doc_factory(title="Reverse Shells", page_name="rs", url="https://example.com/rs")
    [result] = engine.search([doc], "  REVERSE shells ")
    assert result.match_type == "exact_title"


def test_content_regex_metacharacters_are_literal(engine, doc_factory) -> None:
    doc = doc_factory(title="T", page_name="t", url="https://example.com/t", content="a.b a.b axb")
    [result] = engine.search([doc], "a.b")
    assert result.score == 2 * 2 + 5


def test_subsequence_similarity() -> None:
    assert subsequence_similarity("", "anything") == 0.0
    assert subsequence_similarity("shell", "reverse shell") == 1.0
    assert subsequence_similarity("abc", "xaxbxc") == 1.0
    assert subsequence_similarity("abcd", "abxx") == 0.5
    assert subsequence_similarity("zzz", "abc") == 0.0


def test_snippet_window_with_ellipses() -> None:
    content = "a" * 200 + "needle" + "b" * 200
    snippet = extract_snippet(content, "needle")
    assert snippet.text.startswith("...")
    assert snippet.text.endswith("...")
    start = snippet.highlight_start
    assert snippet.text[start : start + snippet.highlight_length] == "needle"
    assert start == 200 - 125 + 3


def test_snippet_at_start_of_content() -> None:
    snippet = extract_snippet("needle in a haystack", "NEEDLE")
    assert snippet.text == "needle in a haystack"
    assert snippet.highlight_start == 0
    assert snippet.highlight_length == 6


def test_snippet_missing_term() -> None:
    snippet = extract_snippet("nothing relevant", "needle")
    assert snippet.text == ""
    assert snippet.highlight_start is None


@pytest.mark.parametrize("position", [0, 10, 74, 75, 76, 300, 594])
def test_snippet_highlight_stays_inside_text(position: int) -> None:
    content = ("x" * position + "term" + "y" * 600)[:600]
    snippet = extract_snippet(content, "term")
    assert snippet.highlight_start >= 0
    assert snippet.highlight_start + snippet.highlight_length <= len(snippet.text)
    start = snippet.highlight_start
    assert snippet.text[start : start + 4] == "term"


def test_search_result_carries_snippet(engine, doc_factory) -> None:
    doc = doc_factory(
        title="Guide", page_name="g", url="https://example.com/g", content="see the payload list"
    )
    [result] = engine.search([doc], "payload")
    assert result.snippet.text == "see the payload list"
    assert result.snippet.highlight_start == 8


def test_repeated_searches_return_identical_ordering(engine, doc_factory) -> None:
    docs = [
        doc_factory(url=f"https://example.com/{i}", title=f"Note {i}", content="shell " * (i % 3))
        for i in range(9)
    ]
    first = [(r.url, r.score) for r in engine.search(docs, "shell")]
    second = [(r.url, r.score) for r in engine.search(docs, "shell")]

    assert first == second
    # Equal scores keep index order
    assert [url for url, score in first if score == first[-1][1]] == [
        "https://example.com/1",
        "https://example.com/4",
        "https://example.com/7",
    ]
