import pytest

from kb_indexer.core.urls import (
    extract_valid_urls,
    get_clean_url,
    is_multi_url,
    is_valid_url,
    primary_url,
)


def test_extract_single_url():
    result = extract_valid_urls("https://a.com")
    assert result.urls == ["https://a.com"]
    assert result.original == "https://a.com"


def test_extract_composite_preserves_order():
    raw = "https://a.com and https://b.com"
    urls, original = extract_valid_urls(raw)
    assert urls == ["https://a.com", "https://b.com"]
    assert original == raw


def test_extract_drops_invalid_candidates():
    raw = "https://a.com/post and the official docs and https://b.com/docs"
    assert extract_valid_urls(raw).urls == ["https://a.com/post", "https://b.com/docs"]


def test_marker_without_valid_urls():
    result = extract_valid_urls("this and that")
    assert result.urls == []
    assert result.original == "this and that"


@pytest.mark.parametrize("raw", ["not a url", "", "example.com", "/relative/path"])
def test_extract_rejects_non_urls(raw):
    assert extract_valid_urls(raw).urls == []


def test_extract_trims_candidates():
    assert extract_valid_urls("  https://a.com  ").urls == ["https://a.com"]


@pytest.mark.parametrize(
    "candidate,expected",
    [
        ("https://example.com/article?id=1", True),
        ("http://localhost:3001/api", True),
        ("not a url", False),
        ("mailto:", False),
        (" https://example.com", False),
    ],
)
def test_is_valid_url(candidate, expected):
    assert is_valid_url(candidate) is expected


def test_get_clean_url_missing_input():
    assert get_clean_url(None) == ""


def test_get_clean_url_plain_string_is_trimmed():
    assert get_clean_url("  https://a.com/x ") == "https://a.com/x"


def test_get_clean_url_composite_returns_first_valid():
    assert get_clean_url("junk and https://b.com and https://c.com") == "https://b.com"


def test_get_clean_url_composite_without_valid_urls():
    assert get_clean_url("this and that") == "this and that"


def test_is_multi_url():
    assert is_multi_url("https://a.com and https://b.com")
    assert not is_multi_url("https://a.com")
    assert not is_multi_url(None)


def test_primary_url():
    assert primary_url("https://a.com and https://b.com") == "https://a.com"
    assert primary_url("nothing here") is None
    assert primary_url(None) is None
