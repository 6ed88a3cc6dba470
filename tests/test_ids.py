"""Unit tests for core/ids.py and the identifiers built on it."""

from blog.service import make_blog_id
from core.ids import DEFAULT_ID_SIZE, URL_SAFE_ALPHABET, new_id
from media.uploads import new_object_key


def test_default_size() -> None:
    assert len(new_id()) == DEFAULT_ID_SIZE


def test_alphabet_is_url_safe() -> None:
    assert all(c in URL_SAFE_ALPHABET for c in new_id(200))
    assert len(set(URL_SAFE_ALPHABET)) == 64


def test_blog_slug_and_object_key_share_the_alphabet() -> None:
    slug_suffix = make_blog_id("Hello, World!")[len("HelloWorld"):]
    key_stem = new_object_key().split("-")[0]
    assert len(slug_suffix) == DEFAULT_ID_SIZE
    assert all(c in URL_SAFE_ALPHABET for c in slug_suffix + key_stem)
