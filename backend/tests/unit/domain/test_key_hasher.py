"""
Unit tests for the cache key hasher.
"""

import hashlib

import pytest

from pagecache.domain.cache.exceptions import (
    MissingKeyException,
    UnknownKeyHashException,
)
from pagecache.domain.cache.key_hasher import KeyHasher
from pagecache.domain.cache.value_objects import CacheConfig


class TestKeyHasher:
    """Test KeyHasher."""

    def test_hash_is_deterministic(self):
        hasher = KeyHasher("sha1", 2)
        assert hasher.hash("greeting") == hasher.hash("greeting")
        assert hasher.hash("greeting") != hasher.hash("greeting2")

    def test_keys_are_not_digested_by_default(self):
        assert KeyHasher().hash("greeting") == "greeting"
        assert CacheConfig().key_hash is None

    def test_opt_in_digest(self):
        hasher = KeyHasher("sha1")
        assert hasher.hash("greeting") == hashlib.sha1(b"greeting").hexdigest()

    def test_interlace_fans_out_leading_characters(self):
        hasher = KeyHasher(None, 2)
        assert hasher.hash("abcdef") == "a/b/cdef"

    @pytest.mark.parametrize("interlace", [1, 2, 3])
    @pytest.mark.parametrize("key", ["greeting", "homepage-en", "abcd"])
    def test_removing_interlace_gives_back_key(self, interlace, key):
        hasher = KeyHasher(CacheConfig().key_hash, interlace)
        hashed = hasher.hash(key)
        assert hashed.count("/") == interlace
        assert hashed.replace("/", "") == key

    def test_interlace_applies_after_opt_in_digest(self):
        hasher = KeyHasher("sha1", 3)
        digest = hashlib.sha1(b"page").hexdigest()
        assert hasher.hash("page") == hasher.interlace(digest)

    def test_short_key_is_not_interlaced(self):
        hasher = KeyHasher(None, 4)
        assert hasher.hash("abcd") == "abcd"
        assert hasher.hash("abc") == "abc"

    def test_zero_interlace_is_identity(self):
        hasher = KeyHasher(None, 0)
        assert hasher.hash("plain-key") == "plain-key"

    def test_empty_key_raises(self):
        hasher = KeyHasher()
        with pytest.raises(MissingKeyException) as exc_info:
            hasher.hash("")
        assert exc_info.value.error_code == "CACHE_MISSING_KEY"

    def test_unknown_algorithm_raises(self):
        with pytest.raises(UnknownKeyHashException):
            KeyHasher("not-a-real-hash")

    def test_negative_interlace_rejected(self):
        with pytest.raises(ValueError):
            KeyHasher("sha1", -1)

    def test_shake_digest_has_fixed_length(self):
        hasher = KeyHasher("shake_128")
        assert len(hasher.hash("greeting")) == 40

    def test_path_prefixes_namespace(self):
        hasher = KeyHasher(None, 0)
        assert hasher.path("key", "demo") == "demo/key"
        assert hasher.path("key", "/a/b/") == "a/b/key"
        assert hasher.path("key") == "key"
