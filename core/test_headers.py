"""Tests for header containers, filtering and finalization."""

from core.headers import HeaderMap, filter_headers, finalize_headers, without_prefix


class TestHeaderMap:
    def test_names_are_case_insensitive(self):
        headers = HeaderMap([("Content-Type", "text/html")])
        assert headers.get("content-type") == "text/html"
        assert "CONTENT-TYPE" in headers

    def test_repeated_headers_keep_every_value(self):
        headers = HeaderMap([("Set-Cookie", "a=1"), ("set-cookie", "b=2")])
        assert headers.get_all("set-cookie") == ["a=1", "b=2"]
        assert headers.items() == [("set-cookie", "a=1"), ("set-cookie", "b=2")]

    def test_set_overwrites(self):
        headers = HeaderMap([("x-a", "1"), ("x-a", "2")])
        headers.set("X-A", "3")
        assert headers.get_all("x-a") == ["3"]

    def test_remove_and_default(self):
        headers = HeaderMap([("x-a", "1")])
        headers.remove("X-A")
        assert headers.get("x-a") is None
        assert headers.get("x-a", "fallback") == "fallback"
        assert len(headers) == 0

    def test_raw_encodes_latin1(self):
        headers = HeaderMap([("Location", "/x")])
        assert headers.raw() == [(b"location", b"/x")]

    def test_raw_falls_back_to_utf8(self):
        headers = HeaderMap([("Content-Disposition", 'attachment; filename="文件.txt"')])
        assert headers.raw() == [
            (b"content-disposition", 'attachment; filename="文件.txt"'.encode("utf-8"))
        ]

    def test_raw_keeps_latin1_bytes(self):
        headers = HeaderMap([("X-Name", "caf\xe9")])
        assert headers.raw() == [(b"x-name", b"caf\xe9")]


class TestFilterHeaders:
    def test_strips_edge_prefixed_headers(self):
        headers = HeaderMap(
            [
                ("cf-connecting-ip", "1.2.3.4"),
                ("CF-Ray", "abc"),
                ("user-agent", "test-agent"),
                ("accept", "text/html"),
            ]
        )

        result = filter_headers(headers, without_prefix("cf-"))

        assert "cf-connecting-ip" not in result
        assert "cf-ray" not in result
        assert result.get("user-agent") == "test-agent"
        assert result.get("accept") == "text/html"

    def test_original_is_untouched(self):
        headers = HeaderMap([("cf-ray", "abc")])
        filter_headers(headers, without_prefix())
        assert headers.get("cf-ray") == "abc"

    def test_prefix_only_matches_start_of_name(self):
        headers = HeaderMap([("x-cf-thing", "1")])
        assert "x-cf-thing" in filter_headers(headers, without_prefix("cf-"))


class TestFinalizeHeaders:
    def test_sets_cache_and_cors(self):
        headers = finalize_headers(HeaderMap())
        assert headers.get("cache-control") == "no-store"
        assert headers.get("access-control-allow-origin") == "*"
        assert headers.get("access-control-allow-methods") == "GET, POST, PUT, DELETE"
        assert headers.get("access-control-allow-headers") == "*"

    def test_overwrites_prior_values(self):
        headers = HeaderMap(
            [("Cache-Control", "max-age=3600"), ("Access-Control-Allow-Origin", "https://a.com")]
        )
        finalize_headers(headers)
        assert headers.get_all("cache-control") == ["no-store"]
        assert headers.get_all("access-control-allow-origin") == ["*"]

    def test_idempotent(self):
        once = finalize_headers(HeaderMap([("x-a", "1")]))
        twice = finalize_headers(once.copy())
        assert once == twice
