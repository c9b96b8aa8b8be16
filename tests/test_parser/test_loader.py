"""Tests for specgen.parser.loader."""

from __future__ import annotations

import io
import json
import textwrap
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from specgen.cache import SpecCache
from specgen.exceptions import SpecLoadError
from specgen.models import CacheConfig
from specgen.parser.loader import _parse_content, load_spec

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

SPEC_URL = "https://example.com/openapi.json"


def _response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        request=httpx.Request("GET", SPEC_URL),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestLoadFromFile:
    def test_json_fixture(self) -> None:
        result = load_spec(str(FIXTURES_DIR / "blog.json"))
        assert result["info"]["title"] == "Blog API"

    def test_yaml_fixture(self) -> None:
        result = load_spec(str(FIXTURES_DIR / "social.yaml"))
        assert result["info"]["title"] == "Social Graph"
        assert "User" in result["components"]["schemas"]

    def test_yaml_without_extension(self, tmp_path: Path) -> None:
        spec_file = tmp_path / "openapi"
        spec_file.write_text(
            textwrap.dedent("""\
                openapi: "3.1.0"
                info:
                  title: No Extension
                  version: "1"
                paths: {}
            """),
            encoding="utf-8",
        )
        assert load_spec(str(spec_file))["info"]["title"] == "No Extension"

    def test_file_not_found(self) -> None:
        with pytest.raises(SpecLoadError, match="not found"):
            load_spec("/nonexistent/openapi.json")

    def test_empty_file(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yaml"
        empty.write_text("  \n", encoding="utf-8")
        with pytest.raises(SpecLoadError, match="empty"):
            load_spec(str(empty))

    def test_invalid_json_with_json_extension(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        with pytest.raises(SpecLoadError, match="Invalid JSON"):
            load_spec(str(bad))

    def test_top_level_array_rejected(self, tmp_path: Path) -> None:
        array_file = tmp_path / "array.json"
        array_file.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(SpecLoadError, match="must be a JSON/YAML object"):
            load_spec(str(array_file))


# ---------------------------------------------------------------------------
# stdin
# ---------------------------------------------------------------------------


class TestLoadFromStdin:
    def test_reads_json(self) -> None:
        with patch("specgen.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(json.dumps({"openapi": "3.1.0"}))
            result = load_spec("-")
        assert result == {"openapi": "3.1.0"}

    def test_empty_stdin(self) -> None:
        with patch("specgen.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("")
            with pytest.raises(SpecLoadError, match="No input"):
                load_spec("-")


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------


class TestLoadFromUrl:
    def test_fetches_json(self) -> None:
        response = _response(json={"openapi": "3.1.0"})
        with patch("specgen.parser.loader.httpx.get", return_value=response) as mock_get:
            result = load_spec(SPEC_URL)
        assert result == {"openapi": "3.1.0"}
        mock_get.assert_called_once()

    def test_http_error(self) -> None:
        with patch("specgen.parser.loader.httpx.get", return_value=_response(404, text="nope")):
            with pytest.raises(SpecLoadError, match="HTTP 404"):
                load_spec(SPEC_URL)

    def test_connection_error(self) -> None:
        error = httpx.ConnectError("refused", request=httpx.Request("GET", SPEC_URL))
        with patch("specgen.parser.loader.httpx.get", side_effect=error):
            with pytest.raises(SpecLoadError, match="Failed to fetch"):
                load_spec(SPEC_URL)

    def test_cache_is_filled_then_used(self, tmp_path: Path) -> None:
        cache = SpecCache(tmp_path, CacheConfig())
        try:
            response = _response(
                text='{"openapi": "3.1.0"}', headers={"content-type": "application/json"}
            )
            with patch("specgen.parser.loader.httpx.get", return_value=response) as mock_get:
                first = load_spec(SPEC_URL, cache)
                second = load_spec(SPEC_URL, cache)

            assert first == second == {"openapi": "3.1.0"}
            assert mock_get.call_count == 1
            assert cache.get(SPEC_URL)["content_type"] == "application/json"
        finally:
            cache.close()

    def test_undecodable_body_is_not_cached(self, tmp_path: Path) -> None:
        cache = SpecCache(tmp_path, CacheConfig())
        try:
            response = _response(text="- just\n- a list\n")
            with patch("specgen.parser.loader.httpx.get", return_value=response):
                with pytest.raises(SpecLoadError):
                    load_spec(SPEC_URL, cache)
            assert cache.get(SPEC_URL) is None
        finally:
            cache.close()


# ---------------------------------------------------------------------------
# _parse_content
# ---------------------------------------------------------------------------


class TestParseContent:
    def test_json_first(self) -> None:
        assert _parse_content('{"a": 1}') == {"a": 1}

    def test_yaml_fallback(self) -> None:
        assert _parse_content("a: 1\n") == {"a": 1}

    def test_neither_reports_both_errors(self) -> None:
        with pytest.raises(SpecLoadError) as exc_info:
            _parse_content("key: [unclosed")
        assert "JSON error" in exc_info.value.message
        assert "YAML error" in exc_info.value.message

    def test_empty_yaml_document(self) -> None:
        with pytest.raises(SpecLoadError, match="empty document"):
            _parse_content("# only a comment\n", hint="yaml")
