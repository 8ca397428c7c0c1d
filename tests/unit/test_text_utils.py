"""문자열/URL 유틸 단위 테스트"""

import pytest

from partsearch.utils.text import (
    caption_tokens,
    clean_identifier,
    html_to_text,
    normalize_key,
    part_prefix,
)
from partsearch.utils.url import absolute_href, build_url, is_absolute_http_url, join_url


class TestIdentifiers:
    def test_clean_identifier(self):
        assert clean_identifier("  GRM188#  ") == "GRM188#"
        assert clean_identifier("XAL4020152ME#", strip_hash=True) == "XAL4020152ME"
        assert clean_identifier(None) == ""

    def test_normalize_key(self):
        assert normalize_key(" grm188 ") == "GRM188"

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("GRM0115C1C100GE01", "GRM"),
            ("grm-0115", "GRM"),
            ("  l.q w18", "LQW"),
            ("GR", "GR"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_part_prefix(self, raw, expected):
        assert part_prefix(raw) == expected


class TestCaptions:
    def test_tokens_ignore_order_and_case(self):
        assert caption_tokens("DC Rated Voltage") == caption_tokens("rated voltage dc")
        assert caption_tokens("Rdc(max.)") == frozenset({"rdc", "max"})

    def test_html_to_text(self):
        assert html_to_text("C0G<br/>CH") == "C0G, CH"
        assert html_to_text("<span>10</span> <b>pF</b>") == "10 pF"
        assert html_to_text("  plain   text ") == "plain text"
        assert html_to_text(None) == ""


class TestUrls:
    def test_is_absolute(self):
        assert is_absolute_http_url("https://www.murata.com")
        assert not is_absolute_http_url("/webapi/PsdispRest")
        assert not is_absolute_http_url("")

    def test_join_url(self):
        assert join_url("https://www.murata.com/", "/webapi/PsdispRest") == "https://www.murata.com/webapi/PsdispRest"
        assert join_url("https://x.com", "https://y.com/a") == "https://y.com/a"

    def test_build_url_keeps_repeated_params_and_separators(self):
        url = build_url("https://www.murata.com", "/webapi/PsdispRest", [("scon", "a;1|2"), ("scon", "b;x"), ("partno", "")])
        assert url == "https://www.murata.com/webapi/PsdispRest?scon=a;1|2&scon=b;x&partno="

    def test_absolute_href(self):
        assert absolute_href("https://product.tdk.com", "/a.pdf") == "https://product.tdk.com/a.pdf"
        assert absolute_href("https://product.tdk.com", "") == ""
