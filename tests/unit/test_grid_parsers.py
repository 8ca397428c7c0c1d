"""그리드 파서 단위 테스트 (JSON 헤더 / HTML 테이블 / 부품 목록)"""

from partsearch.crawlers.http_client import EMPTY_DOCUMENT
from partsearch.engine.rows import CanonicalRow
from partsearch.parsers.html_grid import HtmlTableGridParser, build_header_map
from partsearch.parsers.json_grid import JsonHeaderGridParser, header_caption
from partsearch.parsers.parts_list import PartsListParser
from tests.fakes import murata_grid


class TestJsonHeaderGrid:
    def test_rows_follow_header_order(self):
        doc = murata_grid([["GRM0115C1C100GE01#", "10pF", "C0G<br/>CH"]])
        rows = JsonHeaderGridParser().parse(doc)

        assert len(rows) == 1
        assert list(rows[0].keys()) == ["Part Number", "Capacitance", "Temperature characteristics"]
        assert rows[0]["Temperature characteristics"] == "C0G, CH"

    def test_missing_identity_and_duplicates_dropped(self):
        doc = murata_grid([
            ["GRM1", "1pF", "C0G"],
            ["", "2pF", "C0G"],
            ["grm1", "3pF", "X7R"],
            ["GRM2", None, "X7R"],
        ])
        rows = JsonHeaderGridParser().parse(doc)

        assert [r["Part Number"] for r in rows] == ["GRM1", "GRM2"]
        assert rows[0]["Capacitance"] == "1pF"
        assert "Capacitance" not in rows[1]

    def test_derived_fields_appended_last(self):
        doc = murata_grid([["GRM1#", "1pF", "C0G"]])
        parser = JsonHeaderGridParser(derive=lambda row, pn: {"mpn": pn.rstrip("#"), "url": ""})
        row = parser.parse(doc)[0]

        assert list(row.keys())[-1] == "mpn"
        assert row["mpn"] == "GRM1"
        assert "url" not in row

    def test_structure_mismatch_returns_empty(self):
        parser = JsonHeaderGridParser()
        assert parser.parse(EMPTY_DOCUMENT) == []
        assert parser.parse({"Result": {"header": "oops"}}) == []
        assert parser.parse({"Result": []}) == []

    def test_nested_section(self):
        doc = {"otherPsDispRest": murata_grid([["XAL4020-152ME", "1.5uH", ""]])}
        rows = JsonHeaderGridParser(("otherPsDispRest", "Result")).parse(doc)
        assert rows == [CanonicalRow({"Part Number": "XAL4020-152ME", "Capacitance": "1.5uH"})]

    def test_header_caption(self):
        assert header_caption("partnumber:Part Number:1:text") == "Part Number"
        assert header_caption("Plain") == "Plain"


TDK_HTML = """
<table>
  <tr><th>decor</th></tr>
  <tr><td>x</td><td>y</td><td>Part No.</td><td>Capacitance</td><td>Catalog</td><td>z</td><td>w</td></tr>
  <tr>
    <td><input type="checkbox"></td><td>icon</td>
    <td><a href="/en/search/productsearch?part_no=C1005X7R1C104K050BC">C1005X7R1C104K050BC</a></td>
    <td>  100 nF </td>
    <td><a href="/info/en/catalog/spec.html">html</a><a href="/info/en/catalog/datasheet/mlcc.pdf?ref=1">pdf</a></td>
    <td>-</td><td>-</td>
  </tr>
  <tr>
    <td></td><td></td><td>   </td><td>1 uF</td><td></td><td></td><td></td>
  </tr>
</table>
"""

TDK_COLUMNS = [
    {"column_order": 20, "column_name": "Part No."},
    {"column_order": 30, "column_name": "Capacitance"},
    {"column_order": 40, "column_name": "Catalog / Data Sheet"},
    {"column_order": "bad", "column_name": "ignored"},
]


class TestHtmlTableGrid:
    def test_parses_embedded_table(self):
        parser = HtmlTableGridParser("https://product.tdk.com")
        rows = parser.parse({"results": TDK_HTML, "columns": TDK_COLUMNS})

        assert len(rows) == 1
        row = rows[0]
        assert row["Part No."] == "C1005X7R1C104K050BC"
        assert row["Capacitance"] == "100 nF"
        assert row["Catalog / Data Sheet"] == "https://product.tdk.com/info/en/catalog/datasheet/mlcc.pdf?ref=1"
        assert row["url"] == "https://product.tdk.com/en/search/productsearch?part_no=C1005X7R1C104K050BC"
        assert list(row.keys())[-1] == "url"

    def test_decorative_rows_only(self):
        html = "<table><tr><td>h1</td></tr><tr><td>h2</td></tr></table>"
        assert HtmlTableGridParser("https://product.tdk.com").parse({"results": html, "columns": TDK_COLUMNS}) == []

    def test_footer_rows_skipped(self):
        parser = HtmlTableGridParser("https://product.tdk.com", footer_rows=1)
        footer = TDK_HTML.replace("</table>", "<tr><td></td><td></td><td>FOOTER</td><td></td><td></td><td></td><td></td></tr></table>")
        rows = parser.parse({"results": footer, "columns": TDK_COLUMNS})
        assert [r["Part No."] for r in rows] == ["C1005X7R1C104K050BC"]

    def test_missing_html(self):
        assert HtmlTableGridParser("https://product.tdk.com").parse({"columns": TDK_COLUMNS}) == []

    def test_build_header_map(self):
        assert build_header_map(TDK_COLUMNS) == {20: "Part No.", 30: "Capacitance", 40: "Catalog / Data Sheet"}
        assert build_header_map(None) == {}


class TestPartsList:
    def test_kemet_parts(self):
        doc = {
            "detectedUniqueParts": [
                {
                    "displayPn": "C0402C104K4RACTU",
                    "obsolete": False,
                    "hasRoHSExceptions": True,
                    "parameterValues": [
                        {"parameterName": "Capacitance", "parameterValues": [{"formattedValue": "100 nF"}]},
                        {
                            "parameterName": "Packaging",
                            "parameterValues": [{"formattedValue": "T&R"}, {"formattedValue": "Cut Tape"}],
                        },
                        {"parameterName": "Empty", "parameterValues": []},
                    ],
                },
                {"displayPn": "", "obsolete": True},
                {"displayPn": "C0402C104K4RACTU"},
            ]
        }
        rows = PartsListParser().parse(doc)

        assert len(rows) == 1
        assert rows[0].as_dict() == {
            "MPN": "C0402C104K4RACTU",
            "obsolete": "false",
            "rohsExceptions": "true",
            "Capacitance": "100 nF",
            "Packaging": "T&R, Cut Tape",
        }

    def test_missing_list(self):
        assert PartsListParser().parse({"detectedUniqueParts": None}) == []
        assert PartsListParser().parse(EMPTY_DOCUMENT) == []
