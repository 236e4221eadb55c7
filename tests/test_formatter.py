# ABOUTME: Tests for the plain-text history report
# ABOUTME: Validates exact layout, placeholders and determinism

import pytest
from repeater_history_mcp.formatter import (
    NO_REQUEST,
    NO_RESPONSE,
    SEPARATOR,
    SUB_SEPARATOR,
    format_history,
    format_single,
)
from repeater_history_mcp.models import EventRecord, RequestData, ResponseData

REQUEST_RAW = "GET /photos HTTP/1.1\r\nHost: example.com\r\n\r\n"
RESPONSE_RAW = "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n{\"photos\": []}"


def make_record(request_raw=REQUEST_RAW, response_raw=RESPONSE_RAW) -> EventRecord:
    request = None
    if request_raw is not None:
        request = RequestData(
            method="GET",
            url="https://example.com/photos",
            host="example.com",
            port=443,
            raw=request_raw,
        )
    response = None
    if response_raw is not None:
        response = ResponseData(status_code=200, reason="OK", raw=response_raw)
    return EventRecord(request=request, response=response, id="req-1")


class TestSeparators:
    def test_widths(self):
        assert SEPARATOR == "=" * 80
        assert SUB_SEPARATOR == "-" * 80


class TestFormatHistory:
    def test_exact_layout_single_entry(self):
        report = format_history([make_record()], "example.com:443")

        expected = (
            "BURP REPEATER TAB HISTORY\n"
            + "=" * 80 + "\n"
            + "Tab: example.com:443\n"
            + "Total Entries: 1\n"
            + "=" * 80 + "\n\n"
            + "REQUEST #1\n"
            + "=" * 80 + "\n"
            + REQUEST_RAW + "\n"
            + "\n" + "-" * 80 + "\n"
            + "RESPONSE #1\n"
            + "-" * 80 + "\n"
            + RESPONSE_RAW + "\n"
            + "\n" + "=" * 80 + "\n\n"
        )
        assert report == expected

    def test_empty_history(self):
        report = format_history([], "host:80")

        assert "Tab: host:80" in report
        assert "Total Entries: 0" in report
        assert "REQUEST #" not in report
        assert "RESPONSE #" not in report

    def test_numbering_is_one_based(self):
        report = format_history([make_record(), make_record(), make_record()], "example.com:443")

        assert "Total Entries: 3" in report
        for n in (1, 2, 3):
            assert f"REQUEST #{n}\n" in report
            assert f"RESPONSE #{n}\n" in report
        assert "REQUEST #0" not in report
        assert "REQUEST #4" not in report

    def test_missing_response(self):
        report = format_history([make_record(response_raw=None)], "example.com:443")

        assert REQUEST_RAW in report
        assert f"RESPONSE #1\n{SUB_SEPARATOR}\n{NO_RESPONSE}\n" in report

    def test_missing_request(self):
        report = format_history([make_record(request_raw=None)], "example.com:443")

        assert f"REQUEST #1\n{SEPARATOR}\n{NO_REQUEST}\n" in report
        assert RESPONSE_RAW in report

    def test_raw_text_is_not_altered(self):
        raw = "POST /x HTTP/1.1\r\nX-Odd:   spaced  \r\n\r\nline1\nline2\r\n"
        report = format_history([make_record(request_raw=raw)], "example.com:443")

        assert raw in report

    def test_idempotent(self):
        records = [make_record(), make_record(response_raw=None)]

        assert format_history(records, "example.com:443") == format_history(records, "example.com:443")

    def test_without_label(self):
        report = format_history([make_record()])

        assert report.startswith("BURP REPEATER HISTORY\n" + SEPARATOR + "\nTotal Entries: 1\n")
        assert "Tab:" not in report


class TestFormatSingle:
    def test_exact_layout(self):
        report = format_single(make_record(), "CURRENT")

        expected = (
            "CURRENT REQUEST/RESPONSE\n"
            + "=" * 80 + "\n\n"
            + "REQUEST\n"
            + "=" * 80 + "\n"
            + REQUEST_RAW + "\n"
            + "\n" + "-" * 80 + "\n"
            + "RESPONSE\n"
            + "-" * 80 + "\n"
            + RESPONSE_RAW + "\n"
            + "\n" + "=" * 80 + "\n"
        )
        assert report == expected

    @pytest.mark.parametrize("request_raw,response_raw,marker", [
        (None, RESPONSE_RAW, NO_REQUEST),
        (REQUEST_RAW, None, NO_RESPONSE),
    ])
    def test_placeholders(self, request_raw, response_raw, marker):
        report = format_single(make_record(request_raw, response_raw), "CURRENT")

        assert marker in report
        assert "#" not in report
