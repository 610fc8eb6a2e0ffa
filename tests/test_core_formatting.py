"""Tests for core.utils.formatting: shared humanization utilities."""

from core.utils.formatting import format_bytes, format_progress


class TestFormatBytes:
    """format_bytes() delegates to humanize with binary units."""

    def test_zero(self) -> None:
        assert format_bytes(0) == "0 Bytes"

    def test_negative_treated_as_zero(self) -> None:
        assert format_bytes(-5) == "0 Bytes"

    def test_kib(self) -> None:
        assert "KiB" in format_bytes(2048)

    def test_mib(self) -> None:
        result = format_bytes(150 * 1024 * 1024)
        assert "150" in result
        assert "MiB" in result


class TestFormatProgress:
    def test_known_total(self) -> None:
        line = format_progress(1024 * 1024, 4 * 1024 * 1024, 25)
        assert line.startswith(" 25%")
        assert "/" in line
        assert "MiB" in line

    def test_unknown_total_omits_size(self) -> None:
        line = format_progress(2048, 0, 0)
        assert line.startswith("  0%")
        assert "/" not in line

    def test_full(self) -> None:
        assert format_progress(10, 10, 100).startswith("100%")
