"""
Unit tests for version parsing, formatting and marker extraction
"""
import sys

import pytest

from vsu.version_codec import (
    DEFAULT_MAXIMA,
    IncrementComponent,
    VersionTuple,
    clamp_version,
    extract_version,
    find_marker_index,
    format_marker_line,
    format_version,
    is_valid_version_string,
    parse_version,
)


class TestParseVersion:
    """Test lenient version parsing"""

    def test_full_version(self):
        assert parse_version("1.2.3.4") == VersionTuple(1, 2, 3, 4)

    def test_missing_components_padded(self):
        assert parse_version("3.7") == VersionTuple(3, 7, 0, 0)

    def test_non_numeric_components_become_zero(self):
        assert parse_version("1.x.3.-") == VersionTuple(1, 0, 3, 0)

    def test_extra_components_dropped(self):
        assert parse_version("1.2.3.4.5") == VersionTuple(1, 2, 3, 4)

    def test_empty_and_none(self):
        assert parse_version("") == VersionTuple(0, 0, 0, 0)
        assert parse_version(None) == VersionTuple(0, 0, 0, 0)

    @pytest.mark.skipif(getattr(sys, "get_int_max_str_digits", lambda: 0)() == 0, reason="no int digit limit")
    def test_component_over_digit_limit_becomes_zero(self):
        huge = "9" * (sys.get_int_max_str_digits() + 1)
        assert parse_version(f"1.{huge}.3.4") == VersionTuple(1, 0, 3, 4)


class TestFormatAndClamp:
    """Test formatting and clamping"""

    def test_format(self):
        assert format_version(VersionTuple(5, 0, 12, 7)) == "5.0.12.7"
        assert str(VersionTuple(1, 0, 0, 0)) == "1.0.0.0"

    def test_clamp_only_affects_components_above_max(self):
        version = VersionTuple(5, 200, 3, 1)
        assert clamp_version(version, DEFAULT_MAXIMA) == VersionTuple(5, 99, 3, 1)

    def test_clamp_with_custom_maxima(self):
        assert clamp_version(VersionTuple(12, 12, 12, 12), VersionTuple(10, 20, 5, 99)) == VersionTuple(10, 12, 5, 12)

    def test_strict_validation(self):
        assert is_valid_version_string("1.0.0.0")
        assert not is_valid_version_string("1.0.0")
        assert not is_valid_version_string("1.0.0.a")
        assert not is_valid_version_string("")


class TestMarkerExtraction:
    """Test marker line detection and version extraction"""

    def test_find_marker_case_insensitive_with_indent(self):
        lines = ["using System;", "   // version: 2.1.0.3", "class A {}"]
        assert find_marker_index(lines) == 1

    def test_first_marker_wins(self):
        lines = ["// Version: 1.0.0.0", "// Version: 9.9.9.9"]
        assert find_marker_index(lines) == 0

    def test_no_marker(self):
        assert find_marker_index(["class A {}", "// just a comment"]) is None

    def test_custom_prefix(self):
        lines = ["import os", "# Version: 1.2.3.4"]
        assert find_marker_index(lines, "#") == 1
        assert find_marker_index(lines) is None

    def test_extract_version(self):
        assert extract_version("// Version: 1.2.3.4") == VersionTuple(1, 2, 3, 4)
        assert extract_version("// Version 3.5 beta") == VersionTuple(3, 5, 0, 0)

    def test_extract_version_absent(self):
        assert extract_version("// Version: unknown") is None

    def test_format_marker_line(self):
        assert format_marker_line(VersionTuple(1, 0, 0, 0)) == "// Version: 1.0.0.0"
        assert format_marker_line(VersionTuple(2, 0, 0, 1), "#") == "# Version: 2.0.0.1"


class TestIncrementComponent:
    """Test increment mode lookup"""

    def test_indices(self):
        assert [c.index for c in IncrementComponent] == [0, 1, 2, 3]

    def test_from_name(self):
        assert IncrementComponent.from_name("Build") is IncrementComponent.BUILD

    def test_from_name_invalid(self):
        with pytest.raises(ValueError):
            IncrementComponent.from_name("patch")
