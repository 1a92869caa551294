"""Test suite for template expansion."""

import math

import pytest

from expander import expand as expand_function
from expander.templates import (
    FormatConversionError,
    InvalidPatternError,
    InvalidReferenceError,
    MalformedEncodingError,
    UnknownTimeZoneError,
)


class TestPlainText:
    """Templates without tokens."""

    def test_no_tokens_is_identity(self, expand):
        """Test text without tokens is returned unchanged."""
        for text in ["", "plain", "a {text} b", "{unknown}", "{ }", "{", "}{"]:
            assert expand(text) == text

    def test_module_level_expand(self):
        """Test the module-level entry point with varargs parameters."""
        assert expand_function("a{}b{}c", "0", "1") == "a0b1c"

    def test_dollar_and_backslash_in_values_are_literal(self, expand):
        """Test expanded values are never interpreted."""
        assert expand("[{}]", "$1 \\0 $") == "[$1 \\0 $]"


class TestEscape:
    """Backslash escapes in front of tokens."""

    def test_unescaped(self, expand):
        assert expand("a{}b", "0") == "a0b"

    def test_single_backslash_emits_token(self, expand):
        """Test one backslash copies the token text and consumes nothing."""
        assert expand("a\\{}b", "0") == "a{}b"
        assert expand("a\\{trim}b", "0") == "a{trim}b"
        assert expand("a\\{}b{}", "0") == "a{}b0"

    def test_double_backslash_prefixes_result(self, expand):
        """Test two backslashes evaluate the token after one literal backslash."""
        assert expand("a\\\\{}b", "0") == "a\\0b"

    def test_third_backslash_is_text(self, expand):
        assert expand("a\\\\\\{}b", "0") == "a\\\\0b"


class TestParameters:
    """Sequential and positional parameter selection."""

    def test_sequential_consumption(self, expand):
        """Test {} consumes parameters in order."""
        assert expand("a{}b{}c{}d{}e{}f", "0", "1") == "a0b1cdef"
        assert expand("a{}b{}c{}d{}e{}f", "0", "1", "2", "3", "4") == "a0b1c2d3e4f"

    def test_extra_parameters_ignored(self, expand):
        assert (
            expand("a{}b{}c{}d{}e{}f", "0", "1", "2", "3", "4", "5", "6")
            == "a0b1c2d3e4f"
        )

    def test_positional_index(self, expand):
        """Test positional references do not move the cursor."""
        assert (
            expand("a{6}b{5}c{3}d{}e{1}f", "1", "2", "3", "4", "5", "6")
            == "a6b5c3d1e1f"
        )
        assert expand("{2}{}{}", "a", "b") == "bab"

    def test_positional_out_of_range(self, expand):
        assert expand("[{3}]", "a") == "[]"

    def test_last_index_wins(self, expand):
        assert expand("{1,2}", "a", "b") == "b"

    def test_cursor_shared_with_operands(self, expand):
        """Test operand references draw from the same cursor as token bases."""
        assert expand("{}-{[{}]}-{}", "x", "hello", 2, "y") == "x-llo-y"

    def test_none_parameter_is_empty(self, expand):
        assert expand("[{}]", None) == "[]"

    def test_typed_parameters_use_text_form(self, expand):
        assert expand("{} {} {}", 42, 2.5, True) == "42 2.5 True"


class TestOptionParsing:
    """Option grammar as seen through expansion."""

    def test_case_insensitive_options(self, expand):
        for option in ["1", "trim", "lower", "tolower", "upper", "toupper"]:
            assert expand("a{" + option + "}b", "0") == "a0b"
            assert expand("a{" + option.upper() + "}b", "0") == "a0b"

    def test_option_list(self, expand):
        assert expand("a{1,trim,TRIM,TOlower,Upper}b", "0") == "a0b"

    def test_invalid_option_is_text(self, expand):
        """Test braces that do not parse are copied verbatim."""
        assert expand("a{TOUPPERx}b", "0") == "a{TOUPPERx}b"
        assert expand("a{date[UTC]}b", "0") == "a{date[UTC]}b"
        assert expand("a{,trim}b", "0") == "a{,trim}b"

    def test_options_without_commas(self, expand):
        assert expand("[{TRIMTOLOWER}]", "    FOO    ") == "[foo]"

    def test_trailing_comma(self, expand):
        assert expand("[{trim,}]", "  x ") == "[x]"


class TestTextOperators:
    """Case, trim and codec operators."""

    def test_trim_and_case(self, expand):
        assert expand("[{trim}]", "    foo    ") == "[foo]"
        assert expand("[{lower}]", "FOO") == "[foo]"
        assert expand("[{trim,lower}]", "    FOO    ") == "[foo]"
        assert expand("[{upper}]", "foo") == "[FOO]"

    def test_urlencode(self, expand):
        assert expand("{urlencode}", "a b&c=d/é~*") == "a+b%26c%3Dd%2F%C3%A9%7E*"

    def test_urldecode(self, expand):
        assert expand("{urldecode}", "a+b%26c%3Dd%2F%C3%A9") == "a b&c=d/é"

    def test_url_round_trip(self, expand):
        text = "name=J. Doe & sons/100%"
        assert expand("{urlencode,urldecode}", text) == text

    def test_urldecode_malformed_fails(self, expand):
        with pytest.raises(MalformedEncodingError):
            expand("{urldecode}", "100%zz")

    def test_base64(self, expand):
        assert expand("{b64encode}", "hello") == "aGVsbG8="
        assert expand("{base64encode}", "héllo") == "aMOpbGxv"
        assert expand("{b64decode}", "aGVsbG8=") == "hello"
        assert expand("{base64decode}", "aGVsbG8") == "hello"

    def test_base64_decode_fallback(self, expand):
        """Test invalid base64 passes through unchanged."""
        assert expand("[{b64decode}]", "cats and dogs") == "[cats and dogs]"


class TestSubstring:
    """Substring operators."""

    def test_substring(self, expand):
        assert expand("{[4,8]}", "hamburger") == "urge"
        assert expand("{[4,-2]}", "hamburger") == "urge"
        assert expand("{[4:4]}", "hamburger") == "urge"
        assert expand("{[4]}", "hamburger") == "urger"
        assert expand("{[5]}", "hamburger") == "rger"
        assert expand("{[8]}", "hamburger") == "r"
        assert expand("{[9]}", "hamburger") == ""
        assert expand("{[1,6]}", "smiles") == "miles"
        assert expand("{[1,-1]}", "smiles") == "miles"
        assert expand("{[1:5]}", "smiles") == "miles"
        assert expand("{[1]}", "smiles") == "miles"

    def test_substring_indirect(self, expand):
        """Test bounds read from parameters."""
        assert expand("{[{},{}]}", "hamburger", 4, 8) == "urge"
        assert expand("{[{},{}]}", "hamburger", "4", -2) == "urge"
        assert expand("{[{2}:{2}]}", "hamburger", 4) == "urge"
        assert expand("{[{}]}", "hamburger", 4.0) == "urger"
        assert expand("{[1,{}]}", "smiles", 6) == "miles"
        assert expand("{[{},-1]}", "smiles", 1) == "miles"
        assert expand("{[1:{3}]}", "smiles", 1, 5) == "miles"
        assert expand("{[{4}]}", "smiles", None, None, 1) == "miles"

    def test_substring_bounds(self, expand):
        """Test out-of-range bounds collapse instead of failing."""
        assert expand("{[4,10]}", "hamburger") == "urger"
        assert expand("{[4,4]}", "hamburger") == ""
        assert expand("{[4,2]}", "hamburger") == ""
        assert expand("{[4:-2]}", "hamburger") == ""
        assert expand("{[4:0]}", "hamburger") == ""
        assert expand("{[0:3]}", "") == ""

    def test_missing_bound_parameter_is_zero(self, expand):
        assert expand("{[{}]}", "hamburger") == "hamburger"

    def test_non_numeric_bound_fails(self, expand):
        with pytest.raises(InvalidReferenceError):
            expand("{[{}]}", "hamburger", "four")


class TestRegexExtract:
    """Regular expression extraction."""

    FN_EXT = "^(?<fn>.*?)(?:\\.(?<ext>[^\\.]*))?$"

    def test_match(self, expand):
        assert expand("{[/[aeiou](.)\\1/]}", "hello there") == "ell"
        assert expand("{[/[aeiou](.)\\1/0]}", "hello there") == "ell"
        assert expand("{[/[aeiou](.)\\1/1]}", "hello there") == "l"

    def test_out_of_range_group(self, expand):
        assert expand("{[/[aeiou](.)\\1/2]}", "hello there") == ""

    def test_named_groups(self, expand):
        """Test named and numbered access agree."""
        assert expand("{[/[aeiou](?<dot>.)\\1/dot]}", "hello there") == "l"
        assert expand("{[/[aeiou](?<dot>.)\\1/1]}", "hello there") == "l"
        assert expand("{[/[aeiou](?<dot>.)\\1/dit]}", "hello there") == ""

    def test_group_from_parameter(self, expand):
        template = "{[/" + self.FN_EXT + "/{}]}"
        assert expand(template, "foo.bar.txt", "fn") == "foo.bar"
        assert expand(template, "foo.bar.txt", "ext") == "txt"
        assert expand(template, "foo.", "fn") == "foo"
        assert expand(template, "foo.", "ext") == ""

    def test_pattern_from_parameter(self, expand):
        assert expand("{[/{3}/{}]}", "foo", "fn", self.FN_EXT) == "foo"
        assert expand("{[/{}/{}]}", "foo", self.FN_EXT, "ext") == ""

    def test_no_match(self, expand):
        assert expand("{[/z+/]}", "abc") == ""

    def test_group_not_consumed_without_match(self, expand):
        assert expand("{[/z+/{}]}|{}", "abc", "next") == "|next"

    def test_invalid_pattern_fails(self, expand):
        with pytest.raises(InvalidPatternError):
            expand("{[/(/]}", "abc")


class TestPrintf:
    """printf-style format operator."""

    def test_format(self, expand):
        assert expand("{%-6s}", "abc") == "abc   "
        assert expand("{1,%6s}", "abc") == "   abc"
        assert expand("{%10.3e}", math.pi) == " 3.142e+00"
        assert expand("{1,%10.3e,trim,upper}", math.pi) == "3.142E+00"

    def test_integer_conversions(self, expand, instant_ms):
        assert expand("{%d}", instant_ms) == "1588697522346"
        assert expand("{%05d}", 42) == "00042"
        assert expand("{%x}", 255) == "ff"
        assert expand("{%,d}", 1234567) == "1,234,567"
        assert expand("{%(d}", -5) == "(5)"

    def test_general_conversions(self, expand):
        assert expand("{%S}", "abc") == "ABC"
        assert expand("{%.2s}", "abc") == "ab"
        assert expand("{%c}", 65) == "A"
        assert expand("{%b}", None) == "false"

    def test_hash_code_is_stable(self, expand):
        """Test %h gives the same text in every process."""
        assert expand("{%h}", "abc") == "17862"
        assert expand("{%H}", "abc") == "17862"

    def test_type_mismatch_fails(self, expand):
        with pytest.raises(FormatConversionError):
            expand("{%d}", "42")
        with pytest.raises(FormatConversionError):
            expand("{%e}", 3)

    def test_format_after_text_operator_sees_text(self, expand):
        with pytest.raises(FormatConversionError):
            expand("{trim,%d}", 42)


class TestDates:
    """Date and current-time formatting."""

    def test_date_pattern(self, expand, instant, instant_ms):
        assert (
            expand("-{date(EEEE'('E'\\)')}-{%d}", instant, instant_ms)
            == "-Tuesday(Tue)-1588697522346"
        )

    def test_default_iso_pattern(self, expand, instant):
        assert expand("{date()[GMT]}", instant) == "2020-05-05T16:52:02.346Z"
        assert expand("{date}", instant) == "2020-05-05T16:52:02.346Z"
        assert expand("{date()}", instant) == "2020-05-05T16:52:02.346Z"

    def test_quarter_and_quotes(self, expand, instant):
        assert expand("{date(QQQ''yy)}", instant) == "Q2'20"

    def test_epoch_milliseconds(self, expand, instant_ms):
        assert expand("{date(yyyy-MM-dd HH:mm)}", instant_ms) == "2020-05-05 16:52"

    def test_zone(self, expand, instant):
        assert expand("{date(HH:mm)[Asia/Tokyo]}", instant) == "01:52"

    def test_now(self, expand):
        """Test now uses the clock rather than a parameter."""
        assert expand("{now({})}", "YYYY.MM.dd 'at' HH:mm") == "2020.05.05 at 16:52"
        assert expand("{now(HH:mm)}{}", "x") == "16:52x"
        assert expand("{now}") == "2020-05-05T16:52:02.346Z"

    def test_non_temporal_value_is_empty(self, expand):
        assert expand("[{date}]", "yesterday") == "[]"

    def test_unknown_zone_fails(self, expand, instant):
        with pytest.raises(UnknownTimeZoneError):
            expand("{date()[Nowhere]}", instant)

    def test_invalid_date_pattern_fails(self, expand, instant):
        with pytest.raises(InvalidPatternError):
            expand("{date(MMMMMM)}", instant)

    def test_unknown_date_letter_fails(self, expand, instant):
        with pytest.raises(InvalidPatternError):
            expand("{date(n)}", instant)
        assert expand("{date('n')}", instant) == "n"


class TestConditional:
    """Conditional blocks."""

    TEMPLATE = "?a=b{?}&c={}{?}&e={}"

    def test_all_satisfied(self, expand):
        assert expand(self.TEMPLATE, "d", "f") == "?a=b&c=d&e=f"

    def test_empty_block_dropped(self, expand):
        assert expand(self.TEMPLATE, "", "f") == "?a=b&e=f"

    def test_unclosed_empty_block_dropped(self, expand):
        assert expand("?a=b{?}&c={}{?}&e={[2]}the end", "", "f") == "?a=b"

    def test_close_marker(self, expand):
        assert (
            expand("?a=b{?}&c={}{?}&e={[2]}{.}the end", "", "f") == "?a=bthe end"
        )

    def test_close_without_open(self, expand):
        assert expand("a{.}b{}", "c") == "abc"

    def test_literal_text_does_not_satisfy(self, expand):
        assert expand("x{?}static{.}y") == "xy"

    def test_escaped_token_satisfies(self, expand):
        assert expand("x{?}[\\{}]{.}y") == "x[{}]y"
        assert expand("x{?}a\\\\{}{.}", "") == "xa\\"
