import functools

import pytest

from kernkit.libc import atoi, kread, kwrite, stringcmp, stringcopy


def _reader(text):
    return functools.partial(next, iter(text), "")


def test_kwrite_sends_every_character():
    out = []
    kwrite(out.append, "hello")
    assert "".join(out) == "hello"


def test_kwrite_stops_at_nul():
    out = []
    kwrite(out.append, "ab\0cd")
    assert out == ["a", "b"]


def test_kread_reads_one_line():
    source = iter("line\nrest")
    reader = functools.partial(next, source, "")
    assert kread(reader, 80) == "line"
    assert "".join(source) == "rest"


def test_kread_limit_consumes_one_extra_character():
    source = iter("abcdefg\n")
    reader = functools.partial(next, source, "")
    result = kread(reader, 4)
    assert result == "abcdefg"[:3]
    assert "".join(source) == "efg\n"


def test_kread_stops_at_end_of_input():
    assert kread(_reader("abc"), 80) == "abc"


def test_kread_rejects_empty_buffer():
    with pytest.raises(ValueError):
        kread(_reader("abc"), 0)


def test_stringcmp_equal_strings():
    assert stringcmp("kernel", "kernel") == 0


@pytest.mark.parametrize("a,b", [("abc", "abd"), ("b", "a"), ("ab", "abc"), ("abc", "ab")])
def test_stringcmp_sign_matches_ordering(a, b):
    result = stringcmp(a, b)
    assert (result < 0) == (a < b)
    assert (result > 0) == (a > b)


def test_stringcmp_prefix_difference():
    assert stringcmp("ab", "abc") == -ord("c")


def test_stringcmp_ignores_text_after_nul():
    assert stringcmp("ab\0x", "ab\0y") == 0


def test_stringcopy_truncates_to_buffer():
    copied = stringcopy("abcdefgh", 5)
    assert len(copied) == 4
    assert "abcdefgh".startswith(copied)


def test_stringcopy_short_source_unchanged():
    assert stringcopy("abc", 10) == "abc"


def test_stringcopy_stops_at_nul():
    assert stringcopy("ab\0cd", 10) == "ab"


def test_stringcopy_rejects_zero_length():
    with pytest.raises(ValueError):
        stringcopy("abc", 0)


def test_atoi_documented_examples():
    assert atoi("-23av34") == -23
    assert atoi("a123") == 0


@pytest.mark.parametrize("n", [0, 1, -1, 42, 2147483647, -2147483648])
def test_atoi_round_trip(n):
    assert atoi(str(n)) == n


def test_atoi_skips_whitespace_and_plus():
    assert atoi(" \t\r\n+17") == 17


@pytest.mark.parametrize("text", ["", "   ", "-", "+"])
def test_atoi_without_digits_is_zero(text):
    assert atoi(text) == 0


def test_atoi_overflow_stays_in_int32_range():
    value = atoi("12345678901234567890")
    assert -(2**31) <= value < 2**31