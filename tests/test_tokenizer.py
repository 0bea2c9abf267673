import pytest

from mcpsched.tokenizer import count_tokens, tokenize


def test_count_none_is_zero():
    assert count_tokens(None, " ") == 0


def test_count_ignores_leading_and_trailing_delimiters():
    assert count_tokens("  a  b ", " ") == 2


def test_count_empty_string():
    assert count_tokens("", " ") == 0


def test_tokenize_strips_newline():
    assert tokenize("ls -l\n", " ") == ["ls", "-l"]


def test_tokenize_lone_newline_becomes_empty_token():
    assert tokenize("ls \n", " ") == ["ls", ""]


def test_tokenize_multiple_delimiters():
    assert tokenize("sleep\t 5\n", " \t\n") == ["sleep", "5"]


def test_tokenize_blank_line_with_whitespace_delims():
    assert tokenize("\n", " \t\n") == []


def test_tokenize_empty_delimiter_keeps_whole_string():
    assert tokenize("abc", "") == ["abc"]


@pytest.mark.parametrize(
    "line,delim",
    [("a b c\n", " "), ("  x\ty  z ", " \t"), ("", " "), ("one", ","), ("a,,b,", ",")],
)
def test_length_matches_count(line, delim):
    assert len(tokenize(line, delim)) == count_tokens(line, delim)


def test_tokens_never_contain_delimiters():
    for token in tokenize("a;b c;;d e", "; "):
        assert ";" not in token and " " not in token


def test_tokenize_none_raises():
    with pytest.raises(TypeError):
        tokenize(None, " ")