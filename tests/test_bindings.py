"""Host bindings installed through the arity adapters."""

import pytest


@pytest.mark.parametrize("source, expected", [
    ("10 3 -", 7),
    ("10 4 /", 2.5),
    ("7 3 mod", 1),
    ("1 2 <", True),
    ("2 2 =", True),
    ("4 inc", 5),
    ("nil str", ""),
    ("true str", "true"),
    ('"a" 1 str2', "a1"),
    ('"a" "b" "c" str3', "abc"),
    ("[ 1 2 3 ] count", 3),
    ("[ 1 2 3 ] first", 1),
    ("[ ] first", None),
    ("[ 1 2 3 ] rest", [2, 3]),
    ("0 [ 1 ] cons", [0, 1]),
    ("[ 1 ] 2 conj", [1, 2]),
    ("[ 1 ] [ 2 ] concat", [1, 2]),
    ("[ ] empty?", True),
    ("nil nil?", True),
    ("0 false or", True),
    ("0 nil and", False),
    ("0 not", False),
])
def test_host_word(run, source, expected):
    assert run(source) == [expected]


def test_host_errors_propagate_unwrapped(interp):
    with pytest.raises(ZeroDivisionError):
        interp.run("1 0 /")
    with pytest.raises(TypeError):
        interp.run('1 "a" +')


@pytest.mark.parametrize("source, expected", [
    ("false 0 =", False),
    ("true 1 =", False),
    ("1 1.0 =", True),
    ("[ 1 [ 2 ] ] [ 1 [ 2 ] ] =", True),
    ("[ false ] [ 0 ] =", False),
    ("#[ 1 ] #[ 1 ] =", True),
    ("' dup #[ \"dup\" ] =", False),
    ("false 0 !=", True),
])
def test_equality_keeps_value_kinds_apart(run, source, expected):
    assert run(source) == [expected]
