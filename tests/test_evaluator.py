"""Evaluation rule, dictionary and error propagation."""

import pytest

from cat_interpreter import Interpreter
from cat_types import (Word, Literal, Quotation, Definition, Native,
                       StackUnderflow, UnknownWord, CatError)


def test_literals_push(run):
    assert run('1 "a" nil true') == [1, "a", None, True]


def test_quotation_literal_is_pushed_not_invoked(run):
    assert run("#[ 1 2 + ]") == [Quotation((1, 2, Word("+")))]


def test_invoke_runs_a_quotation(run):
    assert run("#[ 1 2 + ] invoke") == [3]


def test_call_is_invoke(run):
    assert run("#[ 1 2 + ] call") == [3]


def test_evaluate_consumes_terms_directly(interp):
    interp.evaluate([2, Quotation((3, Word("*"))), Word("invoke")])
    assert list(interp.stack) == [6]


def test_literal_term_pushes_word_reference(interp):
    interp.evaluate([Literal(Word("swap"))])
    assert list(interp.stack) == [Word("swap")]


def test_invoke_word_reference(run):
    assert run("1 2 ' swap invoke") == [2, 1]


def test_invoke_non_invocable_is_a_type_error(interp):
    with pytest.raises(TypeError):
        interp.run("5 invoke")


def test_unknown_word(interp):
    with pytest.raises(UnknownWord) as excinfo:
        interp.run("1 frobnicate")
    assert excinfo.value.name == "frobnicate"
    assert isinstance(excinfo.value, NameError)


def test_lookup_is_case_sensitive(interp):
    with pytest.raises(UnknownWord):
        interp.run("1 DUP")


def test_definition_then_use(run):
    assert run(": sq [ x -- y ] dup * ; 7 sq") == [49]


def test_definition_does_not_touch_the_stack(run):
    assert run("1 : noop ;") == [1]


def test_redefinition_last_wins(run):
    assert run(": v 1 ; : v 2 ; v") == [2]


def test_words_resolve_at_invocation_time(run):
    assert run(": a b ; : b 10 ; a") == [10]


def test_define_from_python(interp):
    interp.define("twice", Quotation((Word("dup"), Word("+"))), doc="Double.")
    interp.run("21 twice")
    assert list(interp.stack) == [42]
    assert interp.words["twice"].doc == "Double."


def test_define_native(interp):
    interp.define("answer", Native("answer", lambda: interp.stack.push(42)))
    assert list(interp.run("answer")) == [42]


def test_define_rejects_non_invocable_body(interp):
    with pytest.raises(TypeError):
        interp.define("bad", 5)


def test_sessions_are_isolated():
    a, b = Interpreter(), Interpreter()
    a.run(": only-a 1 ; 99")
    assert list(b.stack) == []
    with pytest.raises(UnknownWord):
        b.run("only-a")


def test_error_leaves_stack_as_mutated(interp):
    with pytest.raises(StackUnderflow):
        interp.run("1 2 + drop drop")
    assert list(interp.stack) == []
    with pytest.raises(UnknownWord):
        interp.run("1 2 nope 3")
    assert list(interp.stack) == [1, 2]


def test_all_runtime_errors_share_a_base(interp):
    with pytest.raises(CatError):
        interp.run("drop")


def test_list_literal_is_fresh_each_time(run):
    stack = run(": l [ 1 ] ; l l")
    assert stack == [[1], [1]]
    assert stack[0] is not stack[1]


def test_no_sentinel_is_pushed_by_side_effect_words(run, capsys):
    assert run('1 2 3 clear "x" .') == []
    assert capsys.readouterr().out == "x\n"


def test_print_stack_top_first(run, capsys):
    run('1 "a" #[ dup ] .s')
    assert capsys.readouterr().out == 'Stack: #[ dup ] "a" 1\n'


def test_print_stack_matches_snapshot(interp, capsys):
    interp.run("1 2 3 .s")
    assert capsys.readouterr().out == "Stack: 3 2 1\n"
    assert interp.stack.snapshot() == (3, 2, 1)


def test_reflection(run):
    stack = run(': sq "Square." [ x -- y ] dup * ; '
                "' sq doc ' sq effect ' sq defined? ' nope defined? "
                "#[ ] invocable? 5 invocable?")
    assert stack == ["Square.", "[ x -- y ]", True, False, True, False]


def test_doc_of_native_word(run):
    [doc] = run("' dip doc")
    assert "set aside" in doc


def test_words_lists_the_dictionary(run):
    [names] = run("words")
    assert names == sorted(names)
    assert {"dip", "keep", "bi", "unit-test", "+"} <= set(names)


def test_results_only_cover_the_current_run(interp):
    interp.run("1 1 unit-test")
    interp.run("1 2 unit-test")
    assert interp.results == [False]
