import logging
import threading

from cat_types import *
from cat_stack import Stack
from cat_parser import Parser
import cat_bindings
import cat_prelude

logger = logging.getLogger(__name__)

PASS_MARKER = "PASSED"
FAIL_MARKER = "FAILED"

# What a script runner or REPL should report instead of crashing on.
RUNTIME_ERRORS = (CatError, IndexError, TypeError, NameError, ValueError,
                  ArithmeticError, KeyError, RecursionError)

# ===================================================================
#      INTERPRETER: Evaluates terms against one session's stack
# ===================================================================

class Interpreter:
    """
    One evaluation session of the concatenative language.

    Owns its own stack, word dictionary and unit-test results; two
    interpreters never share state.
    """

    def __init__(self, prelude: bool = True):
        self.stack = Stack()
        self.results = []

        self.words = self._create_core_words()
        cat_bindings.install(self)
        if prelude:
            logger.debug("Loading prelude")
            self.run(cat_prelude.PRELUDE)

    # --- Public ---

    def run(self, code: str) -> Stack:
        """Parse and evaluate a source string. Errors propagate; the
        stack is left as it was at the point of failure.

        Unit-test results only cover the current run, so a long REPL
        session does not accumulate them."""
        self.results = []
        self.evaluate(Parser(code).terms())
        return self.stack

    def evaluate(self, terms):
        for term in terms:
            self._eval_one(term)

    def define(self, name: str, body, doc=None, effect=None):
        if not isinstance(body, (Quotation, Native)):
            raise TypeError(f"Cannot define '{name}' with body {format_value(body)}")
        if name in self.words:
            logger.debug("Redefining word '%s'", name)
        else:
            logger.debug("Defining word '%s'", name)
        self.words[name] = Definition(name, doc, effect, body)

    def register(self, name: str, fn, doc=None):
        """Install a zero-argument Python callable as a native word."""
        self.words[name] = Definition(name, doc, None, Native(name, fn))

    def lookup(self, name: str) -> Definition:
        try:
            return self.words[name]
        except KeyError:
            raise UnknownWord(name) from None

    def invoke_word(self, name: str):
        self.call(self.lookup(name).body)

    def call(self, value):
        """Run an invocable value (or a word reference) on the stack."""
        if isinstance(value, Quotation):
            self.evaluate(value)
        elif isinstance(value, Native):
            value()
        elif isinstance(value, Word):
            self.invoke_word(value.name)
        else:
            raise TypeError(f"Cannot invoke {format_value(value)}")

    # --- Evaluation rule ---

    def _eval_one(self, term):
        if isinstance(term, Word):
            self.invoke_word(term.name)
        elif isinstance(term, Definition):
            self.define(term.name, term.body, term.doc, term.effect)
        elif isinstance(term, Literal):
            self.stack.push(term.value)
        elif isinstance(term, list):
            # A list literal must not be shared between evaluations.
            self.stack.push(list(term))
        else:
            self.stack.push(term)

    def _check_invocable(self, word, *values):
        for value in values:
            if not (is_invocable(value) or isinstance(value, Word)):
                raise TypeError(f"'{word}' requires a quotation but got {format_value(value)}")

    def _iterate(self, word, seq):
        if seq is None:
            return iter(())
        if is_invocable(seq):
            raise TypeError(f"'{word}' requires a collection but got {format_value(seq)}")
        try:
            return iter(seq)
        except TypeError:
            raise TypeError(f"'{word}' requires a collection but got {format_value(seq)}") from None

    def _apply(self, quot, *args):
        """Push args, invoke quot, and pop its result."""
        self.stack.extend(args)
        self.call(quot)
        return self.stack.pop()

    def _resolve(self, value):
        if is_invocable(value):
            self.call(value)
            return self.stack.pop()
        return value

    def _create_core_words(self):
        words = {
            # stack shuffling
            'dup':     self._word_dup,         # ( x -- x x )
            'drop':    self._word_drop,        # ( x -- )
            'swap':    self._word_swap,        # ( x y -- y x )
            'over':    self._word_over,        # ( x y -- x y x )
            'over2':   self._word_over2,       # ( x y z -- x y z x y )
            'pick':    self._word_pick,        # ( x y z -- x y z x )
            'rot':     self._word_rot,         # ( x y z -- y z x )
            '-rot':    self._word_neg_rot,     # ( x y z -- z x y )
            'nip':     self._word_nip,         # ( x y -- y )
            'tuck':    self._word_tuck,        # ( x y -- y x y )
            'depth':   self._word_depth,       # ( -- n )
            'clear':   self._word_clear,       # ( ... -- )
            # quotations and control
            'invoke':  self._word_invoke,      # ( q -- ? )
            'call':    self._word_invoke,      # ( q -- ? )
            'dip':     self._word_dip,         # ( x q -- x )
            'keep':    self._word_keep,        # ( x q -- x )
            'if':      self._word_if,          # ( ? then else -- ? )
            'if*':     self._word_if_star,     # ( ? then else -- ? )
            'cond':    self._word_cond,        # ( clauses -- ? )
            'times':   self._word_times,       # ( n q -- )
            'while':   self._word_while,       # ( cond-q body-q -- )
            'compose': self._word_compose,     # ( q1 q2 -- q )
            'curry':   self._word_curry,       # ( x q -- q' )
            'make-lock': self._word_make_lock, # ( -- lock )
            'with-lock': self._word_with_lock, # ( lock q -- ? )
            # sequences
            'map':     self._word_map,         # ( seq q -- seq' )
            'filter':  self._word_filter,      # ( seq q -- seq' )
            'remove':  self._word_remove,      # ( seq q -- seq' )
            'each':    self._word_each,        # ( seq q -- )
            'reduce':  self._word_reduce,      # ( seq q -- x )
            'reduce-with': self._word_reduce_with,  # ( seq acc q -- x )
            'some':    self._word_some,        # ( seq q -- x )
            # testing
            'unit-test': self._word_unit_test, # ( expected actual -- ? )
            'run-suite': self._word_run_suite, # ( q -- marker )
            # output
            '.':       self._word_print_line,  # ( x -- )
            'print':   self._word_print,       # ( x -- )
            '.s':      self._word_print_stack, # ( -- )
            # reflection
            'doc':     self._word_doc,         # ( word -- str )
            'effect':  self._word_effect,      # ( word -- str )
            'defined?': self._word_defined,    # ( word -- ? )
            'invocable?': self._word_invocable,  # ( x -- ? )
            'words':   self._word_words,       # ( -- names )
        }
        return {name: Definition(name, fn.__doc__, None, Native(name, fn))
                for name, fn in words.items()}

    # --- Stack words ---

    def _word_dup(self):
        self.stack.push(self.stack.peek())

    def _word_drop(self):
        self.stack.pop()

    def _word_swap(self):
        a, b = self.stack.pop2()
        self.stack.extend((b, a))

    def _word_over(self):
        self.stack.push(self.stack.peek(1))

    def _word_over2(self):
        self.stack.push(self.stack.peek(2))
        self.stack.push(self.stack.peek(2))

    def _word_pick(self):
        self.stack.push(self.stack.peek(2))

    def _word_rot(self):
        a, b, c = self.stack.pop3()
        self.stack.extend((b, c, a))

    def _word_neg_rot(self):
        a, b, c = self.stack.pop3()
        self.stack.extend((c, a, b))

    def _word_nip(self):
        _, b = self.stack.pop2()
        self.stack.push(b)

    def _word_tuck(self):
        a, b = self.stack.pop2()
        self.stack.extend((b, a, b))

    def _word_depth(self):
        self.stack.push(len(self.stack))

    def _word_clear(self):
        """Empty the stack."""
        self.stack.clear()

    # --- Combinators ---

    def _word_invoke(self):
        """Run the quotation on top of the stack."""
        self.call(self.stack.pop())

    def _word_dip(self):
        """Run q with x set aside, then put x back on top."""
        x, quot = self.stack.pop2()
        self._check_invocable('dip', quot)
        self.call(quot)
        self.stack.push(x)

    def _word_keep(self):
        """Run q on x, then put a copy of x back on top."""
        x, quot = self.stack.pop2()
        self._check_invocable('keep', quot)
        self.stack.push(x)
        self.call(quot)
        self.stack.push(x)

    def _word_if(self):
        """Run then-q if the condition is neither nil nor false, else else-q."""
        condition, then_quot, else_quot = self.stack.pop3()
        self._check_invocable('if', then_quot, else_quot)
        self.call(then_quot if truthy(condition) else else_quot)

    def _word_if_star(self):
        """Like if, but a true condition stays on the stack for then-q."""
        condition, then_quot, else_quot = self.stack.pop3()
        self._check_invocable('if*', then_quot, else_quot)
        if truthy(condition):
            self.stack.push(condition)
            self.call(then_quot)
        else:
            self.call(else_quot)

    def _word_cond(self):
        """
        Invoke a quotation that leaves predicate/action quotation pairs,
        then run the action of the first predicate that leaves a true
        value. Pushes nil when nothing matches.
        """
        clauses = self.stack.pop()
        self._check_invocable('cond', clauses)
        base = len(self.stack)
        self.call(clauses)
        count = len(self.stack) - base
        if count < 0:
            raise MalformedClauses("'cond' clauses consumed items from the stack")
        if count % 2:
            raise MalformedClauses(f"'cond' needs predicate/action pairs but got {count} items")

        pairs = list(reversed([self.stack.pop() for _ in range(count)]))
        self._check_invocable('cond', *pairs)
        for predicate, action in zip(pairs[::2], pairs[1::2]):
            self.call(predicate)
            if truthy(self.stack.pop()):
                self.call(action)
                return
        self.stack.push(None)

    def _word_times(self):
        n, quot = self.stack.pop2()
        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            raise TypeError("'times' requires a non-negative integer count.")
        self._check_invocable('times', quot)
        for _ in range(n):
            self.call(quot)

    def _word_while(self):
        """
        Executes a body quotation as long as a condition quotation is true.
        Stack: ( condition-quot body-quot -- )
        """
        cond_quot, body_quot = self.stack.pop2()
        self._check_invocable('while', cond_quot, body_quot)

        self.call(cond_quot)
        while truthy(self.stack.pop()):
            self.call(body_quot)
            self.call(cond_quot)

    def _word_compose(self):
        q1, q2 = self.stack.pop2()
        if not isinstance(q1, Quotation) or not isinstance(q2, Quotation):
            raise TypeError("'compose' requires two quotations.")
        self.stack.push(q1 + q2)

    def _word_curry(self):
        """Prepend x to q as a literal."""
        x, quot = self.stack.pop2()
        if not isinstance(quot, Quotation):
            raise TypeError("'curry' requires a quotation.")
        if isinstance(x, (Word, Definition, Literal)):
            x = Literal(x)
        self.stack.push(Quotation((x,)) + quot)

    def _word_make_lock(self):
        self.stack.push(threading.Lock())

    def _word_with_lock(self):
        """Hold the lock while q runs; it is released on every exit path."""
        lock, quot = self.stack.pop2()
        if not (hasattr(lock, "__enter__") and hasattr(lock, "__exit__")):
            raise TypeError(f"'with-lock' requires a lock but got {format_value(lock)}")
        self._check_invocable('with-lock', quot)
        with lock:
            self.call(quot)

    # --- Sequence combinators ---

    def _word_map(self):
        seq, quot = self.stack.pop2()
        self._check_invocable('map', quot)
        self.stack.push([self._apply(quot, item) for item in self._iterate('map', seq)])

    def _word_filter(self):
        seq, quot = self.stack.pop2()
        self._check_invocable('filter', quot)
        self.stack.push([item for item in self._iterate('filter', seq)
                         if truthy(self._apply(quot, item))])

    def _word_remove(self):
        seq, quot = self.stack.pop2()
        self._check_invocable('remove', quot)
        self.stack.push([item for item in self._iterate('remove', seq)
                         if not truthy(self._apply(quot, item))])

    def _word_each(self):
        seq, quot = self.stack.pop2()
        self._check_invocable('each', quot)
        for item in self._iterate('each', seq):
            self.stack.push(item)
            self.call(quot)

    def _word_reduce(self):
        """
        Fold a collection with a two-argument quotation, seeding with the
        first element. [] gives nil and [x] gives x; q does not run.
        """
        seq, quot = self.stack.pop2()
        self._check_invocable('reduce', quot)
        items = self._iterate('reduce', seq)
        accumulator = next(items, None)
        for item in items:
            accumulator = self._apply(quot, accumulator, item)
        self.stack.push(accumulator)

    def _word_reduce_with(self):
        """Fold a collection with a two-argument quotation from acc."""
        seq, accumulator, quot = self.stack.pop3()
        self._check_invocable('reduce-with', quot)
        for item in self._iterate('reduce-with', seq):
            accumulator = self._apply(quot, accumulator, item)
        self.stack.push(accumulator)

    def _word_some(self):
        """The first element for which q leaves a true value, or nil."""
        seq, quot = self.stack.pop2()
        self._check_invocable('some', quot)
        for item in self._iterate('some', seq):
            if truthy(self._apply(quot, item)):
                self.stack.push(item)
                return
        self.stack.push(None)

    # --- Test harness ---

    def _word_unit_test(self):
        """
        Compare expected with actual and record the outcome. Quotations are
        run and their results compared; if both results are themselves
        quotations they are run once more.
        """
        expected, actual = self.stack.pop2()
        actual = self._resolve(actual)
        expected = self._resolve(expected)
        if is_invocable(actual) and is_invocable(expected):
            actual = self._resolve(actual)
            expected = self._resolve(expected)
        passed = values_equal(expected, actual)
        if not passed:
            logger.debug("unit-test failed: expected %s, got %s",
                         format_value(expected), format_value(actual))
        self.stack.push(passed)
        self.results.append(passed)

    def _word_run_suite(self):
        """Run a quotation of unit-tests and report whether all passed."""
        suite = self.stack.pop()
        self._check_invocable('run-suite', suite)
        self.results = []
        self.call(suite)

        results = self.results
        failures = sum(1 for result in results if not truthy(result))
        if failures == 0:
            print(f"{len(results)} tests PASSED")
            logger.info("%d tests PASSED", len(results))
            self.stack.push(PASS_MARKER)
        else:
            print(f"{failures} of {len(results)} tests FAILED")
            print(format_value(results))
            logger.info("%d of %d tests FAILED", failures, len(results))
            self.stack.push(FAIL_MARKER)

    # --- Output ---

    def _word_print_line(self):
        print(to_str(self.stack.pop()))

    def _word_print(self):
        print(to_str(self.stack.pop()), end="")

    def _word_print_stack(self):
        print("Stack: " + " ".join(format_value(v) for v in self.stack.snapshot()))

    # --- Reflection ---

    def _word_ref(self, word):
        ref = self.stack.pop()
        if not isinstance(ref, Word):
            raise TypeError(f"'{word}' requires a word reference but got {format_value(ref)}")
        return ref

    def _word_doc(self):
        self.stack.push(self.lookup(self._word_ref('doc').name).doc)

    def _word_effect(self):
        effect = self.lookup(self._word_ref('effect').name).effect
        self.stack.push(None if effect is None else str(effect))

    def _word_defined(self):
        self.stack.push(self._word_ref('defined?').name in self.words)

    def _word_invocable(self):
        self.stack.push(is_invocable(self.stack.pop()))

    def _word_words(self):
        self.stack.push(sorted(self.words))
