from cat_types import StackUnderflow


class Stack:
    """
    The data stack of one evaluation session.

    Popping or peeking past the bottom always raises StackUnderflow.
    The popN adapters return values in logical (push) order, so
    `a b` on the stack comes back from pop2() as (a, b).
    """

    def __init__(self, items=()):
        self._items = list(items)

    def push(self, value):
        self._items.append(value)

    def pop(self):
        if not self._items:
            raise StackUnderflow()
        return self._items.pop()

    def peek(self, depth: int = 0):
        """Return the item `depth` places below the top without removing it."""
        if depth < 0 or depth >= len(self._items):
            raise StackUnderflow()
        return self._items[-1 - depth]

    def clear(self):
        self._items.clear()

    def snapshot(self) -> tuple:
        """Read-only view of the stack, top first."""
        return tuple(reversed(self._items))

    def extend(self, values):
        for value in values:
            self.push(value)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        # bottom to top
        return iter(list(self._items))

    def __repr__(self):
        return f"Stack({self._items!r})"

    # --- Fixed-arity adapters ---

    def _need(self, n: int):
        if len(self._items) < n:
            raise StackUnderflow(
                f"Stack underflow: {n} items needed, {len(self._items)} present")

    def pop1(self):
        return self.pop()

    def pop2(self):
        # ( a b -- ) => (a, b)
        self._need(2)
        b, a = self._items.pop(), self._items.pop()
        return a, b

    def pop3(self):
        # ( a b c -- ) => (a, b, c)
        self._need(3)
        c, b, a = self._items.pop(), self._items.pop(), self._items.pop()
        return a, b, c

    def pop4(self):
        # ( a b c d -- ) => (a, b, c, d)
        self._need(4)
        d, c, b, a = (self._items.pop(), self._items.pop(),
                      self._items.pop(), self._items.pop())
        return a, b, c, d


POPPERS = {
    1: Stack.pop1,
    2: Stack.pop2,
    3: Stack.pop3,
    4: Stack.pop4,
}


def host_word(stack: Stack, fn, arity: int, produces: bool = True):
    """
    Wrap a host callable as a zero-argument native body.

    Pops `arity` values in logical order, calls `fn` with them and pushes
    the result, unless `produces` is False. A `fn` that does not accept
    `arity` arguments raises its own TypeError.
    """
    if arity == 0:
        def word():
            result = fn()
            if produces:
                stack.push(result)
        return word

    popper = POPPERS[arity]

    def word():
        args = popper(stack)
        if arity == 1:
            args = (args,)
        result = fn(*args)
        if produces:
            stack.push(result)
    return word
