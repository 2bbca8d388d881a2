"""Shared fixtures: every test gets its own interpreter session."""

import pytest

from cat_interpreter import Interpreter


@pytest.fixture
def interp():
    return Interpreter()


@pytest.fixture
def run(interp):
    """Evaluate source and return the stack bottom-to-top as a list."""
    def _run(code):
        interp.run(code)
        return list(interp.stack)
    return _run
