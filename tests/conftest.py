"""
tests/conftest.py -- Shared fixtures.

core.formatter keeps the --no-color / enable_color() choice in a module
global. Reset it around every test so color state never leaks between tests.
"""

import pytest

import core.formatter


@pytest.fixture(autouse=True)
def _reset_color_state():
    core.formatter._color_enabled = None
    yield
    core.formatter._color_enabled = None
