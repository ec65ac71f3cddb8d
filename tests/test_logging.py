"""Tests for log routing and the records traced at each level."""

import logging

import pytest

from overridez.cli.app import setup_logging
from overridez.core.compose import compose_store
from overridez.storage.overrides import OverrideKind, OverrideStore


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    package = logging.getLogger("overridez")
    saved = (root.level, list(root.handlers), package.level)
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    package.setLevel(saved[2])


@pytest.mark.parametrize(
    "verbose,debug,expected",
    [
        (False, False, logging.WARNING),
        (True, False, logging.INFO),
        (False, True, logging.DEBUG),
        (True, True, logging.DEBUG),
    ],
)
def test_setup_logging_levels(restore_logging, verbose, debug, expected):
    setup_logging(verbose=verbose, debug=debug)
    assert logging.getLogger("overridez").level == expected
    assert logging.getLogger().level == expected


def test_discovery_traced_at_debug(caplog):
    store = OverrideStore(
        {OverrideKind.EXPRESSION: {"beam-core": "expr"}, OverrideKind.DESCRIPTOR: {}}
    )
    with caplog.at_level(logging.DEBUG, logger="overridez"):
        compose_store(store)
    assert "found override (expression): beam-core" in caplog.text


def test_discovery_silent_at_warning(caplog):
    store = OverrideStore(
        {OverrideKind.EXPRESSION: {"beam-core": "expr"}, OverrideKind.DESCRIPTOR: {}}
    )
    with caplog.at_level(logging.WARNING, logger="overridez"):
        compose_store(store)
    assert caplog.text == ""
