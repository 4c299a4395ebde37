"""Tests for the full pipeline."""

import importlib.util
import logging
from pathlib import Path

import pytest

from ext_order.errors import CircularDependencyError, UnresolvedDependencyError
from ext_order.exporter import concat_units
from ext_order.models import OrderConfig, SourceUnit
from ext_order.pipeline import run_bundle, run_order, run_scan

FIXTURES = Path(__file__).parent / "fixtures"
APP = FIXTURES / "app"

HAS_RJSMIN = importlib.util.find_spec("rjsmin") is not None

EXPECTED_ORDER = [
    "model/User.js",
    "mixin/Labelable.js",
    "view/UserForm.js",
    "controller/Main.js",
    "store/Users.js",
    "view/Viewport.js",
    "app.js",
]


def _config(**kwargs):
    kwargs.setdefault("include_recursive", [APP])
    kwargs.setdefault("exclude", [APP / "extra"])
    return OrderConfig(**kwargs)


def _names(units):
    return [Path(u.label).relative_to(APP).as_posix() for u in units]


def test_scan():
    units = run_scan(_config())
    assert len(units) == 7


@pytest.mark.parametrize("strategy", ["auto", "regex"])
def test_order_fixture_app(strategy):
    result = run_order(_config(strategy=strategy))
    assert _names(result.units) == EXPECTED_ORDER
    assert result.unresolved == {}
    assert result.elapsed >= 0


def test_order_reports_unresolved():
    result = run_order(_config(exclude=[]))
    assert _names(result.units) == EXPECTED_ORDER + ["extra/Debug.js"]
    assert result.unresolved == {str(APP / "extra" / "Debug.js"): ["App.missing.Thing"]}


def test_order_strict_unresolved():
    with pytest.raises(UnresolvedDependencyError):
        run_order(_config(exclude=[], strict_unresolved=True))


def test_order_cycle():
    with pytest.raises(CircularDependencyError) as exc:
        run_order(OrderConfig(include=[FIXTURES / "cycle"]))
    assert exc.value.source.endswith("B.js")
    assert exc.value.target.endswith("A.js")


def test_broken_file_degrades(caplog):
    with caplog.at_level(logging.WARNING):
        result = run_order(OrderConfig(include=[FIXTURES / "broken"], strategy="regex"))
    names = [Path(u.label).name for u in result.units]
    assert sorted(names) == ["Bad.js", "Good.js"]
    bad = next(u for u in result.units if u.label.endswith("Bad.js"))
    assert bad.declarations == ()
    assert "Bad.js" in caplog.text


def test_broken_file_strict_parse():
    from ext_order.errors import SourceParseError
    with pytest.raises(SourceParseError):
        run_order(OrderConfig(include=[FIXTURES / "broken"], strict_parse=True))


def test_order_given_units():
    units = [
        SourceUnit("Ext.define('X.B', { extend: 'X.A' });", label="b"),
        SourceUnit("Ext.define('X.A', {});", label="a"),
    ]
    result = run_order(OrderConfig(), units=units)
    assert [u.label for u in result.units] == ["a", "b"]


def test_progress_callback():
    stages = []
    run_order(_config(), progress=lambda stage, current, total: stages.append(stage))
    assert stages[0] == "Scanning"
    assert {"Extracting", "Resolving", "Sorting"} <= set(stages)


def test_bundle_concat(tmp_path):
    out = tmp_path / "build" / "app.all.js"
    result = run_bundle(_config(output=out))

    content = out.read_text()
    assert result.output_path == out
    assert result.byte_count == len(content.encode("utf-8"))
    assert not result.minified
    assert content == concat_units(result.units, "\n")
    assert content.index("'App.model.User'") < content.index("Ext.application(")


def test_bundle_requires_output():
    with pytest.raises(ValueError):
        run_bundle(_config())


@pytest.mark.skipif(not HAS_RJSMIN, reason="rjsmin not installed")
def test_bundle_minify(tmp_path):
    out = tmp_path / "app.min.js"
    plain = run_bundle(_config(output=tmp_path / "app.all.js"))
    minified = run_bundle(_config(output=out), minify=True)

    assert minified.minified
    assert minified.byte_count < plain.byte_count
    assert "Application entry point" not in out.read_text()
