import io

import pytest
from rich.console import Console as RichConsole

from eavesdrop import Console, console_surface


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def console(streams):
    out, err = streams
    return Console(
        out=RichConsole(file=out, width=100, color_system=None),
        err=RichConsole(file=err, width=100, color_system=None),
    )


def test_log_and_error_streams(console, streams):
    out, err = streams
    console.log("hello", "world")
    console.error("boom")

    assert out.getvalue() == "hello world\n"
    assert err.getvalue() == "boom\n"


def test_group_indents_until_end(console, streams):
    out, _ = streams
    console.group("outer")
    console.log("inside")
    console.group_collapsed()
    console.log("deeper")
    console.group_end()
    console.group_end()
    console.group_end()
    console.log("back")

    assert out.getvalue().splitlines() == ["outer", "  inside", "    deeper", "back"]


def test_assert_only_prints_on_failure(console, streams):
    _, err = streams
    console.assert_(True, "fine")
    assert err.getvalue() == ""

    console.assert_(False, "broken")
    assert err.getvalue() == "Assertion failed: broken\n"


def test_table_from_rows(console, streams):
    out, _ = streams
    console.table([{"name": "a", "size": 1}, {"name": "b"}])

    text = out.getvalue()
    assert "(index)" in text
    assert "name" in text
    assert "size" in text


def test_table_of_scalars_falls_back_to_log(console, streams):
    out, _ = streams
    console.table("not tabular")
    assert out.getvalue() == "not tabular\n"


def test_timers(console, streams):
    out, err = streams
    console.time("load")
    console.time_end("load")
    console.time_end("load")

    assert out.getvalue().startswith("load: ")
    assert out.getvalue().rstrip().endswith("ms")
    assert "Timer 'load' does not exist" in err.getvalue()


def test_trace_prints_stack(console, streams):
    _, err = streams
    console.trace("here")
    assert "Trace: here" in err.getvalue()
    assert "test_trace_prints_stack" in err.getvalue()


def test_intercepted_console_still_prints(make_engine, console, streams):
    out, _ = streams
    engine = make_engine([console_surface(console)])
    engine.install()

    console.info("captured")
    console.time("t")
    console.time_end("t")

    assert "captured" in out.getvalue()
    # Timers print through log on the original without becoming entries
    assert "t: " in out.getvalue()
    assert [e.method for e in engine.snapshot()] == ["info"]
