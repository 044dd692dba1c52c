import io

from kernkit.debug import DebugLog


def test_enabled_level_is_printed():
    out = io.StringIO()
    log = DebugLog(["net"], out)
    log("net", "value %d\n", 5)
    assert out.getvalue() == "value 5\n"


def test_returns_count_written():
    out = io.StringIO()
    log = DebugLog(["fs"], out)
    written = log("fs", "abc")
    assert written == len(out.getvalue())


def test_disabled_level_prints_nothing():
    out = io.StringIO()
    log = DebugLog(["net"], out)
    assert log("vm", "hidden %s", "x") is None
    assert out.getvalue() == ""


def test_mapping_bootargs():
    out = io.StringIO()
    log = DebugLog({"sched": "1", "initprog": "shell"}, out)
    log("sched", "%s", "tick")
    assert out.getvalue() == "tick"
    assert log.enabled("initprog")
    assert not log.enabled("shell")


def test_single_string_is_one_level_not_letters():
    log = DebugLog("net", io.StringIO())
    assert log.enabled("net")
    assert not log.enabled("n")