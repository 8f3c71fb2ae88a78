import datetime
import io

import pytest

from trojango.log import LogLevel
from trojango.simplelog import SimpleLogger


def _split_stamp(text):
    stamp = datetime.datetime.strptime(text[:19], "%Y/%m/%d %H:%M:%S")
    return stamp, text[19:]


def test_writes_to_stderr_by_default(capsys):
    before = datetime.datetime.now().replace(microsecond=0)
    SimpleLogger().info("hello", "world")
    stamp, rest = _split_stamp(capsys.readouterr().err)
    assert before <= stamp <= datetime.datetime.now()
    assert rest == " hello world\n"


def test_level_filters():
    out = io.StringIO()
    logger = SimpleLogger(out)
    logger.set_log_level(LogLevel.WARN)
    logger.info("hidden")
    logger.debug("hidden")
    logger.warnf("n=%d", 3)
    _, rest = _split_stamp(out.getvalue())
    assert rest == " n=3\n"


def test_set_output_is_ignored():
    out = io.StringIO()
    logger = SimpleLogger(out)
    logger.set_output(io.StringIO())
    logger.error("kept")
    assert out.getvalue().endswith("kept\n")


def test_off_level_silences_everything():
    out = io.StringIO()
    logger = SimpleLogger(out)
    logger.set_log_level(LogLevel.OFF)
    logger.error("x")
    logger.tracef("%s", "y")
    assert out.getvalue() == ""


def test_fatal_exits_with_status_one():
    out = io.StringIO()
    with pytest.raises(SystemExit) as exc_info:
        SimpleLogger(out).fatalf("failed: %s", "reason")
    assert exc_info.value.code == 1
    assert out.getvalue().endswith("failed: reason\n")