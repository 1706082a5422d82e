import json

import pytest

from returnorders.logs import new_logger


def _read(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_info_goes_to_console_only(tmp_path, capsys):
    path = tmp_path / "error" / "error.log"
    logger, close = new_logger("svc", str(path), 1, 1, 7)
    logger.info("hello world")
    close()
    out = capsys.readouterr().out
    assert "hello world" in out
    assert "INFO" in out
    assert not path.exists()


def test_error_written_as_json(tmp_path):
    path = tmp_path / "error" / "error.log"
    logger, close = new_logger("svc", str(path), 1, 1, 7)
    logger.error("boom", order="A1")
    close()
    records = _read(path)
    assert len(records) == 1
    assert records[0]["level"] == "error"
    assert records[0]["msg"] == "boom"
    assert records[0]["service"] == "svc"
    assert records[0]["order"] == "A1"
    assert "test_logs.py" in records[0]["caller"]


def test_with_fields_adds_context(tmp_path):
    path = tmp_path / "error.log"
    logger, close = new_logger("svc", str(path), 1, 1, 7)
    child = logger.with_fields(user="U1")
    child.error("first")
    logger.error("second")
    close()
    first, second = _read(path)
    assert first["user"] == "U1"
    assert "user" not in second


def test_fatal_exits_with_stacktrace(tmp_path):
    path = tmp_path / "error.log"
    logger, _ = new_logger("svc", str(path), 1, 1, 7)
    with pytest.raises(SystemExit) as info:
        logger.fatal("dead")
    assert info.value.code == 1
    record = _read(path)[0]
    assert record["level"] == "fatal"
    assert "stacktrace" in record


def test_panic_raises(tmp_path):
    path = tmp_path / "error.log"
    logger, _ = new_logger("svc", str(path), 1, 1, 7)
    with pytest.raises(RuntimeError, match="broken"):
        logger.panic("broken")
    record = _read(path)[0]
    assert record["level"] == "panic"
    assert "stacktrace" not in record


def test_warn_and_debug_not_in_file(tmp_path, capsys):
    path = tmp_path / "error.log"
    logger, close = new_logger("svc", str(path), 1, 1, 7)
    logger.warn("careful")
    logger.debug("details")
    close()
    out = capsys.readouterr().out
    assert "careful" in out and "details" in out
    assert not path.exists()