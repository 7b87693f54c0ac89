from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from treeseal.logging_ import JsonFormatter, setup_logging


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("treeseal.comparer", logging.INFO, __file__, 1, message, None, None)


def test_json_formatter_lifts_event_from_json_message() -> None:
    formatter = JsonFormatter("run-1")
    line = formatter.format(_record('{"event":"compare","count":3}'))
    payload = json.loads(line)
    assert payload["event"] == "compare"
    assert payload["meta"] == {"event": "compare", "count": 3}
    assert payload["run_id"] == "run-1"
    assert payload["component"] == "treeseal.comparer"


def test_json_formatter_plain_message() -> None:
    payload = json.loads(JsonFormatter("r", include_run_id=False).format(_record("hello")))
    assert payload["event"] == "hello"
    assert "run_id" not in payload


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        run_id = setup_logging("INFO", log_dir=tmp_path, to_console=False, run_id="abc")
        assert run_id == "abc"
        logging.getLogger("treeseal.test").info('{"event":"list","count":1}')
        for handler in root.handlers:
            handler.flush()
        line = (tmp_path / "treeseal.log").read_text(encoding="utf-8").strip()
        assert json.loads(line)["event"] == "list"
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
