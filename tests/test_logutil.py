import logging
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
import logutil


def test_log_once_reports_each_key_once(caplog):
    caplog.set_level(logging.WARNING)
    logutil.reset_once()
    assert logutil.log_once(("missing", 1), "TEST", "biome missing")
    assert not logutil.log_once(("missing", 1), "TEST", "biome missing")
    assert logutil.log_once(("missing", 2), "TEST", "biome missing")
    assert caplog.text.count("biome missing") == 2


def test_log_once_keys_are_capped(monkeypatch):
    monkeypatch.setattr(config, "LOG_ONCE_LIMIT", 3, raising=False)
    logutil.reset_once()
    for floor in range(50):
        logutil.log_once(("degenerate-height", 1, floor), "TEST", "floor %d" % floor, "DEBUG")
        assert len(logutil._seen) <= 3
    logutil.reset_once()
    assert not logutil._seen
