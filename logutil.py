import os
import threading
import multiprocessing
import logging
import config

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_seen = set()
_seen_lock = threading.Lock()


def get_logger():
    return logging.getLogger(getattr(config, "LOGGER_NAME", "worldmodifier"))


def log(scope, msg, level="INFO"):
    if scope == "POLICY" and level == "INFO" and not getattr(config, "LOG_POLICY", True):
        return
    pid = os.getpid()
    proc = multiprocessing.current_process().name
    thread = threading.current_thread().name
    text = f"[{level} pid{pid} proc{proc} thr{thread} {scope}] {msg}"
    use_color = getattr(config, "LOG_COLOR", True) and os.getenv("NO_COLOR") is None
    if use_color:
        if level in ("ERROR",):
            text = f"\x1b[31m{text}\x1b[0m"
        elif level in ("WARN", "WARNING"):
            text = f"\x1b[33m{text}\x1b[0m"
        elif thread != "MainThread":
            # Generation worker thread.
            text = f"\x1b[32m{text}\x1b[0m"
    get_logger().log(_LEVELS.get(level, logging.INFO), text)


def log_once(key, scope, msg, level="WARN"):
    """Log `msg` only the first time `key` is seen.

    Per-query paths (biome lookups, bound queries) run millions of times per
    world; a misconfiguration should show up once, not flood the log. Keys are
    forgotten on every config publish and whenever more than LOG_ONCE_LIMIT
    have piled up.
    """
    with _seen_lock:
        if key in _seen:
            return False
        if len(_seen) >= getattr(config, "LOG_ONCE_LIMIT", 1024):
            _seen.clear()
        _seen.add(key)
    log(scope, msg, level)
    return True


def reset_once():
    with _seen_lock:
        _seen.clear()
