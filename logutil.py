import os
import threading
import multiprocessing
import config

LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

_local = threading.local()
_file_lock = threading.Lock()


def set_chunk(chunk_pos):
    """Tag log lines from the calling thread with the chunk being processed."""
    _local.chunk = chunk_pos


def log(scope, msg, level="INFO"):
    if scope == "CHUNK" and not getattr(config, "LOG_CHUNKS", False):
        return
    min_level = LEVELS.get(getattr(config, "LOG_LEVEL", "INFO"), 20)
    if LEVELS.get(level, 20) < min_level:
        return
    pid = os.getpid()
    proc = multiprocessing.current_process().name
    thread = threading.current_thread().name
    chunk = getattr(_local, "chunk", None)
    chunk_tag = f" c{chunk[0]},{chunk[1]}" if chunk is not None else ""
    text = f"[{level}{chunk_tag} pid{pid} proc{proc} thr{thread} {scope}] {msg}"
    log_path = getattr(config, "LOG_FILE_PATH", None)
    if log_path:
        with _file_lock:
            with open(log_path, "a") as f:
                f.write(text + "\n")
    use_color = getattr(config, "LOG_COLOR", True) and os.getenv("NO_COLOR") is None
    if use_color:
        if level == "ERROR":
            text = f"\x1b[31m{text}\x1b[0m"
        elif proc == "MainProcess" and thread != "MainThread":
            # Export worker thread.
            text = f"\x1b[32m{text}\x1b[0m"
        elif proc != "MainProcess":
            text = f"\x1b[33m{text}\x1b[0m"
    print(text)
