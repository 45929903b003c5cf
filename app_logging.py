"""
app_logging.py
Logging setup: a rotating file under the data directory plus stderr.
"""

import logging
import logging.handlers
import os

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_path: str, level: int = logging.INFO) -> logging.Logger:
    """Configure the root logger once; repeated calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(level)
    if getattr(root, "_monopad_configured", False):
        return root
    formatter = logging.Formatter(_FORMAT)
    try:
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=512 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    except OSError:
        # read-only data dir: keep stderr only
        pass
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    stream.setLevel(logging.WARNING)
    root.addHandler(stream)
    root._monopad_configured = True
    return root
