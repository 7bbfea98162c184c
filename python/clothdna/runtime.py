"""Process-wide OpenCV setup.

OpenCV keeps global threading and OpenCL state. Feature extraction must not
depend on whatever a host application left there, so the orchestrator calls
:func:`initialize` once before the first image is processed.
"""
import logging
import threading

import cv2

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_initialized = False


def initialize() -> None:
    """Pin OpenCV to single-threaded, CPU-only execution. Idempotent."""
    global _initialized
    with _lock:
        if _initialized:
            return
        cv2.setNumThreads(1)
        cv2.ocl.setUseOpenCL(False)
        _initialized = True
        logger.debug("OpenCV %s initialized (threads=1, OpenCL off)", cv2.__version__)


def is_initialized() -> bool:
    return _initialized
