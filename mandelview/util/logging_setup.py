import logging
import logging.handlers
import multiprocessing as mp
from typing import Optional

_LOGGER_NAME = "mandelview"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)

def parse_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)

def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

def _reset(level: int) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    return logger

def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = None,
    rotate_bytes: int = 2 * 1024 * 1024,
    rotate_count: int = 3,
) -> logging.Logger:
    logger = _reset(level)
    fmt = _build_formatter()
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger

def create_log_queue() -> mp.Queue:
    return mp.Queue(-1)

def start_queue_listener(queue: mp.Queue, listener_logger: logging.Logger) -> logging.handlers.QueueListener:
    listener = logging.handlers.QueueListener(queue, *listener_logger.handlers, respect_handler_level=True)
    listener.start()
    return listener

def stop_queue_listener(listener: Optional[logging.handlers.QueueListener]) -> None:
    if listener is None:
        return
    try:
        listener.stop()
    except AttributeError:
        # already stopped: the listener thread attribute is cleared on stop
        pass

def logging_initialiser(queue: Optional[mp.Queue], level: int) -> None:
    """Route a pool worker's records through the parent's queue listener."""
    if queue is None:
        return
    logger = _reset(level)
    qh = logging.handlers.QueueHandler(queue)
    qh.setLevel(level)
    logger.addHandler(qh)
