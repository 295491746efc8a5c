"""
Utility functions for logging upstream failures together with their causes.
"""

import logging


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def exception_chain(exception: BaseException, limit: int = 10) -> list:
    """
    Collect an exception and the exceptions it was raised from or during.

    httpx wraps transport errors (socket, DNS, TLS) raised by the underlying
    connection pool, so the interesting detail is usually a few links down.

    Args:
        exception: The outermost exception
        limit: Maximum number of links to follow

    Returns:
        The chain, outermost first, without repeats
    """
    chain = []
    seen = set()
    current = exception
    while current is not None and id(current) not in seen and len(chain) < limit:
        seen.add(id(current))
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def format_exception_message(exception: BaseException) -> str:
    """
    Format an exception and its causes as ``Type: message <- Type: message``.
    Never raises.
    """
    if exception is None:
        return "None"
    try:
        parts = []
        for exc in exception_chain(exception):
            message = _safe_str(exc)
            name = type(exc).__name__
            parts.append(f"{name}: {message}" if message else name)
        return " <- ".join(parts)
    except Exception:
        return f"<{type(exception).__name__} (formatting failed)>"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception including its cause chain. This function never raises,
    even for exceptions whose string conversion fails.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Intercept]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        safe_prefix = _safe_str(prefix) if prefix is not None else ""
        logger.log(level, f"{safe_prefix} Exception: {format_exception_message(exception)}")
    except Exception:
        try:
            logger.log(logging.ERROR, "Exception logging failed")
        except Exception:
            # Nothing left to report to
            pass
