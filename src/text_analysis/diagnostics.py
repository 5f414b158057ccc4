"""Diagnostic channel: developer-facing logging, never shown to the user."""

import logging


def get_logger(name: str = "text_analysis", level: int = logging.INFO):
    """Return a named logger that writes to stderr.

    Parameters
    ----------
    name : str
        Logger name, usually the calling module's ``__name__``.
    level : int
        Level for the logger and its handler on first use.

    Returns
    -------
    logging.Logger
        The logger. Background failures (log fetch, log clear) and the
        detailed cause of a failed analysis end up here; the page itself
        only shows a generic message.

    Notes
    -----
    The stream handler is added only once per logger, so calling this again
    for the same name (e.g. on every Streamlit rerun) does not duplicate
    output. Records still propagate to the root logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(level)
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s"))
        logger.addHandler(handler)
    return logger
