import logging
import sys

ROOT_TAG = 'text_overlay'
LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s] - %(message)s'

root = logging.getLogger(ROOT_TAG)

def init_logging(verbose: bool = False):
    """
    Attach a stdout handler to the package logger.
    Calling it again only updates the level.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root.setLevel(level)
    if not any(getattr(h, '_text_overlay', False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._text_overlay = True
        root.addHandler(handler)
    for h in root.handlers:
        h.setLevel(level)

    # Pillow is chatty about plugin loading at DEBUG
    logging.getLogger('PIL').setLevel(logging.WARNING)

def get_logger(name: str) -> logging.Logger:
    return root.getChild(name)
