from .log import get_logger, init_logging
