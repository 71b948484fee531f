"""
Logging setup for the crawler.

Console output keeps ANSI colors; the log file gets the same records with
color codes stripped.
"""

import logging
import re


class ColorStripFormatter(logging.Formatter):
    """Formatter that strips ANSI color codes from log messages."""
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        message = super().format(record)
        return self.ansi_escape.sub('', message)


def setup_logging(settings, log_to_file: bool = True) -> logging.Logger:
    """
    Configure root and crawler loggers from settings.

    The 'watchface_crawler' logger does not propagate to root and gets its
    own handlers, added only once so repeated setup never duplicates lines.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers = []
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(settings.log_format))
    handlers.append(console_handler)

    if log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding='utf-8')
        file_handler.setFormatter(ColorStripFormatter(settings.log_format))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    crawler_logger = logging.getLogger('watchface_crawler')
    crawler_logger.propagate = False
    if not crawler_logger.handlers:
        for handler in handlers:
            crawler_logger.addHandler(handler)
    crawler_logger.setLevel(level)

    # Quiet event loop chatter
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    return crawler_logger
