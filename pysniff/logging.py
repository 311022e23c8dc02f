"""
Centralized logging configuration for PySniff.

Usage:
    from pysniff.logging import setup_logging, get_logger
    
    # In __main__.py (once at startup)
    setup_logging(level='DEBUG', log_file='/tmp/pysniff_debug.log')
    
    # In any module
    logger = get_logger(__name__)
    logger.debug("Some debug message")
"""

import logging
import sys
from typing import Optional

# Default log file path
DEFAULT_LOG_FILE = '/tmp/pysniff_debug.log'

def setup_logging(
    level: str = 'WARNING',
    log_file: Optional[str] = None,
    console: bool = False
) -> None:
    """
    Configure logging for PySniff.
    
    Args:
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Path to log file (only used if level is DEBUG or INFO)
        console: If True, also log to console (stderr)
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    
    logger = logging.getLogger('pysniff')
    logger.setLevel(numeric_level)
    
    # Reconfiguring replaces the previous handlers
    logger.handlers.clear()
    
    fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    formatter = logging.Formatter(fmt)
    
    # Capture files are only worth writing at DEBUG/INFO
    if numeric_level <= logging.INFO and log_file:
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    
    # Prevents "no handler" warnings
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    
    logger.debug(f"Logging configured: level={level}, log_file={log_file}, console={console}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.
    
    Args:
        name: Module name (typically __name__)
        
    Returns:
        Logger instance
    """
    # Keep every logger under the 'pysniff' namespace
    if name.startswith('pysniff'):
        return logging.getLogger(name)
    return logging.getLogger(f'pysniff.{name}')
