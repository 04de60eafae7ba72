"""
Centralized logging configuration for the eligibility assistant.

Every module logs through ``logging.getLogger(__name__)``; this module
installs the handlers once, either a plain stream handler (server) or a
rich console handler (interactive CLI).
"""
import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
    use_rich: bool = False
) -> logging.Logger:
    """
    Set up logging configuration for the application.
    
    Args:
        level: Logging level, as an int or a name such as "DEBUG"
        format_string: Custom format string for plain console output
        use_rich: Render records with rich's console handler
        
    Returns:
        Configured root logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    
    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    
    if use_rich:
        from rich.logging import RichHandler
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    
    handler.setLevel(level)
    root_logger.addHandler(handler)
    
    return root_logger
