"""
Structured logging package for chatrelay.

All imports should use explicit paths like
'from chatrelay.structured_logging.enhanced_logging_config import get_logger'.

The directory is named 'structured_logging' rather than 'logging' so it never
shadows the standard library module.
"""

__all__: list[str] = []
