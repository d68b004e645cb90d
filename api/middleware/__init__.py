"""
Request middleware for the workflow builder API.
"""

from .logging_middleware import add_logging_middleware

__all__ = ["add_logging_middleware"]
