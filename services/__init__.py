"""
Services package for the n8n workflow builder.
"""

from .generation import GenerationOrchestrator

__all__ = [
    "GenerationOrchestrator",
]
