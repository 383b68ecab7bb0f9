"""
Core base classes for the pipeline monitoring service.

``BaseComponent`` gives every long-lived service object the same async
lifecycle and structured logger.
"""

from .component import BaseComponent

__all__ = ["BaseComponent"]
