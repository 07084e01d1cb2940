"""
Task modules for background processing.

This package contains all background task implementations.
"""

from . import feed_fetcher

__all__ = ["feed_fetcher"]
