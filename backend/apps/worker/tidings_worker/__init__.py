"""
Tidings Worker Package.

Refresh triggers, arq background tasks and the service container.
"""

__version__ = "0.1.0"
