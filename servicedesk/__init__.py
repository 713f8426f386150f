"""
Service desk core: complaint lifecycle and reporting.
"""

__version__ = "1.0.0"
