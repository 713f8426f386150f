"""
Small shared helpers.
"""

from servicedesk.utils.phone import PhoneNormalizer

__all__ = ["PhoneNormalizer"]
