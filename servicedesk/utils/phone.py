"""
Phone number helpers for Indian mobile numbers.
"""

import re
from typing import Optional


class PhoneNormalizer:
    """Reduce user-entered phone numbers to the 10 digit national form"""

    @classmethod
    def extract_digits(cls, phone: Optional[str]) -> str:
        """Extract only digits from phone number"""
        if not phone:
            return ""

        return re.sub(r'\D', '', phone)

    @classmethod
    def to_national(cls, phone: Optional[str]) -> str:
        """
        Normalise to 10 digits.

        ``+91 98765-43210`` and ``919876543210`` both become ``9876543210``;
        anything longer keeps its last 10 digits.
        """
        digits = cls.extract_digits(phone)
        if len(digits) == 12 and digits.startswith('91'):
            digits = digits[2:]
        if len(digits) > 10:
            digits = digits[-10:]
        return digits

