"""
Short code generation strategies for Shorty.
Uses Strategy Pattern so the URL service does not care how candidates are made.
"""

import secrets
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate short code.

        Uniqueness is NOT guaranteed here; the caller checks the store
        and asks for another candidate on collision.
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random generation from a configured charset.

    Each character comes from one cryptographically random byte taken modulo
    the charset length. When len(charset) does not divide 256 the first
    ``256 % len(charset)`` characters are slightly more likely; that bias is
    accepted at this scale.
    """

    def __init__(self, length: int, charset: str):
        if length < 1:
            raise ValueError("length must be a positive integer")
        if not charset:
            raise ValueError("charset must not be empty")
        self.length = length
        self.charset = charset

    def generate(self) -> str:
        """Generate random short code of exactly ``length`` characters"""
        raw = secrets.token_bytes(self.length)
        return "".join(self.charset[b % len(self.charset)] for b in raw)
