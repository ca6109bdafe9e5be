"""
Error taxonomy shared by the store, the services and the HTTP layer.
"""


class ShortyError(Exception):
    """Base class for all service errors"""


class NotFoundError(ShortyError):
    """No mapping exists for the requested short code"""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code not found: {short_code}")


class StorageError(ShortyError):
    """Connectivity or query failure in the mapping store"""


class GenerationExhaustedError(ShortyError):
    """Every candidate short code collided with an existing one"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not generate unique short code after {attempts} attempts"
        )
