"""
Venue error taxonomy.
Every one of these is caught at the smallest enclosing action.
"""


class VenueError(Exception):
    """Base class for anything the venue adapter raises on purpose."""


class ElementNotFound(VenueError):
    """Expected control or element is absent (or did not appear in time)."""


class UnparseableValue(VenueError):
    """Text was present but could not be read as a number/side."""


class BridgeError(VenueError):
    """Bridge transport failure or non-zero retCode."""

    def __init__(self, message: str, code: int = -1):
        super().__init__(message)
        self.code = code
