"""
Domain exceptions raised by service classes.

All of them subclass ValueError so callers that only care about "the request
cannot be fulfilled" can keep catching ValueError; the API layer maps each
type to its HTTP status in main.py.
"""


class NotFoundError(ValueError):
    """Referenced entity does not exist."""
    pass


class InvalidStateError(ValueError):
    """Operation is not valid for the record's current state."""
    pass


class ForbiddenError(ValueError):
    """Caller is not allowed to access the requested branch or record."""
    pass
