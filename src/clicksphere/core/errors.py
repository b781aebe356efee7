"""
ClickSphere Errors

Failures that cross the core boundary. Store failures propagate unchanged up
to the request boundary, where the web adapter turns them into failure
responses.
"""


class ClickSphereError(Exception):
    """Base exception for counter core operations"""
    pass


class StoreUnavailable(ClickSphereError):
    """Raised when the durable counter store is unreachable or an operation failed"""
    pass


class InvalidState(ClickSphereError):
    """Raised when a stored counter violates its integrity rules"""
    pass


__all__ = ["ClickSphereError", "StoreUnavailable", "InvalidState"]
