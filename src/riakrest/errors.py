"""Structured error types for riakrest."""

from __future__ import annotations


class RiakRestError(Exception):
    """Base error for all riakrest errors."""


class SchemaViolation(RiakRestError):
    """Raised when a schema is malformed or a mask names a field that is not allowed."""


class ViewError(SchemaViolation):
    """Raised when a resource view declares or uses fields its resource does not expose."""


class LinkShapeError(RiakRestError):
    """Raised when a storage or query link is built from invalid components."""


class BucketError(RiakRestError):
    """Raised for an invalid bucket name, record type or request parameter set."""


class CodecError(RiakRestError):
    """Raised when a wire envelope cannot be decoded."""


class ClientError(RiakRestError):
    """Raised when accessing a resource on the remote store fails."""

    def __init__(self, message: str = "", *, action: str | None = None, uri: str | None = None):
        super().__init__(message)
        self.action = action
        self.uri = uri

    def description(self) -> str:
        """Human readable summary including the action and URI when known."""
        name = self.__class__.__name__
        if self.action is None and self.uri is None:
            return f"{name}: {self}"
        return f"{name}: {self.action or ''} {self} using uri='{self.uri or ''}'"


class ResourceNotFound(ClientError):
    """Raised when a fetch by key finds nothing."""


class RemoteFailure(ClientError):
    """Raised on any non-success response not otherwise classified."""

    def __init__(
        self,
        action: str,
        status_code: int | None,
        body: str,
        *,
        uri: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"failed {action}: {body}"
        else:
            message = f"failed {action}: HTTP code {status_code}: {body}"
        super().__init__(message, action=action, uri=uri)


class UsageError(RiakRestError):
    """Base for lifecycle and usage guards detected without a remote round trip."""


class CannotLinkLocal(UsageError):
    """Raised when linking to a resource that has not been stored yet."""

    def __init__(self) -> None:
        super().__init__("Can't link to a local resource; store it first so it has a server key")


class AlreadyStored(UsageError):
    """Raised when posting a resource that has already been stored."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Resource already initially stored (key='{key}')")


class NotYetStored(UsageError):
    """Raised when updating a resource that has never been stored."""

    def __init__(self) -> None:
        super().__init__("Resource not previously stored; use post() first")


class DuplicateKey(UsageError):
    """Raised when auto-post finds an existing record under the resource's key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"auto-post failed: key='{key}' already exists")


class InvalidQuery(UsageError):
    """Raised for malformed traversal steps."""


class NotBound(UsageError):
    """Raised when a resource type is used before being bound to a server."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(
            f"Resource '{type_name}' is not bound to a server. Call {type_name}.bind(...) first."
        )
