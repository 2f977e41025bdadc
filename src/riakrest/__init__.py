"""riakrest: structured records, links and traversal over the Riak Jiak HTTP interface."""

__version__ = "0.1.0"

from riakrest.bucket import Bucket, QuorumParams
from riakrest.config import RiakRestConfig
from riakrest.errors import (
    AlreadyStored,
    BucketError,
    CannotLinkLocal,
    ClientError,
    CodecError,
    DuplicateKey,
    InvalidQuery,
    LinkShapeError,
    NotBound,
    NotYetStored,
    RemoteFailure,
    ResourceNotFound,
    RiakRestError,
    SchemaViolation,
    UsageError,
    ViewError,
)
from riakrest.gateway import StorageGateway
from riakrest.links import ANY, QueryLink, StorageLink, Wildcard
from riakrest.objects import ServerVersion, StoredObject
from riakrest.query import TraversalPlanner
from riakrest.resource import AutoUpdate, Resource, ResourceType, resolve_auto_update
from riakrest.schema import Schema
from riakrest.types import Field, Record, record_type
from riakrest.view import ResourceView

__all__ = [
    "__version__",
    "Schema",
    "Record",
    "Field",
    "record_type",
    "Bucket",
    "QuorumParams",
    "ANY",
    "Wildcard",
    "StorageLink",
    "QueryLink",
    "StoredObject",
    "ServerVersion",
    "StorageGateway",
    "TraversalPlanner",
    "Resource",
    "ResourceType",
    "ResourceView",
    "AutoUpdate",
    "resolve_auto_update",
    "RiakRestConfig",
    "RiakRestError",
    "SchemaViolation",
    "ViewError",
    "LinkShapeError",
    "BucketError",
    "CodecError",
    "ClientError",
    "ResourceNotFound",
    "RemoteFailure",
    "UsageError",
    "CannotLinkLocal",
    "AlreadyStored",
    "NotYetStored",
    "DuplicateKey",
    "InvalidQuery",
    "NotBound",
]
