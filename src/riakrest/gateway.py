"""HTTP gateway to a Jiak server.

Every call is one synchronous request through a ``requests.Session``. Paths:

* ``base/bucket``: schema and key listing (GET), schema update (PUT),
  store with a server-assigned key (POST)
* ``base/bucket/key``: fetch (GET), store (PUT), delete (DELETE)
* ``base/bucket/key/b,t,a/...``: link traversal (GET)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import quote, unquote

import requests

from riakrest.bucket import Bucket, QuorumParams
from riakrest.codec import object_from_wire, object_to_wire
from riakrest.config import RiakRestConfig
from riakrest.errors import (
    ClientError,
    CodecError,
    InvalidQuery,
    RemoteFailure,
    ResourceNotFound,
    SchemaViolation,
)
from riakrest.links import QueryLink
from riakrest.objects import StoredObject
from riakrest.schema import Schema
from riakrest.types import Record

logger = logging.getLogger(__name__)

APP_JSON = "application/json"

# Query parameter names
READS = "r"
WRITES = "w"
DURABLE_WRITES = "dw"
WAITS = "rw"
RETURN_BODY = "returnbody"
KEYS = "keys"
SCHEMA = "schema"
COPY = "copy"
READ = "read"


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class StorageGateway:
    """Client for one Jiak server.

    Quorum values are resolved per request: call options, then the bucket's
    params, then this gateway's defaults. Anything still unset is omitted and
    the server's bucket settings apply.

    The gateway closes the session on ``close()`` only when it created it.
    """

    def __init__(
        self,
        server_uri: str | None = None,
        *,
        config: RiakRestConfig | None = None,
        session: Any = None,
        params: QuorumParams | Mapping[str, Any] | None = None,
    ) -> None:
        self._config = config or RiakRestConfig()
        uri = server_uri if server_uri is not None else self._config.server_uri
        if not isinstance(uri, str) or not uri.strip():
            raise ClientError("Server URI must be a non-empty string")
        uri = uri.strip()
        self.server = uri if uri.endswith("/") else uri + "/"

        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        if self._config.proxy:
            self._session.proxies.update({"http": self._config.proxy, "https": self._config.proxy})

        defaults = QuorumParams(
            reads=self._config.reads,
            writes=self._config.writes,
            durable_writes=self._config.durable_writes,
            waits=self._config.waits,
        )
        self.params = QuorumParams.create(params).merged(defaults)

    def set_params(self, **params: Any) -> QuorumParams:
        """Set client-level default quorum values."""
        self.params = QuorumParams.create(params).merged(self.params)
        return self.params

    # --- schema and keys ---

    def set_schema(self, bucket: Bucket) -> None:
        """Push the bucket's schema to the server."""
        url = self._uri(bucket)
        response = self._request("set schema", "PUT", url, payload=bucket.schema.to_wire())
        self._raise_for_status("set schema", response, url)

    def get_schema(self, bucket: Bucket) -> Schema:
        """Fetch the schema the server currently holds for the bucket."""
        info = self._bucket_info(bucket, SCHEMA, {KEYS: False})
        try:
            return Schema.from_wire({SCHEMA: info})
        except SchemaViolation as e:
            raise CodecError(f"Invalid schema for bucket '{bucket.name}': {e}") from e

    schema = get_schema

    def keys(self, bucket: Bucket) -> set[str]:
        """Keys in the bucket. The listing is eventually consistent."""
        keys = self._bucket_info(bucket, KEYS, {SCHEMA: False})
        if not isinstance(keys, list):
            raise CodecError(f"Key listing for bucket '{bucket.name}' must be a list")
        return set(keys)

    def _bucket_info(self, bucket: Bucket, info: str, params: dict[str, Any]) -> Any:
        url = self._uri(bucket)
        response = self._request(f"get {info}", "GET", url, params=params)
        self._raise_for_status(f"get {info}", response, url)
        payload = self._json(f"get {info}", response, url)
        if not isinstance(payload, Mapping) or info not in payload:
            raise CodecError(f"Bucket response is missing '{info}'")
        return payload[info]

    # --- objects ---

    def store(
        self,
        obj: StoredObject,
        *,
        return_object: bool = False,
        reads: Any = None,
        writes: Any = None,
        durable_writes: Any = None,
        copy: bool = False,
        read_fields: Iterable[str] | None = None,
    ) -> StoredObject | str:
        """Store ``obj``.

        Returns the stored object as the server now holds it when
        ``return_object`` is set, otherwise the key it was stored under.
        """
        if not isinstance(obj, StoredObject):
            raise TypeError(f"Expected a StoredObject, got {type(obj).__name__}")
        quorum = self._quorum(obj.bucket, reads=reads, writes=writes, durable_writes=durable_writes)
        params: dict[str, Any] = {
            READS: quorum.reads,
            WRITES: quorum.writes,
            DURABLE_WRITES: quorum.durable_writes,
            RETURN_BODY: return_object,
        }
        if copy:
            params[COPY] = True
        if read_fields:
            params[READ] = ",".join(read_fields)

        if obj.key:
            method, url = "PUT", self._uri(obj.bucket, obj.key)
        else:
            method, url = "POST", self._uri(obj.bucket)

        response = self._request("store", method, url, params=params, payload=object_to_wire(obj))
        self._raise_for_status("store", response, url)

        if return_object:
            return object_from_wire(self._json("store", response, url), obj.bucket)
        if obj.key:
            return obj.key
        location = response.headers.get("Location")
        if not location:
            raise CodecError("Store response is missing the Location header")
        return unquote(location.rstrip("/").split("/")[-1])

    def get(
        self,
        bucket: Bucket,
        key: str,
        *,
        reads: Any = None,
        read_fields: Iterable[str] | None = None,
    ) -> StoredObject:
        """Fetch the object stored under ``key``. Raises ResourceNotFound when absent."""
        self._check_key(key)
        quorum = self._quorum(bucket, reads=reads)
        params: dict[str, Any] = {READS: quorum.reads}
        if read_fields:
            params[READ] = ",".join(read_fields)

        url = self._uri(bucket, key)
        response = self._request("get", "GET", url, params=params)
        if response.status_code == 404:
            raise ResourceNotFound(
                f"failed get: {bucket.name}/{key} not found", action="get", uri=url
            )
        self._raise_for_status("get", response, url)
        return object_from_wire(self._json("get", response, url), bucket)

    def exists(self, bucket: Bucket, key: str) -> bool:
        try:
            self.get(bucket, key)
        except ResourceNotFound:
            return False
        return True

    def delete(self, bucket: Bucket, key: str, *, waits: Any = None) -> bool:
        self._check_key(key)
        quorum = self._quorum(bucket, waits=waits)
        url = self._uri(bucket, key)
        response = self._request("delete", "DELETE", url, params={WAITS: quorum.waits})
        self._raise_for_status("delete", response, url)
        return True

    # --- traversal ---

    def walk(
        self,
        bucket: Bucket,
        key: str,
        links: QueryLink | Iterable[QueryLink],
        target: Bucket | type[Record],
    ) -> list[StoredObject]:
        """Follow ``links`` from ``bucket``/``key`` and decode the objects reached by the last hop."""
        self._check_key(key)
        links = [links] if isinstance(links, QueryLink) else list(links)
        if not links:
            raise InvalidQuery("A walk needs at least one query link")
        if not all(isinstance(link, QueryLink) for link in links):
            raise InvalidQuery("Walk steps must be QueryLink instances")
        if not isinstance(target, Bucket):
            target = Bucket(bucket.name, target)

        url = self._uri(bucket, key) + "".join("/" + link.for_transport() for link in links)
        response = self._request("walk", "GET", url)
        self._raise_for_status("walk", response, url)
        payload = self._json("walk", response, url)

        results = payload.get("results") if isinstance(payload, Mapping) else None
        if not results:
            return []
        last = results[-1]
        if not isinstance(last, list):
            raise CodecError("Walk results must be lists of objects")
        return [object_from_wire(entry, target) for entry in last]

    # --- plumbing ---

    def _quorum(self, bucket: Bucket, **overrides: Any) -> QuorumParams:
        call = QuorumParams(**{k: v for k, v in overrides.items() if v is not None})
        return call.merged(bucket.params).merged(self.params)

    def _uri(self, bucket: Bucket, key: str = "") -> str:
        if not isinstance(bucket, Bucket):
            raise TypeError(f"Expected a Bucket, got {type(bucket).__name__}")
        uri = self.server + quote(bucket.name, safe="")
        if key:
            uri += "/" + quote(key, safe="")
        return uri

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str) or not key.strip():
            raise ClientError("Key must be a non-empty string")

    def _request(
        self,
        action: str,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}
        headers = {"Accept": APP_JSON, "User-Agent": self._config.user_agent}
        if payload is not None:
            headers["Content-Type"] = APP_JSON
        logger.debug("%s %s params=%s", method, url, query)
        try:
            return self._session.request(
                method,
                url,
                params=query or None,
                json=payload,
                headers=headers,
                timeout=self._config.request_timeout_s,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise RemoteFailure(action, None, str(e), uri=url) from e

    @staticmethod
    def _raise_for_status(action: str, response: Any, url: str) -> None:
        if 200 <= response.status_code < 300:
            return
        logger.warning("%s failed with HTTP %s: %s", action, response.status_code, url)
        raise RemoteFailure(action, response.status_code, response.text, uri=url)

    @staticmethod
    def _json(action: str, response: Any, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise CodecError(f"failed {action}: response from {url} is not JSON") from e

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> StorageGateway:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorageGateway):
            return NotImplemented
        return self.server == other.server

    def __hash__(self) -> int:
        return hash(self.server)

    def __repr__(self) -> str:
        return f"StorageGateway({self.server!r})"
