"""Shared test fixtures for riakrest tests."""

from __future__ import annotations

import copy
import json
from typing import Any
from urllib.parse import unquote

import pytest

from riakrest import Field, Resource, StorageGateway

BASE_URI = "http://jiak.test/jiak/"

# --- In-memory Jiak server ---


class FakeResponse:
    """Just enough of requests.Response for the gateway."""

    def __init__(
        self,
        status_code: int,
        payload: Any = None,
        *,
        headers: dict[str, str] | None = None,
        text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON body")
        return copy.deepcopy(self._payload)


class FakeJiakServer:
    """In-memory Jiak endpoint that plugs in where a requests.Session goes.

    Buckets without a pushed schema accept any field. Walks return one
    results array per step.
    """

    def __init__(self, base: str = BASE_URI) -> None:
        self.base = base
        self.objects: dict[str, dict[str, dict[str, Any]]] = {}
        self.schemas: dict[str, dict[str, list[str]]] = {}
        self.requests: list[dict[str, Any]] = []
        self.failures: list[Any] = []
        self.proxies: dict[str, str] = {}
        self.closed = False
        self._next_key = 0
        self._clock = 0

    # --- test helpers ---

    def fail_next(self, failure: FakeResponse | Exception) -> None:
        self.failures.append(failure)

    def seed(
        self,
        bucket: str,
        key: str,
        obj: dict[str, Any],
        links: list[list[str]] | None = None,
    ) -> None:
        self._write(bucket, key, obj, links or [])

    def stores(self, bucket: str | None = None) -> list[dict[str, Any]]:
        """Recorded PUT/POST requests against objects."""
        out = []
        for r in self.requests:
            if r["method"] not in ("PUT", "POST") or r["json"] is None or "object" not in r["json"]:
                continue
            if bucket is None or r["json"].get("bucket") == bucket:
                out.append(r)
        return out

    # --- session interface ---

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        params = dict(params or {})
        self.requests.append(
            {"method": method, "url": url, "params": params, "json": json, "headers": headers}
        )
        if self.failures:
            failure = self.failures.pop(0)
            if isinstance(failure, Exception):
                raise failure
            return failure

        assert url.startswith(self.base), url
        segments = [unquote(s) for s in url[len(self.base) :].split("/")]
        if len(segments) == 1:
            return self._bucket(method, segments[0], params, json)
        if len(segments) == 2:
            return self._object(method, segments[0], segments[1], params, json)
        return self._walk(segments[0], segments[1], segments[2:])

    def close(self) -> None:
        self.closed = True

    # --- handlers ---

    def _schema(self, bucket: str) -> dict[str, list[str]]:
        if bucket in self.schemas:
            return self.schemas[bucket]
        seen: dict[str, None] = {}
        for stored in self.objects.get(bucket, {}).values():
            seen.update(dict.fromkeys(stored["object"]))
        fields = sorted(seen)
        return {
            "allowed_fields": fields,
            "required_fields": [],
            "read_mask": fields,
            "write_mask": fields,
        }

    def _bucket(self, method: str, bucket: str, params: dict[str, Any], body: Any) -> FakeResponse:
        if method == "GET":
            payload: dict[str, Any] = {}
            if params.get("schema") != "false":
                payload["schema"] = self._schema(bucket)
            if params.get("keys") != "false":
                payload["keys"] = sorted(self.objects.get(bucket, {}))
            return FakeResponse(200, payload)
        if method == "PUT":
            if not isinstance(body, dict) or not isinstance(body.get("schema"), dict):
                return FakeResponse(400, text="bad schema")
            self.schemas[bucket] = copy.deepcopy(body["schema"])
            return FakeResponse(204)
        if method == "POST":
            self._next_key += 1
            return self._store(bucket, f"key{self._next_key}", params, body, created=True)
        return FakeResponse(405, text="method not allowed")

    def _object(
        self, method: str, bucket: str, key: str, params: dict[str, Any], body: Any
    ) -> FakeResponse:
        exists = key in self.objects.get(bucket, {})
        if method == "GET":
            if not exists:
                return FakeResponse(404, text="object not found")
            return FakeResponse(200, self._envelope(bucket, key, params.get("read")))
        if method == "PUT":
            return self._store(bucket, key, params, body, created=False)
        if method == "DELETE":
            if not exists:
                return FakeResponse(404, text="object not found")
            del self.objects[bucket][key]
            return FakeResponse(204)
        return FakeResponse(405, text="method not allowed")

    def _store(
        self, bucket: str, key: str, params: dict[str, Any], body: Any, *, created: bool
    ) -> FakeResponse:
        incoming = body.get("object", {})
        schema = self.schemas.get(bucket)
        values: dict[str, Any] = {}
        existing = self.objects.get(bucket, {}).get(key)
        if existing is not None and params.get("copy") == "true":
            values.update(existing["object"])
        values.update(incoming)
        if schema is not None:
            not_allowed = [f for f in incoming if f not in schema["allowed_fields"]]
            if not_allowed:
                return FakeResponse(400, text=f"fields not allowed: {not_allowed}")
            missing = [f for f in schema["required_fields"] if f not in values]
            if missing:
                return FakeResponse(400, text=f"missing required fields: {missing}")

        self._write(bucket, key, values, body.get("links", []))
        if params.get("returnbody") == "true":
            return FakeResponse(200, self._envelope(bucket, key, params.get("read")))
        headers = {"Location": f"/jiak/{bucket}/{key}"} if created else {}
        return FakeResponse(201 if created else 204, headers=headers)

    def _write(self, bucket: str, key: str, values: dict[str, Any], links: list[Any]) -> None:
        self._clock += 1
        self.objects.setdefault(bucket, {})[key] = {
            "object": copy.deepcopy(values),
            "links": [list(link) for link in links],
            "vclock": f"vclock-{self._clock}",
            "vtag": f"vtag-{self._clock}",
            "lastmod": f"lastmod-{self._clock}",
        }

    def _envelope(self, bucket: str, key: str, read: str | None) -> dict[str, Any]:
        stored = self.objects[bucket][key]
        fields = self._schema(bucket)["read_mask"]
        if read:
            requested = read.split(",")
            fields = [f for f in fields if f in requested]
        return {
            "bucket": bucket,
            "key": key,
            "object": {k: v for k, v in stored["object"].items() if k in fields},
            "links": copy.deepcopy(stored["links"]),
            "vclock": stored["vclock"],
            "vtag": stored["vtag"],
            "lastmod": stored["lastmod"],
        }

    def _walk(self, bucket: str, key: str, specs: list[str]) -> FakeResponse:
        if key not in self.objects.get(bucket, {}):
            return FakeResponse(404, text="object not found")
        current = [(bucket, key)]
        results = []
        for spec in specs:
            b, t, _acc = (spec.split(",") + ["_", "_"])[:3]
            reached: list[tuple[str, str]] = []
            for ob, ok in current:
                for lb, lk, lt in self.objects[ob][ok]["links"]:
                    if b not in ("_", lb) or t not in ("_", lt):
                        continue
                    if lk in self.objects.get(lb, {}) and (lb, lk) not in reached:
                        reached.append((lb, lk))
            results.append([self._envelope(lb, lk, None) for lb, lk in reached])
            current = reached
        return FakeResponse(200, {"results": results})


# --- Fixtures ---


@pytest.fixture
def server():
    return FakeJiakServer()


@pytest.fixture
def gateway(server):
    return StorageGateway(server.base, session=server)


@pytest.fixture
def person_type(gateway):
    """A fresh Person resource type per test, keyed by name and bound to the fake server."""

    class Person(Resource, bucket="people", key=("name",)):
        name: Field[str]
        age: Field[int]

    Person.bind(gateway)
    return Person


@pytest.fixture
def dog_type(gateway):
    """Dogs get server-assigned keys."""

    class Dog(Resource, bucket="dogs"):
        name: Field[str]
        breed: Field[str]
        weight: Field[float] = Field(readable=False)

    Dog.bind(gateway)
    return Dog
