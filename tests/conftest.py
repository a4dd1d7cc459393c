"""Shared pytest fixtures for all tests."""

import copy
import fnmatch
import json
import pytest
import httpx
from urllib.parse import unquote
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from category_api.core.category_cache import CategoryCache
from category_api.core.category_client import CategoryClient
from category_api.core.category_paths import resolve_or_none
from category_api.core.category_repo import CategoryRepo
from category_api.core.category_service import CategoryService
from category_api.core.category_tree import load_tree
from category_api.deps import get_category_service
from category_api.main import app

BACKEND_URL = "http://backend.test/api/v1"

SAMPLE_TREE = [
    {
        "id": 1,
        "name": "Electronics",
        "icon": "laptop",
        "color": "blue",
        "sort_order": 1000,
        "subcategories": [
            {
                "id": 2,
                "name": "Phones",
                "sort_order": 1000,
                "subcategories": [
                    {
                        "id": 4,
                        "name": "Smartphones",
                        "sort_order": 1000,
                        "attributes": [
                            {"key": "brand", "label": "Brand", "type": "array",
                             "required": True, "options": ["Apple", "Samsung"]},
                            {"key": "storage", "label": "Storage (GB)", "type": "number"},
                        ],
                    },
                    {"id": 5, "name": "Feature Phones", "sort_order": 2000},
                ],
            },
            {
                "id": 3,
                "name": "Laptops",
                "sort_order": 2000,
                "attributes": [
                    {"key": "ram", "label": "RAM", "type": "number", "required": True},
                ],
            },
        ],
    },
    {
        "id": 6,
        "name": "Vehicles",
        "icon": "car",
        "is_featured": True,
        "sort_order": 2000,
        "subcategories": [
            {"id": 7, "name": "Cars", "sort_order": 1000},
        ],
    },
    {"id": 8, "name": "Real Estate", "sort_order": 3000},
]


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (get/set/delete/scan_iter/ping)."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match="*"):
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        self._check()
        return True


class FakeBackend:
    """Categories REST backend served through httpx.MockTransport.

    Writes are recorded, not applied; reads always answer from `tree_data`.
    """

    prefix = "/api/v1/categories"

    def __init__(self, tree_data):
        self.tree_data = tree_data
        self.requests = []
        self.fail_status = None
        self.next_id = 100

    @property
    def writes(self):
        return [r for r in self.requests if r[0] != "GET"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        raw_path = request.url.raw_path.decode().split("?")[0]
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, raw_path, body))

        if self.fail_status:
            return httpx.Response(self.fail_status, text="backend unavailable")

        rest = raw_path[len(self.prefix):].lstrip("/")
        rest = "/".join(unquote(segment) for segment in rest.split("/"))
        if request.method == "GET" and not rest:
            return httpx.Response(200, json={"success": True, "data": self.tree_data})
        if request.method == "POST":
            return httpx.Response(201, json={"success": True, "data": {**body, "id": self.next_id}})

        node = resolve_or_none(load_tree(self.tree_data), rest)
        if node is None:
            return httpx.Response(404, json={"success": False, "message": "Category not found"})
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "data": node.to_dict()})
        if request.method == "PUT":
            return httpx.Response(200, json={"success": True, "data": {**node.to_dict(), **body}})
        return httpx.Response(204)


@pytest.fixture
def tree_data():
    """Nested category dicts in the backend's wire format."""
    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def tree(tree_data):
    """Sample forest: Electronics (Phones, Laptops), Vehicles (Cars), Real Estate."""
    return load_tree(tree_data)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def backend(tree_data):
    return FakeBackend(tree_data)


@pytest.fixture
def category_client(backend):
    """CategoryClient wired to the fake backend."""
    return CategoryClient(
        base_url=BACKEND_URL,
        api_token="secret-token",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def cache(fake_redis):
    return CategoryCache(fake_redis, ttl=3600)


@pytest.fixture
def service(category_client, cache):
    """CategoryService over the fake backend and fake Redis."""
    return CategoryService(CategoryRepo(category_client, cache))


@pytest.fixture
def api_client(service):
    """TestClient with the category service dependency overridden.

    Not entered as a context manager, so the app lifespan (and the real
    Redis/backend clients it closes) never runs.
    """
    app.dependency_overrides[get_category_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
