"""Unit / integration tests for the FastAPI adapter – Paginate dependency and exception mapper."""
from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from pageable.adapters.fastapi import FastAPIExceptionMapper, Paginate

# Imported at module level so FastAPI can resolve string-form annotations
# (from __future__ import annotations makes all hints lazy strings, and
# FastAPI resolves them against the defining module's globals).
from pageable.adapters.fastapi.deps import PaginateDep  # noqa: E402
from pageable.adapters.memory import InMemoryQuerySource
from pageable.application.pagination import CanonicalQuerySpec, ExecutionConfig, QueryExecutor
from pageable.kernel.errors import ConfigError, InfrastructureError

ROWS = [{"id": i, "name": f"item-{i}"} for i in range(1, 13)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_app() -> FastAPI:
    app = FastAPI()
    FastAPIExceptionMapper().register(app)

    @app.get("/items")
    async def items(
        spec: CanonicalQuerySpec = Depends(Paginate(max_size=5, enable_unpaged=True)),
    ) -> dict[str, Any]:
        executor = QueryExecutor(InMemoryQuerySource(ROWS), ExecutionConfig(sortable={"id"}))
        page = await executor.paginate(spec)
        return page.to_dict()

    @app.get("/spec")
    async def echo(spec: PaginateDep) -> dict[str, Any]:
        return spec.to_dict()

    @app.get("/misconfigured")
    async def misconfigured() -> dict[str, Any]:
        raise ConfigError("bad endpoint wiring")

    @app.get("/down")
    async def down() -> dict[str, Any]:
        raise InfrastructureError("database unavailable")

    return app


@pytest.fixture()
def client() -> TestClient:
    return TestClient(make_app(), raise_server_exceptions=False)


def _ids(resp: httpx.Response) -> list[int]:
    return [row["id"] for row in resp.json()["data"]]


# ---------------------------------------------------------------------------
# Paginate dependency
# ---------------------------------------------------------------------------


class TestPaginateDependency:
    def test_defaults(self, client: TestClient) -> None:
        resp = client.get("/items")
        assert resp.status_code == 200
        meta = resp.json()["meta"]
        assert meta["currentPage"] == 1
        assert meta["itemsPerPage"] == 5  # clamped to max_size
        assert meta["totalItems"] == 12
        assert meta["totalPages"] == 3

    def test_page_and_limit(self, client: TestClient) -> None:
        resp = client.get("/items", params={"page": "2", "limit": "2"})
        assert _ids(resp) == [3, 4]
        links = resp.json()["links"]
        assert httpx.URL(links["next"]).params["page"] == "3"
        assert httpx.URL(links["previous"]).params["page"] == "1"
        assert httpx.URL(links["last"]).params["page"] == "6"

    def test_limit_above_max_size_is_clamped(self, client: TestClient) -> None:
        assert client.get("/items", params={"limit": "50"}).json()["meta"]["itemsPerPage"] == 5

    def test_malformed_values_fall_back(self, client: TestClient) -> None:
        resp = client.get("/items", params={"page": "abc", "limit": "-1", "sortBy": "property[id];direction[up]"})
        assert resp.status_code == 200
        assert resp.json()["meta"]["currentPage"] == 1
        assert resp.json()["meta"]["sortBy"] == []

    def test_sort(self, client: TestClient) -> None:
        resp = client.get("/items", params={"sortBy": "property[id];direction[desc];"})
        assert _ids(resp) == [12, 11, 10, 9, 8]
        assert resp.json()["meta"]["sortBy"] == [{"property": "id", "direction": "desc"}]

    def test_unsortable_field_dropped(self, client: TestClient) -> None:
        resp = client.get("/items", params={"sortBy": "property[name];direction[desc];"})
        assert resp.json()["meta"]["sortBy"] == []
        assert _ids(resp) == [1, 2, 3, 4, 5]

    def test_repeated_filter_keys(self, client: TestClient) -> None:
        resp = client.get("/items", params=[("filter[id]", "$gte:2"), ("filter[id]", "$lte:3")])
        assert _ids(resp) == [2, 3]
        assert resp.json()["meta"]["filter"] == {
            "id": [{"operator": "$gte", "operand": "2"}, {"operator": "$lte", "operand": "3"}]
        }

    def test_unpaged(self, client: TestClient) -> None:
        resp = client.get("/items", params={"unpaged": "true"})
        assert len(resp.json()["data"]) == 12
        assert resp.json()["meta"]["unpaged"] is True
        assert "limit" not in httpx.URL(resp.json()["links"]["current"]).params

    def test_default_dependency(self, client: TestClient) -> None:
        body = client.get("/spec", params={"page": "3", "unpaged": "true"}).json()
        assert body["currentPage"] == 3
        assert body["offset"] == 20
        assert body["unpaged"] is False
        assert body["url"].startswith("http://testserver/spec?")

    def test_defaults_and_options_are_exclusive(self) -> None:
        with pytest.raises(TypeError):
            Paginate({"maxSize": 5}, enable_sort=False)


# ---------------------------------------------------------------------------
# FastAPIExceptionMapper
# ---------------------------------------------------------------------------


class TestFastAPIExceptionMapper:
    def test_unknown_field_is_400(self, client: TestClient) -> None:
        resp = client.get("/items", params={"filter[nope]": "1"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "unknown_field"
        assert body["detail"] == {"field": "nope"}

    def test_invalid_operand_is_400(self, client: TestClient) -> None:
        resp = client.get("/items", params={"filter[id]": "$gt:abc"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_operand"
        assert "cause" not in resp.json()

    def test_config_error_is_500(self, client: TestClient) -> None:
        resp = client.get("/misconfigured")
        assert resp.status_code == 500
        assert resp.json()["code"] == "config_error"

    def test_infrastructure_error_is_503(self, client: TestClient) -> None:
        resp = client.get("/down")
        assert resp.status_code == 503
        assert resp.json()["message"] == "database unavailable"
