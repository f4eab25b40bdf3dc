"""Tests for the FastAPI application.

WHY: The HTTP API is the boundary the studio front end talks to. Status
codes, the compile status snapshot and the package download headers are
the contract it depends on.

HOW: Each test gets a fresh worker (over InMemoryStorage, with a mocked
Keyman API) patched into the app module, with the compile status tracker
re-attached to it. FastAPI TestClient drives the endpoints synchronously.

RULES:
- The Keyman API is never called over the network
- No state leaks between tests (fresh worker and tracker per test)
"""

from __future__ import annotations

import io
import zipfile
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from predictive_text_studio.server import app as app_module
from predictive_text_studio.server.app import app, compile_status
from predictive_text_studio.storage.memory import InMemoryStorage
from predictive_text_studio.worker.impl import PredictiveTextStudioWorkerImpl


@pytest.fixture
def test_worker(fake_keyman_api, clock):
    worker = PredictiveTextStudioWorkerImpl(
        storage=InMemoryStorage(clock=clock),
        keyman_api=fake_keyman_api,
        clock=clock,
    )
    compile_status.reset()
    compile_status.attach(worker)
    with patch.object(app_module, "worker", worker):
        yield worker
    compile_status.reset()


@pytest.fixture
def client(test_worker):
    return TestClient(app)


@pytest.fixture
def tagged_client(client):
    resp = client.patch("/project", json={
        "languages": [{"name": "SENĆOŦEN", "id": "str-Latn"}],
        "author_name": "Eddie",
    })
    assert resp.status_code == 200
    return client


def _upload(name: str, content: bytes):
    return {"file": (name, io.BytesIO(content), "application/octet-stream")}


# ---------------------------------------------------------------------------
# POST /sources
# ---------------------------------------------------------------------------


class TestAddDictionarySource:

    def test_upload_tsv_compiles(self, tagged_client, sample_tsv_bytes):
        resp = tagged_client.post("/sources", files=_upload("words.tsv", sample_tsv_bytes))
        assert resp.status_code == 201
        body = resp.json()
        assert body["name"] == "words.tsv"
        assert body["words_added"] == 2
        assert body["compile"]["status"] == "compile_succeeded"
        assert body["compile"]["package_size"] > 0

    def test_upload_xlsx(self, tagged_client, make_xlsx, word_rows):
        resp = tagged_client.post("/sources", files=_upload("words.xlsx", make_xlsx(word_rows)))
        assert resp.status_code == 201
        assert resp.json()["words_added"] == 3

    def test_upload_without_tag_reports_compile_failure(self, client, sample_tsv_bytes):
        resp = client.post("/sources", files=_upload("words.tsv", sample_tsv_bytes))
        assert resp.status_code == 201
        compile_info = resp.json()["compile"]
        assert compile_info["status"] == "compile_failed"
        assert "BCP-47" in compile_info["error"]

    def test_unsupported_extension(self, client):
        resp = client.post("/sources", files=_upload("words.pdf", b"%PDF"))
        assert resp.status_code == 400
        assert ".pdf" in resp.json()["detail"]

    def test_malformed_word_list(self, tagged_client):
        resp = tagged_client.post("/sources", files=_upload("words.tsv", b"w\tc\na\t-3\n"))
        assert resp.status_code == 422
        assert "non-negative integer" in resp.json()["detail"]

    def test_undecodable_tsv(self, tagged_client):
        resp = tagged_client.post("/sources", files=_upload("words.tsv", b"word\tcount\n\xff\t3\n"))
        assert resp.status_code == 422
        assert "cannot decode" in resp.json()["detail"]

    def test_word_list_without_words(self, tagged_client):
        resp = tagged_client.post("/sources", files=_upload("words.tsv", b"word\tcount\n"))
        assert resp.status_code == 500

    def test_path_components_stripped(self, tagged_client, sample_tsv_bytes):
        resp = tagged_client.post("/sources", files=_upload("../../etc/words.tsv", sample_tsv_bytes))
        assert resp.status_code == 201
        assert resp.json()["name"] == "words.tsv"


class TestOtherSources:

    def test_manual_entry(self, tagged_client):
        resp = tagged_client.post("/sources/manual", json={
            "name": "manual",
            "data": [{"word": "a", "count": 3}, {"word": "b"}],
        })
        assert resp.status_code == 201
        assert resp.json()["words_added"] == 2

    def test_manual_entry_bad_count(self, tagged_client):
        resp = tagged_client.post("/sources/manual", json={
            "name": "manual",
            "data": [{"word": "a", "count": "many"}],
        })
        assert resp.status_code == 422

    def test_google_sheet(self, tagged_client):
        resp = tagged_client.post("/sources/google-sheet", json={
            "name": "Sheet1",
            "wordlist": [["a", 2], ["b"]],
        })
        assert resp.status_code == 201
        assert resp.json()["words_added"] == 2

    def test_list_sources(self, tagged_client, sample_tsv_bytes):
        tagged_client.post("/sources", files=_upload("words.tsv", sample_tsv_bytes))
        resp = tagged_client.get("/sources")
        assert resp.status_code == 200
        assert resp.json() == [{"name": "words.tsv", "word_count": 2}]


# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------


class TestProject:

    def test_defaults(self, client):
        body = client.get("/project").json()
        assert body["author_name"] == "UnknownAuthor"
        assert body["version"] == "1.0.0"
        assert body["bcp47_tag"] == ""

    def test_patch_merges(self, tagged_client):
        resp = tagged_client.patch("/project", json={"copyright": "© Eddie"})
        body = resp.json()
        assert body["bcp47_tag"] == "str-Latn"
        assert body["copyright"] == "© Eddie"
        assert body["model_id"] == "Eddie.str-Latn.SENĆOŦEN"

    def test_put_bcp47_recompiles(self, client, sample_tsv_bytes):
        client.post("/sources", files=_upload("words.tsv", sample_tsv_bytes))
        resp = client.put("/project/bcp47", json={"bcp47_tag": "str-Latn"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "compile_succeeded"
        assert client.get("/project").json()["bcp47_tag"] == "str-Latn"

    def test_put_empty_bcp47_rejected(self, client):
        resp = client.put("/project/bcp47", json={"bcp47_tag": ""})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Package
# ---------------------------------------------------------------------------


class TestPackage:

    def test_no_package_yet(self, client):
        assert client.get("/package").status_code == 404

    def test_download(self, tagged_client, sample_tsv_bytes):
        tagged_client.post("/sources", files=_upload("words.tsv", sample_tsv_bytes))
        resp = tagged_client.get("/package")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/octet-stream"
        assert resp.headers["content-disposition"] == (
            "attachment; filename*=utf-8''Eddie.str-Latn.SEN%C4%86O%C5%A6EN.kmp"
        )
        names = zipfile.ZipFile(io.BytesIO(resp.content)).namelist()
        assert "kmp.json" in names

    def test_status_idle_initially(self, client):
        assert client.get("/package/status").json()["status"] == "idle"


# ---------------------------------------------------------------------------
# Catalog, lifespan, health
# ---------------------------------------------------------------------------


class TestCatalog:

    def test_empty_without_startup(self, client):
        assert client.get("/catalog").json() == []

    def test_startup_fills_catalog(self, test_worker):
        with TestClient(app) as client:
            catalog = client.get("/catalog").json()
        assert [entry["bcp47_tag"] for entry in catalog] == ["str-Latn", "cr"]

    def test_startup_survives_catalog_failure(self, test_worker, fake_keyman_api):
        fake_keyman_api.fetch_language_data.side_effect = httpx.ConnectError("offline")
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert client.get("/catalog").json() == []


class TestHealthCheck:

    def test_health_returns_ok(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["version"] == "0.1.0"


class TestOpenAPISchema:

    def test_all_endpoints_in_schema(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert "post" in paths["/sources"]
        assert "get" in paths["/sources"]
        assert "/sources/manual" in paths
        assert "/sources/google-sheet" in paths
        assert {"get", "patch"} <= set(paths["/project"])
        assert "put" in paths["/project/bcp47"]
        assert "/package" in paths
        assert "/package/status" in paths
        assert "/catalog" in paths
        assert "/health" in paths

    def test_schema_has_tags(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        for path, methods in paths.items():
            for method, spec in methods.items():
                assert "tags" in spec, "Missing tags for {} {}".format(method.upper(), path)
