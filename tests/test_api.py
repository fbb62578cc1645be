"""
Test the claim/update HTTP endpoint.
"""

import json

import pytest
from fastapi.testclient import TestClient

from zscan_sync.config import Settings
from zscan_sync.main import create_app
from zscan_sync.services import admin


@pytest.fixture
def client(store, tmp_path):
    settings = Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'zscan.db'}",
        BCRYPT_ROUNDS=4,
        MAX_CONTENT_LENGTH=4096,
    )
    with TestClient(create_app(settings=settings, store=store)) as client:
        yield client


def claim_body(dsname="abc123", dspass="s3cret!"):
    return {"verb": "claim", "dsname": dsname, "dspass": dspass}


def update_body(recset, dsname="abc123", dspass="s3cret!"):
    return {"verb": "update", "dsname": dsname, "dspass": dspass, "recset": recset}


class TestClaimUpdateFlow:
    """Claim, update and re-claim over HTTP."""

    def test_full_round_trip(self, client, store, waiting_dataset):
        response = client.post("/zscan", json=claim_body())
        assert response.status_code == 200
        assert response.json() == []

        response = client.post(
            "/zscan",
            json=update_body(
                [[0, "9780306406157", 1000, False], [1, "9780140449136", 1001, True]]
            ),
        )
        assert response.status_code == 200
        assert response.text == "Updated.\n"
        assert response.headers["content-type"].startswith("text/plain")

        admin.set_mode(store, waiting_dataset, "wait")
        response = client.post("/zscan", json=claim_body(dspass="new-device"))

        assert response.status_code == 200
        assert response.json() == [
            [0, "9780306406157", 1000, False],
            [1, "9780140449136", 1001, True],
        ]

    def test_second_claim_forbidden(self, client, waiting_dataset):
        assert client.post("/zscan", json=claim_body()).status_code == 200

        response = client.post("/zscan", json=claim_body(dspass="other"))

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["status"] == "rejected"
        assert detail["code"] == "NOT_CLAIMABLE"

    def test_empty_update_succeeds(self, client, waiting_dataset):
        response = client.post("/zscan", json=update_body([]))

        assert response.status_code == 200
        assert response.text == "Updated.\n"

    def test_wrong_passcode_forbidden(self, client, waiting_dataset):
        client.post("/zscan", json=claim_body())

        response = client.post(
            "/zscan",
            json=update_body([[0, "9780306406157", 1000, False]], dspass="guess"),
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "AUTH_FAILURE"

    def test_integral_floats_accepted(self, client, store, waiting_dataset):
        client.post("/zscan", json=claim_body())

        response = client.post(
            "/zscan", json=update_body([[3.0, "9780306406157", 1000.0, False]])
        )

        assert response.status_code == 200
        [entry] = admin.query_records(store, waiting_dataset)
        assert (entry.sequence, entry.timestamp) == (3, 1000)
        assert isinstance(entry.timestamp, int)

    def test_update_missing_dataset_forbidden(self, client):
        response = client.post(
            "/zscan",
            json=update_body([[0, "9780306406157", 1000, False]], dsname="nosuchset"),
        )

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "NOT_FOUND"


class TestBadRequests:

    def test_invalid_json(self, client):
        response = client.post(
            "/zscan", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "FORMAT_ERROR"

    @pytest.mark.parametrize(
        "body",
        [
            {"verb": "delete", "dsname": "abc123", "dspass": "s3cret!"},
            {"dsname": "abc123", "dspass": "s3cret!"},
            {"verb": "claim", "dsname": "abc123"},
            {"verb": "update", "dsname": "abc123", "dspass": "s3cret!"},
            [1, 2, 3],
        ],
    )
    def test_malformed_request_shape(self, client, waiting_dataset, body):
        assert client.post("/zscan", json=body).status_code == 400

    @pytest.mark.parametrize(
        "record",
        [
            [0, "9780306406158", 1000, False],
            [0, "97803064061", 1000, False],
            [-1, "9780306406157", 1000, False],
            [0, "9780306406157", 2**31, False],
            [True, "9780306406157", 1000, False],
            [0, "9780306406157", 1000, 1],
            [0, "9780306406157", 1000.5, False],
            [0.5, "9780306406157", 1000, False],
            [0, "9780306406157", 1000],
        ],
    )
    def test_invalid_record(self, client, store, waiting_dataset, dump, record):
        client.post("/zscan", json=claim_body())
        before = dump()

        response = client.post("/zscan", json=update_body([record]))

        assert response.status_code == 400
        assert dump() == before

    def test_duplicate_sequence(self, client, waiting_dataset, dump):
        client.post("/zscan", json=claim_body())
        before = dump()

        response = client.post(
            "/zscan",
            json=update_body(
                [[3, "9780306406157", 1000, False], [3, "9780140449136", 1001, False]]
            ),
        )

        assert response.status_code == 400
        assert "used twice" in response.json()["detail"]["message"]
        assert dump() == before

    def test_bad_dataset_name(self, client):
        response = client.post("/zscan", json=claim_body(dsname="bad name"))

        assert response.status_code == 400

    def test_empty_body(self, client):
        assert client.post("/zscan", content=b"").status_code == 400

    def test_body_over_limit(self, client, waiting_dataset):
        body = json.dumps(claim_body(dspass="x" * 5000)).encode()

        assert client.post("/zscan", content=body).status_code == 400

    def test_get_not_allowed(self, client):
        assert client.get("/zscan").status_code == 405


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
