"""
Tests for the royalty ledger HTTP API (src/api/royalty.py, src/api/monitoring.py)

Uses the Flask test client over a fresh contract per test.
"""

import threading

import pytest

CREATOR = {"caller": "ST1TEST", "block_height": 0}

AGREEMENT = {
    "asset_id": 1,
    "rate": 500,
    "expiration": 100,
    "currency": "STX",
    "min_rate": 100,
    "max_rate": 2000,
}


@pytest.fixture
def authorized_client(flask_client):
    response = flask_client.post(
        "/royalty/parameters/authority", json={**CREATOR, "authority": "ST2TEST"}
    )
    assert response.status_code == 200
    return flask_client


@pytest.fixture
def agreement_client(authorized_client):
    response = authorized_client.post("/royalty/agreements", json={**CREATOR, **AGREEMENT})
    assert response.status_code == 201
    return authorized_client


class TestParametersEndpoints:

    def test_get_parameters(self, flask_client):
        response = flask_client.get("/royalty/parameters")

        assert response.status_code == 200
        data = response.get_json()
        assert data["min_rate"] == 100
        assert data["authority"] is None

    def test_authority_set_once(self, authorized_client):
        response = authorized_client.post(
            "/royalty/parameters/authority", json={**CREATOR, "authority": "ST9OTHER"}
        )

        assert response.status_code == 403
        assert response.get_json()["error"] == "already_set"

    def test_set_min_rate_without_authority(self, flask_client):
        response = flask_client.post("/royalty/parameters/min-rate", json={**CREATOR, "value": 200})

        assert response.status_code == 403
        assert response.get_json()["error"] == "not_authorized"

    def test_invalid_rate_bound(self, authorized_client):
        response = authorized_client.post("/royalty/parameters/max-rate", json={**CREATOR, "value": 50})

        assert response.status_code == 400
        assert response.get_json()["code"] == 113

    def test_set_payment_asset(self, authorized_client):
        response = authorized_client.post(
            "/royalty/parameters/payment-asset", json={**CREATOR, "asset": "SP1.usd"}
        )

        assert response.status_code == 200
        assert authorized_client.get("/royalty/parameters").get_json()["payment_asset"] == "SP1.usd"


class TestAgreementEndpoints:

    def test_create_returns_id(self, authorized_client):
        response = authorized_client.post("/royalty/agreements", json={**CREATOR, **AGREEMENT})

        assert response.status_code == 201
        assert response.get_json() == {"ok": True, "value": 0}

    def test_create_without_authority(self, flask_client):
        response = flask_client.post("/royalty/agreements", json={**CREATOR, **AGREEMENT})

        assert response.status_code == 403
        assert response.get_json()["error"] == "authority_not_verified"

    def test_missing_call_context(self, authorized_client):
        response = authorized_client.post("/royalty/agreements", json=AGREEMENT)

        assert response.status_code == 400
        assert "caller" in response.get_json()["error"]

    def test_wrong_field_type(self, authorized_client):
        response = authorized_client.post(
            "/royalty/agreements", json={**CREATOR, **AGREEMENT, "rate": "500"}
        )

        assert response.status_code == 400

    def test_negative_block_height(self, authorized_client):
        response = authorized_client.post(
            "/royalty/agreements", json={**AGREEMENT, "caller": "ST1TEST", "block_height": -1}
        )

        assert response.status_code == 400

    def test_get_agreement(self, agreement_client):
        response = agreement_client.get("/royalty/agreements/0")

        assert response.status_code == 200
        data = response.get_json()
        assert data["creator"] == "ST1TEST"
        assert data["rate"] == 500
        assert data["recipients"] == []
        assert data["last_update"] is None

    def test_get_unknown_agreement(self, flask_client):
        response = flask_client.get("/royalty/agreements/7")

        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"

    def test_update_agreement(self, agreement_client):
        response = agreement_client.patch(
            "/royalty/agreements/0", json={"caller": "ST1TEST", "block_height": 3, "rate": 600, "expiration": 200}
        )

        assert response.status_code == 200
        update = agreement_client.get("/royalty/agreements/0/update").get_json()
        assert update["update_rate"] == 600
        assert update["update_timestamp"] == 3

    def test_update_by_stranger(self, agreement_client):
        response = agreement_client.patch(
            "/royalty/agreements/0", json={"caller": "ST4FAKE", "block_height": 0, "rate": 600, "expiration": 200}
        )

        assert response.status_code == 403

    def test_no_update_recorded(self, agreement_client):
        assert agreement_client.get("/royalty/agreements/0/update").status_code == 404

    def test_count(self, agreement_client):
        agreement_client.post("/royalty/agreements", json={**CREATOR, **AGREEMENT, "asset_id": 2})

        assert agreement_client.get("/royalty/count").get_json()["value"] == 2


class TestRecipientAndTierEndpoints:

    def test_add_recipient(self, agreement_client):
        response = agreement_client.post(
            "/royalty/agreements/0/recipients",
            json={**CREATOR, "recipient": "ST3TEST", "percentage": 2000, "slot_index": 0},
        )

        assert response.status_code == 200
        data = agreement_client.get("/royalty/agreements/0").get_json()
        assert data["recipients"] == [{"slot_index": 0, "recipient": "ST3TEST", "percentage": 2000}]

    def test_add_recipient_invalid_percentage(self, agreement_client):
        response = agreement_client.post(
            "/royalty/agreements/0/recipients",
            json={**CREATOR, "recipient": "ST3TEST", "percentage": 0, "slot_index": 0},
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_percentage"

    def test_add_tier(self, agreement_client):
        response = agreement_client.post(
            "/royalty/agreements/0/tiers",
            json={**CREATOR, "tier_index": 1, "threshold": 1000, "rate": 600},
        )

        assert response.status_code == 200
        data = agreement_client.get("/royalty/agreements/0").get_json()
        assert data["tiers"] == [{"tier_index": 1, "threshold": 1000, "rate": 600}]


class TestDistributionEndpoints:

    def test_distribute(self, agreement_client):
        response = agreement_client.post(
            "/royalty/agreements/0/distribute",
            json={"caller": "ST5BUYER", "block_height": 50, "sale_amount": 10000},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["value"] == 500
        assert data["transfers"][0]["from"] == "ST5BUYER"
        assert data["transfers"][0]["to"] == "ST1TEST"
        assert data["settlement"] is None

    def test_distribute_expired(self, agreement_client):
        response = agreement_client.post(
            "/royalty/agreements/0/distribute",
            json={"caller": "ST5BUYER", "block_height": 150, "sale_amount": 10000},
        )

        assert response.status_code == 409
        assert response.get_json()["error"] == "expired"

    def test_distribute_and_settle(self, agreement_client):
        agreement_client.post("/royalty/balances/ST5BUYER/mint", json={"amount": 1000})

        response = agreement_client.post(
            "/royalty/agreements/0/distribute",
            json={"caller": "ST5BUYER", "block_height": 50, "sale_amount": 10000, "settle": True},
        )

        assert response.status_code == 200
        assert response.get_json()["settlement"][0]["status"] == "applied"
        assert agreement_client.get("/royalty/balances/ST5BUYER").get_json()["balance"] == 500
        assert agreement_client.get("/royalty/balances/ST1TEST").get_json()["balance"] == 500

    def test_events_listed(self, agreement_client):
        data = agreement_client.get("/royalty/events").get_json()

        assert data["count"] == 2
        assert data["events"][-1]["event_type"] == "create_royalty"

    @pytest.mark.parametrize("limit,expected", [
        (0, []),
        (1, ["create_royalty"]),
        (5, ["set_authority", "create_royalty"]),
        (-3, []),
    ])
    def test_events_limit(self, agreement_client, limit, expected):
        data = agreement_client.get(f"/royalty/events?limit={limit}").get_json()

        assert data["count"] == 2
        assert [event["event_type"] for event in data["events"]] == expected


class TestConcurrentAccess:
    """The threaded dev server may run reads alongside writes."""

    def test_reads_during_recipient_writes(self, agreement_client):
        app = agreement_client.application
        done = threading.Event()
        write_statuses = []

        def write():
            writer = app.test_client()
            try:
                for slot in range(200):
                    write_statuses.append(writer.post(
                        "/royalty/agreements/0/recipients",
                        json={**CREATOR, "recipient": "ST3TEST", "percentage": 100, "slot_index": slot},
                    ).status_code)
                    write_statuses.append(writer.post(
                        "/royalty/agreements/0/tiers",
                        json={**CREATOR, "tier_index": slot + 1, "threshold": 1000, "rate": 600},
                    ).status_code)
            finally:
                done.set()

        reader = app.test_client()
        thread = threading.Thread(target=write)
        thread.start()
        read_statuses = []
        while not done.is_set():
            read_statuses.append(reader.get("/royalty/agreements/0").status_code)
            read_statuses.append(reader.get("/metrics/json").status_code)
        thread.join()

        assert set(read_statuses) <= {200}
        assert set(write_statuses) == {200}
        data = reader.get("/royalty/agreements/0").get_json()
        assert len(data["recipients"]) == 200
        assert len(data["tiers"]) == 200

    def test_lazy_contract_built_once(self, monkeypatch):
        from api import state

        monkeypatch.setattr(state, "contract", None)
        barrier = threading.Barrier(8)
        built = []

        def first_use():
            barrier.wait()
            built.append(state.get_contract())

        threads = [threading.Thread(target=first_use) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(built) == 8
        assert all(contract is built[0] for contract in built)


class TestMonitoringEndpoints:

    def test_health(self, agreement_client):
        data = agreement_client.get("/health").get_json()

        assert data["status"] == "healthy"
        assert data["agreements"] == 1
        assert data["authority_set"] is True

    def test_prometheus_metrics(self, agreement_client):
        response = agreement_client.get("/metrics")

        assert response.status_code == 200
        assert "royalty_agreements" in response.get_data(as_text=True)

    def test_json_metrics(self, flask_client):
        data = flask_client.get("/metrics/json").get_json()

        assert "counters" in data
        assert "gauges" in data
