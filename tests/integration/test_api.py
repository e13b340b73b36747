"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/loan", json={"loan_minutes": 10})

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "leisure_settlements_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_requests_are_access_logged(client: TestClient, caplog):
    client.get("/v1/balance", headers={"X-Request-ID": "log-me"})

    records = [r for r in caplog.records if getattr(r, "step", None) == "request"]
    assert records[-1].getMessage() == "GET /v1/balance 200"
    assert records[-1].request_id == "log-me"
    assert 'endpoint="/v1/balance"' in client.get("/metrics").text


def test_balance_starts_empty(client: TestClient):
    response = client.get("/v1/balance")

    assert response.status_code == 200
    assert response.json() == {
        "leisure_available": 0.0,
        "debt_minutes": 0.0,
        "loaned_leisure": 0.0,
        "net_balance": 0.0,
        "total_available": 0.0,
    }


def test_study_session_flow(client: TestClient, run_seconds):
    """Test start study, tick three minutes, stop and settle"""
    response = client.post("/v1/session/study")
    assert response.status_code == 200
    assert response.json()["message"] == "Study session started"

    run_seconds(180)
    session = client.get("/v1/session").json()
    assert session["mode"] == "study"
    assert session["seconds"] == 180
    assert session["is_running"] is True

    response = client.post("/v1/session/stop")
    assert response.status_code == 200
    data = response.json()
    assert data["message_key"] == "earned_leisure"
    assert data["message"] == "You earned 1.5 minutes of leisure"
    assert data["entry"]["type"] == "study"
    assert data["balance"]["leisure_available"] == 1.5

    assert client.get("/v1/session").json()["mode"] == "idle"


def test_start_while_running_conflicts(client: TestClient):
    client.post("/v1/session/study")

    response = client.post("/v1/session/study")

    assert response.status_code == 409
    assert response.json()["detail"] == "A session is already running. Stop it first"


def test_stop_while_idle_conflicts(client: TestClient):
    response = client.post("/v1/session/stop", params={"lang": "es"})

    assert response.status_code == 409
    assert response.json()["detail"] == "No hay ninguna sesión en curso"


def test_leisure_without_balance_conflicts(client: TestClient):
    response = client.post("/v1/session/leisure", json={"use_all": True})

    assert response.status_code == 409
    assert response.json()["detail"] == "Not enough leisure time available"


def test_leisure_request_needs_minutes_or_use_all(client: TestClient):
    response = client.post("/v1/session/leisure", json={})

    assert response.status_code == 422


def test_leisure_exceeding_balance_is_invalid(client: TestClient, set_balance):
    set_balance(leisure_available=5.0)

    response = client.post("/v1/session/leisure", json={"minutes": 6})

    assert response.status_code == 422
    assert response.json()["detail"] == "Requested time exceeds your available leisure"


@pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
def test_leisure_minutes_must_be_finite(client: TestClient, set_balance, raw):
    set_balance(leisure_available=10.0)

    response = client.post(
        "/v1/session/leisure",
        content=f'{{"minutes": {raw}}}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert client.get("/v1/session").json()["mode"] == "idle"


def test_leisure_completion_flow(client: TestClient, run_seconds, set_balance):
    """Test a leisure countdown settles in real time and rings at the end"""
    set_balance(leisure_available=5.0)

    response = client.post("/v1/session/leisure", json={"minutes": 2})
    assert response.status_code == 200
    assert response.json()["message"] == "Leisure session started: 2.0 min"

    run_seconds(60)
    assert client.get("/v1/balance").json()["leisure_available"] == 4.0

    run_seconds(60)
    session = client.get("/v1/session").json()
    assert session["mode"] == "idle"
    assert session["alarm_playing"] is True
    assert session["last_message"] == "Leisure time is over! You used 2.0 minutes"
    assert client.get("/v1/balance").json()["leisure_available"] == 3.0

    response = client.post("/v1/alarm/stop")
    assert response.json() == {"alarm_playing": False}


def test_leisure_stop_flow(client: TestClient, run_seconds, set_balance):
    set_balance(leisure_available=5.0)
    client.post("/v1/session/leisure", json={"minutes": 3})
    run_seconds(90)

    response = client.post("/v1/session/stop")

    assert response.json()["message"] == "You used 1.5 minutes of leisure"
    assert response.json()["balance"]["leisure_available"] == pytest.approx(3.5)


def test_loan_quote(client: TestClient):
    response = client.post("/v1/loan/quote", json={"loan_minutes": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is True
    assert data["repayment_due"] == pytest.approx(22.0)
    assert data["message"] is None


def test_loan_quote_refused_explains_why(client: TestClient):
    response = client.post("/v1/loan/quote", json={"loan_minutes": 40}, headers={"Accept-Language": "fr"})

    data = response.json()
    assert data["allowed"] is False
    assert data["reason"] == "exceeds_debt_limit"
    assert data["message"] == "Dépasse la limite de dette (max 60 min)"


def test_take_loan_then_spend_it(client: TestClient):
    response = client.post("/v1/loan", json={"loan_minutes": 10})
    assert response.status_code == 200
    assert response.json()["message"] == "You borrowed 10.0 minutes. Repay 22.0 minutes of study"

    balance = client.get("/v1/balance").json()
    assert balance["loaned_leisure"] == 10
    assert balance["net_balance"] == pytest.approx(-22.0)
    assert balance["total_available"] == 10

    response = client.post("/v1/session/leisure", json={"use_all": True})
    assert response.status_code == 200


@pytest.mark.parametrize(
    "balance, loan_minutes, status, detail",
    [
        ({"leisure_available": 5.0}, 10, 409, "You cannot borrow while you have a positive balance"),
        ({}, 30, 409, "Exceeds debt limit (max 60 min)"),
        ({}, 0.5, 422, "Minimum loan is 1 minute"),
    ],
)
def test_loan_rejections(client: TestClient, set_balance, balance, loan_minutes, status, detail):
    set_balance(**balance)

    response = client.post("/v1/loan", json={"loan_minutes": loan_minutes})

    assert response.status_code == status
    assert response.json()["detail"] == detail


@pytest.mark.parametrize("path", ["/v1/loan", "/v1/loan/quote"])
@pytest.mark.parametrize("raw", ["NaN", "Infinity"])
def test_loan_minutes_must_be_finite(client: TestClient, path, raw):
    """Test non-finite loan amounts are refused and nothing is booked"""
    response = client.post(
        path,
        content=f'{{"loan_minutes": {raw}}}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert client.get("/v1/balance").json()["debt_minutes"] == 0.0
    assert client.get("/v1/history").json()["entries"] == []


def test_history_lists_newest_first(client: TestClient, run_seconds):
    client.post("/v1/loan", json={"loan_minutes": 1})
    client.post("/v1/session/study")
    run_seconds(60)
    client.post("/v1/session/stop")

    entries = client.get("/v1/history").json()["entries"]

    assert [e["type"] for e in entries] == ["study", "loan"]
    assert entries[0]["debt_reduced"] == 1.0


def test_clear_history_refused_in_debt(client: TestClient):
    client.post("/v1/loan", json={"loan_minutes": 10})

    response = client.delete("/v1/history")

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot clear history while you owe study time"


def test_clear_history(client: TestClient, run_seconds):
    client.post("/v1/session/study")
    run_seconds(60)
    client.post("/v1/session/stop")

    response = client.delete("/v1/history")

    assert response.status_code == 200
    assert response.json()["message"] == "History cleared"
    assert client.get("/v1/history").json()["entries"] == []


def test_config_read_update_reset(client: TestClient):
    assert client.get("/v1/config").json()["config"] == {
        "leisure_factor": 0.5,
        "loan_interest_rate": 0.1,
        "max_debt_limit": 60.0,
    }

    response = client.put("/v1/config", json={"leisure_factor": 0.8})
    assert response.status_code == 200
    assert response.json()["config"]["leisure_factor"] == 0.8
    assert response.json()["message"] == "Settings saved"

    response = client.post("/v1/config/reset")
    assert response.json()["config"]["leisure_factor"] == 0.5
    assert response.json()["message"] == "Settings restored to defaults"


def test_invalid_config_rejected(client: TestClient):
    response = client.put("/v1/config", json={"max_debt_limit": 500})

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid settings: max_debt_limit must be between 0 and 180"
    assert client.get("/v1/config").json()["config"]["max_debt_limit"] == 60.0


def test_reset_balance(client: TestClient):
    client.post("/v1/loan", json={"loan_minutes": 10})

    response = client.post("/v1/balance/reset")

    assert response.status_code == 200
    assert response.json()["message"] == "Balance reset to zero"
    assert client.get("/v1/balance").json()["debt_minutes"] == 0.0
