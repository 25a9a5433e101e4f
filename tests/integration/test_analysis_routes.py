import pytest

from app.config import settings


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

    resp = await client.get("/api/v1/ready")
    assert resp.json()["db_connected"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_run_analysis(client):
    resp = await client.post("/api/v1/analysis", json={"stocks": [{"ticker": "TCS", "quantity": 10}]})

    assert resp.status_code == 200
    data = resp.json()
    sells = [a for a in data["analysis"]["advice"] if a["type"] == "SELL"]
    assert len(sells) == 1
    assert sells[0]["ticker"] == "TCS"
    assert sells[0]["confidence"] == "High"
    assert data["analysis"]["total_value"] == 35000
    assert data["analysis"]["portfolio_id"] == "default"
    assert [q["ticker"] for q in data["stock_data"]] == ["TCS"]
    assert data["usage"]["credits_remaining"] == settings.DAILY_CREDIT_LIMIT - 1
    assert data["failed_tickers"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failed_ticker_reported(client):
    resp = await client.post("/api/v1/analysis", json={
        "stocks": [{"ticker": "TCS", "quantity": 1}, {"ticker": "UNKNOWN", "quantity": 1}],
    })

    assert resp.status_code == 200
    assert resp.json()["failed_tickers"] == ["UNKNOWN"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_empty_stocks_is_bad_request(client, quote_provider):
    resp = await client.post("/api/v1/analysis", json={"stocks": []})

    assert resp.status_code == 400
    assert quote_provider.calls == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_quota_exhaustion_returns_403(client):
    body = {"stocks": [{"ticker": "INFY", "quantity": 1}]}
    for _ in range(settings.DAILY_CREDIT_LIMIT):
        resp = await client.post("/api/v1/analysis", json=body)
        assert resp.status_code == 200

    resp = await client.post("/api/v1/analysis", json=body)

    assert resp.status_code == 403
    detail = resp.json()["detail"]
    assert detail["message"] == "No credits remaining. Please upgrade your plan."
    assert detail["code"] == "QUOTA_EXCEEDED"
    assert detail["usage"]["credits_remaining"] == 0

    usage = (await client.get("/api/v1/usage")).json()
    assert usage["today"]["analyses_performed"] == settings.DAILY_CREDIT_LIMIT


@pytest.mark.asyncio
@pytest.mark.integration
async def test_latest_analysis(client):
    resp = await client.get("/api/v1/analysis/latest", params={"portfolio_id": "p1"})
    assert resp.status_code == 404

    created = await client.post("/api/v1/analysis", json={
        "stocks": [{"ticker": "HDFCBANK", "quantity": 3}],
        "portfolio_id": "p1",
    })
    resp = await client.get("/api/v1/analysis/latest", params={"portfolio_id": "p1"})

    assert resp.status_code == 200
    assert resp.json()["id"] == created.json()["analysis"]["id"]
