"""
API tests for the /reports endpoints.

Payloads use the camelCase wire format; month inference is pinned to
2025-12-01 through settings.reference_date.
"""
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def pinned_today(monkeypatch):
    monkeypatch.setattr(settings, "reference_date", "2025-12-01")


def dataset(file_name, platform, rows):
    return {
        "meta": {"id": file_name, "platform": platform, "label": file_name, "fileName": file_name},
        "rows": rows,
    }


DATASETS = [
    dataset("relatorio-meta-nov.csv", "meta", [
        {"platform": "meta", "date": "2025-11-04", "accountName": "Kia", "spend": 1000, "conversions": 10},
    ]),
    dataset("kia-google-nov.csv", "google", [
        {"platform": "google", "date": "2025-11-03", "accountName": "Kia", "campaignName": "Busca",
         "spend": 300, "conversions": 3, "campaignBudget": 50},
    ]),
    dataset("relatorio-meta-out.csv", "meta", [
        {"platform": "meta", "date": "2025-10-04", "accountName": "Kia", "spend": 500, "conversions": 20},
    ]),
]


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_aggregate():
    payload = {
        "primaryRows": [
            {"platform": "meta", "date": "2025-11-01", "campaignName": "A", "spend": 100, "conversions": 4},
            {"platform": "meta", "date": "2025-11-02", "campaignName": "B", "spend": 300, "revenue": 600},
            {"platform": "meta", "date": "2025-12-05", "campaignName": "A", "spend": 999},
        ],
        "groupBy": "campaign",
        "dateRange": {"start": "2025-11-01", "end": "2025-11-30"},
        "filters": {"campaigns": ["A", "B"]},
    }

    response = client.post("/reports/aggregate", json=payload)

    assert response.status_code == 200
    body = response.json()
    rows = body["result"]["rows"]
    assert [r["name"] for r in rows] == ["B", "A"]
    assert rows[0]["roas"] == 2
    assert rows[1]["cpa"] == 25
    assert rows[1]["weeklyData"][0]["weekStart"] == "2025-10-27"
    assert body["result"]["totals"]["spend"] == 400
    assert body["entityCounts"]["campaigns"] == 2
    assert body["secondaryEntityCounts"] is None


def test_aggregate_rejects_unknown_group_by():
    response = client.post("/reports/aggregate", json={"groupBy": "region"})
    assert response.status_code == 422


def test_filter_options():
    rows = [
        {"platform": "meta", "accountName": "Kia", "campaignName": "K1", "date": "2025-11-01"},
        {"platform": "meta", "accountName": "Suzuki", "campaignName": "S1", "date": "2025-11-01"},
    ]

    response = client.post("/reports/filter-options", json={"rows": rows, "filters": {"accounts": ["Kia"]}})

    assert response.status_code == 200
    assert response.json() == {
        "accounts": ["Kia"],
        "campaigns": ["K1"],
        "adGroups": [],
        "creatives": [],
    }


def test_months():
    response = client.post("/reports/months", json={"datasets": DATASETS})

    assert response.status_code == 200
    months = response.json()
    assert [m["id"] for m in months] == ["nov-2025", "out-2025"]
    assert months[0]["label"] == "Novembro 2025"
    assert months[0]["hasGoogle"] is True
    assert months[0]["metaDatasetCount"] == 1


def test_google_months():
    response = client.post("/reports/google-months", json={"datasets": DATASETS})

    assert response.status_code == 200
    (nov,) = response.json()
    assert nov["id"] == "nov-2025"
    assert nov["accounts"] == ["Kia"]
    assert nov["rowCount"] == 1
    assert nov["dateRange"] == {"start": "2025-11-03", "end": "2025-11-09"}


def test_unified_compare():
    payload = {"datasets": DATASETS, "monthId": "nov-2025", "comparisonMonthId": "out-2025", "mode": "compare"}

    response = client.post("/reports/unified", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert [(r["name"], r["platform"]) for r in body["rows"]] == [("Kia", "meta"), ("Kia", "google")]
    assert body["rows"][0]["spendChange"] == 100
    assert body["rows"][1]["hasComparison"] is False
    assert body["rows"][1]["campaignBudget"] == 50
    assert body["totals"]["accountCount"] == 2
    assert body["totals"]["secondaryTotals"]["spend"] == 500


def test_unified_unknown_month():
    response = client.post("/reports/unified", json={"datasets": DATASETS, "monthId": "jan-2025"})
    assert response.status_code == 404


def test_unified_invalid_mode():
    response = client.post("/reports/unified", json={"datasets": DATASETS, "mode": "average"})
    assert response.status_code == 422


def test_unified_date_grouping_rejected():
    response = client.post("/reports/unified", json={"datasets": DATASETS, "groupBy": "date"})
    assert response.status_code == 422
