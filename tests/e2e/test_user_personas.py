"""
E2E tests for user personas, exercising every insight endpoint per user.

All requests run against the SQLite test database with today pinned to
2025-04-15, so the default window is January-March 2025.

User personas:
- user_steady: Flat income and expenses, healthy saver
- user_overspender: Spending above income, rising, budgets blown
- user_new: A single month of history
- user_gig: Irregular income with a collapse in the last month
"""

import pytest
from datetime import date
from fastapi.testclient import TestClient

ENDPOINTS = ("health-score", "anomalies", "forecast", "recommendations", "benchmark")


def insights(client: TestClient, user_id: str) -> dict:
    results = {}
    for name in ENDPOINTS:
        response = client.get(f"/v1/insights/{name}", params={"user_id": user_id})
        assert response.status_code == 200, f"{name} failed for {user_id}"
        results[name] = response.json()
    return results


@pytest.mark.integration
def test_user_steady_saver(client: TestClient, seed, steady_history):
    """
    user_steady: 3 months of income 5000 and expenses 4000, Food at 1200/month
    Expected: Predictable, stable, forecast ~4000 with high confidence
    """
    seed("user_steady", transactions=steady_history)

    data = insights(client, "user_steady")

    health = data["health-score"]
    assert health["breakdown"]["previsibilidade"] == 20.0
    assert health["trend"] == "stable"
    assert health["category"] == "excellent"

    april = data["forecast"]["forecast"][0]
    assert april["month"] == "2025-04"
    assert april["predictedExpenses"] == pytest.approx(4000, rel=0.01)
    assert april["confidence"] == "high"

    assert data["anomalies"]["count"] == 0
    assert "invest-surplus" in [r["ruleId"] for r in data["recommendations"]["recommendations"]]


@pytest.mark.integration
def test_user_overspender(client: TestClient, seed):
    """
    user_overspender: Income 3000/month, expenses 3000 -> 3500 -> 4000
    Expected: Low score, budget overruns, deficit and rising-spending advice
    """
    rows = []
    for month, food, leisure in ((1, 900, 600), (2, 1100, 900), (3, 1300, 1200)):
        rows += [
            (date(2025, month, 1), 3000.0, "income", "Salary"),
            (date(2025, month, 3), 1500.0, "expense", "Aluguel"),
            (date(2025, month, 12), float(food), "expense", "Supermercado"),
            (date(2025, month, 22), float(leisure), "expense", "Lazer"),
        ]
    budgets = [("Supermercado", 800.0, date(2025, month, 1)) for month in (1, 2, 3)]
    seed("user_overspender", transactions=rows, budgets=budgets, cards=[("credit", 4000.0)])

    data = insights(client, "user_overspender")

    health = data["health-score"]
    assert health["score"] < 40
    assert health["breakdown"]["poupancaReservas"] == 0
    assert health["breakdown"]["dividas"] == 5.0

    overflows = [a for a in data["anomalies"]["anomalies"] if a["type"] == "budget_overflow"]
    assert len(overflows) == 3
    assert all(a["severity"] == "moderate" for a in overflows)

    recommendations = data["recommendations"]["recommendations"]
    rule_ids = {r["ruleId"] for r in recommendations}
    assert {"stop-deficit", "control-spending", "increase-savings", "rising-spending"} <= rule_ids
    assert "invest-surplus" not in rule_ids
    assert recommendations[0]["priority"] == "high"

    forecast = data["forecast"]
    assert forecast["metadata"]["trend"] == "increasing"
    assert forecast["forecast"][0]["predictedExpenses"] == 4500.0

    assert data["benchmark"]["overallScore"] < 50


@pytest.mark.integration
def test_user_new_thin_history(client: TestClient, seed):
    """
    user_new: Only March 2025 on record
    Expected: Neutral predictability, no forecast, no statistical anomalies
    """
    seed(
        "user_new",
        transactions=[
            (date(2025, 3, 1), 4000.0, "income", "Salary"),
            (date(2025, 3, 4), 900.0, "expense", "Food"),
            (date(2025, 3, 18), 1400.0, "expense", "Rent"),
        ],
    )

    data = insights(client, "user_new")

    assert data["health-score"]["breakdown"]["previsibilidade"] == 10.0
    assert data["forecast"]["forecast"] == []
    assert "at least 3 months" in data["forecast"]["message"]
    assert data["anomalies"]["count"] == 0
    assert data["benchmark"]["categoryBenchmarks"]


@pytest.mark.integration
def test_user_gig_income_collapse(client: TestClient, seed):
    """
    user_gig: Income 4000, 3800, then 1500 with steady spending
    Expected: Critical income drop flagged for March
    """
    rows = []
    for month, income in ((1, 4000.0), (2, 3800.0), (3, 1500.0)):
        rows += [
            (date(2025, month, 15), income, "income", "Freelance"),
            (date(2025, month, 5), 1200.0, "expense", "Aluguel"),
            (date(2025, month, 9), 600.0, "expense", "Comida"),
        ]
    seed("user_gig", transactions=rows)

    data = insights(client, "user_gig")

    drops = [a for a in data["anomalies"]["anomalies"] if a["type"] == "income_drop"]
    assert len(drops) == 1
    assert drops[0]["severity"] == "critical"
    assert drops[0]["id"] == "income-drop-2025-03"
    assert data["anomalies"]["anomalies"][0]["type"] == "income_drop"
