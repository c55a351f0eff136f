"""API tests for pricing routes.
Ensures /api/pricing endpoints return camelCase results and {kind, message} failures.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from pricing_engine.api.main import app
from pricing_engine.core.config import reset_pricing_settings
from pricing_engine.core.enums import PricingMethod
from pricing_engine.gateways.pricing_data_client import PricingDataError
from pricing_engine.services.pricing_engine import PricingEngine, get_pricing_engine

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_dependency_overrides():
    """Ensure dependency overrides are isolated per test."""
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def use_engine(engine):
    """Serve requests with the test repositories."""
    app.dependency_overrides[get_pricing_engine] = lambda: engine
    return engine


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "pricing-engine"
    assert body["integrationMode"] == "demo"


def test_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Procedure Pricing Engine API"


def test_calculate_returns_camel_case(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([make_rule(id=7)])

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 200
    body = response.json()
    assert body["finalPrice"] == "50.00"
    assert body["basePrice"] == "50.00"
    assert body["covered"] is True
    assert body["requiresPreapproval"] is False
    assert body["selectedRuleId"] == 7
    assert body["evaluatedRules"][0]["ruleId"] == 7


def test_calculate_invalid_input(use_engine, base_request):
    del base_request["date"]

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 422
    assert response.json() == {
        "kind": "InvalidInput",
        "message": "Missing required field 'date'",
    }


def test_calculate_no_rule_found(use_engine, base_request):
    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 404
    body = response.json()
    assert body["kind"] == "NoRuleFound"
    assert "procedure 1" in body["message"]


def test_calculate_missing_point_rate(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([make_rule(
        pricing_method=PricingMethod.POINTS,
        fixed_amount=None,
        point_multiplier=Decimal("20"),
    )])

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 409
    assert response.json()["kind"] == "MissingPointRate"


def test_calculate_reference_data_unavailable(repositories, base_request):
    rules = AsyncMock()
    rules.find_candidates.side_effect = PricingDataError("Pricing data service returned 500")
    engine = PricingEngine(
        rules=rules,
        point_rates=repositories.point_rates,
        factor_definitions=repositories.factor_definitions,
        contracts=repositories.contracts,
    )
    app.dependency_overrides[get_pricing_engine] = lambda: engine

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 503
    assert response.json() == {
        "kind": "ReferenceDataUnavailable",
        "message": "Pricing data service returned 500",
    }


def test_batch_reports_each_item(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([make_rule()])
    outside = {**base_request, "date": "2030-01-01"}

    response = client.post(
        "/api/pricing/calculate/batch",
        json={"requests": [base_request, outside, {"procedureId": 1}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["succeeded"], body["failed"]) == (3, 1, 2)
    first, second, third = body["outcomes"]
    assert first["result"]["finalPrice"] == "50.00"
    assert first["error"] is None
    assert second["error"]["kind"] == "NoRuleFound"
    assert second["date"] == "2030-01-01"
    assert third["error"]["kind"] == "InvalidInput"


def test_batch_limit(use_engine, base_request, monkeypatch):
    monkeypatch.setenv("PRICING_BATCH_MAX_ITEMS", "2")
    reset_pricing_settings()

    response = client.post(
        "/api/pricing/calculate/batch",
        json={"requests": [base_request] * 3},
    )

    assert response.status_code == 422
    assert response.json()["kind"] == "InvalidInput"


def test_batch_requires_items(use_engine):
    response = client.post("/api/pricing/calculate/batch", json={"requests": []})

    assert response.status_code == 422
    body = response.json()
    assert set(body) == {"kind", "message"}
    assert body["kind"] == "InvalidInput"
    assert body["message"].startswith("Invalid value for 'requests'")


def test_calculate_rejects_non_object_body(use_engine):
    response = client.post("/api/pricing/calculate", json=[1, 2])

    assert response.status_code == 422
    body = response.json()
    assert set(body) == {"kind", "message"}
    assert body["kind"] == "InvalidInput"
    assert body["message"].startswith("Invalid value for 'request'")


def test_batch_non_object_item_fails_alone(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([make_rule()])

    response = client.post(
        "/api/pricing/calculate/batch",
        json={"requests": [base_request, 42]},
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["total"], body["succeeded"], body["failed"]) == (2, 1, 1)
    assert body["outcomes"][1]["error"] == {
        "kind": "InvalidInput",
        "message": "Calculation request must be an object",
    }


def test_calculate_rejects_oversized_reference_amount(use_engine, base_request):
    base_request["referenceAmount"] = 1e30

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 422
    body = response.json()
    assert body["kind"] == "InvalidInput"
    assert body["message"].startswith("Invalid value for 'referenceAmount'")


def test_money_is_exact_decimal_text(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([
        make_rule(fixed_amount=Decimal("12345678901234567.89")),
    ])

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["finalPrice"]) == Decimal("12345678901234567.89")
    assert body["basePrice"] == "12345678901234567.89"


def test_calculate_includes_selected_rule(use_engine, repositories, make_rule, base_request):
    repositories.rules.seed_demo_data([make_rule(
        conditions=[{"factor": "visit_type", "operator": "EQUALS", "value": "INPATIENT"}],
    )])
    base_request["factors"] = {"visit_type": "INPATIENT"}

    response = client.post("/api/pricing/calculate", json=base_request)

    assert response.status_code == 200
    summary = response.json()["selectedRule"]
    assert summary["conditions"] == [
        {"factor": "visit_type", "operator": "EQUALS", "value": "INPATIENT"},
    ]
    assert summary["pricing"]["mode"] == "FIXED"
    assert Decimal(summary["pricing"]["fixedPrice"]) == Decimal("50")
    assert summary["adjustments"] == []
    assert summary["discount"] is None
