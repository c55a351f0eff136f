"""
Pytest Configuration and Fixtures.
Shared test fixtures for all test modules.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import Any

import pytest

from pricing_engine.core.config import reset_pricing_settings
from pricing_engine.core.enums import FactorDataType, PricingMethod
from pricing_engine.schemas.pricing import (
    FactorValue,
    InsuranceDegree,
    PointRate,
    PricingFactorDefinition,
    PricingRule,
)
from pricing_engine.services.adapters import (
    AdapterMode,
    ContractTermsRepository,
    FactorDefinitionRepository,
    PointRateRepository,
    RuleRepository,
)
from pricing_engine.services.factor_resolver import resolve_factors
from pricing_engine.services.pricing_engine import PricingEngine


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings for every test."""
    reset_pricing_settings()
    yield
    reset_pricing_settings()


@pytest.fixture
def factor_definitions() -> list[PricingFactorDefinition]:
    """Factor definitions covering every data type."""
    return [
        PricingFactorDefinition(key="patient_age", data_type=FactorDataType.INTEGER),
        PricingFactorDefinition(key="weight", data_type=FactorDataType.DECIMAL),
        PricingFactorDefinition(key="session_count", data_type=FactorDataType.NUMBER),
        PricingFactorDefinition(
            key="visit_type",
            data_type=FactorDataType.SELECT,
            allowed_values=["OUTPATIENT", "INPATIENT", "EMERGENCY"],
        ),
        PricingFactorDefinition(key="night_shift", data_type=FactorDataType.BOOLEAN),
        PricingFactorDefinition(key="admission_date", data_type=FactorDataType.DATE),
        PricingFactorDefinition(key="department", data_type=FactorDataType.TEXT),
    ]


@pytest.fixture
def resolve(factor_definitions):
    """Resolve a raw factor bag into a factor map."""

    def _resolve(raw: dict[str, Any]) -> dict[str, FactorValue]:
        return resolve_factors(raw, factor_definitions).as_map()

    return _resolve


@pytest.fixture
def make_rule():
    """Build a FIXED 50.00 catch-all rule for procedure 1, price list 1, with overrides."""

    def _make_rule(**overrides: Any) -> PricingRule:
        data: dict[str, Any] = {
            "id": 1,
            "procedure_id": 1,
            "price_list_id": 1,
            "insurance_degree_id": 1,
            "pricing_method": PricingMethod.FIXED,
            "fixed_amount": Decimal("50"),
            "effective_from": date(2024, 1, 1),
            "effective_to": date(2024, 12, 31),
        }
        data.update(overrides)
        return PricingRule(**data)

    return _make_rule


@pytest.fixture
def vip_degree() -> InsuranceDegree:
    return InsuranceDegree(id=1, code="VIP", name_en="VIP")


@pytest.fixture
def make_point_rate(vip_degree):
    """Build a point rate for the VIP degree valid for 2024."""

    def _make_point_rate(**overrides: Any) -> PointRate:
        data: dict[str, Any] = {
            "id": 1,
            "insurance_degree": vip_degree,
            "point_price": Decimal("2.50"),
            "valid_from": date(2024, 1, 1),
            "valid_to": date(2024, 12, 31),
        }
        data.update(overrides)
        return PointRate(**data)

    return _make_point_rate


@pytest.fixture
def repositories(factor_definitions) -> SimpleNamespace:
    """Empty demo repositories; only factor definitions are seeded."""
    repos = SimpleNamespace(
        rules=RuleRepository(AdapterMode.DEMO, seed_defaults=False),
        point_rates=PointRateRepository(AdapterMode.DEMO, seed_defaults=False),
        factor_definitions=FactorDefinitionRepository(AdapterMode.DEMO, seed_defaults=False),
        contracts=ContractTermsRepository(AdapterMode.DEMO, seed_defaults=False),
    )
    repos.factor_definitions.seed_demo_data(factor_definitions)
    return repos


@pytest.fixture
def engine(repositories) -> PricingEngine:
    """Pricing engine over the test repositories."""
    return PricingEngine(
        rules=repositories.rules,
        point_rates=repositories.point_rates,
        factor_definitions=repositories.factor_definitions,
        contracts=repositories.contracts,
        decimal_places=2,
    )


@pytest.fixture
def base_request() -> dict[str, Any]:
    """Camel-case request for procedure 1, price list 1, degree 1 on 2024-06-01."""
    return {
        "procedureId": 1,
        "priceListId": 1,
        "insuranceDegreeId": 1,
        "date": "2024-06-01",
        "factors": {},
    }


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as an API test"
    )
