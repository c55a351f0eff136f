"""
Factor Resolver.

Normalizes the raw factor bag of a calculation request into typed
FactorValues bound to their declared definitions:
- Numeric factors parsed to Decimal/int (kept as text when unparseable)
- Boolean factors read as "true"/"1"/"yes"
- Date factors passed through as ISO strings
- Select factors checked against their allowed values

Resolution is fail-soft: bad entries are dropped with a warning and the
remaining factors are still resolved.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from pricing_engine.core.enums import FactorDataType, ResolutionWarningKind
from pricing_engine.schemas.pricing import (
    FactorResolutionWarning,
    FactorValue,
    PricingFactorDefinition,
)
from pricing_engine.services.conditions import parse_boolean
from pricing_engine.utils.money import to_decimal

logger = logging.getLogger(__name__)

# Numeric factors with more integer digits than this stay unconverted
MAX_FACTOR_DIGITS = 18


@dataclass
class FactorResolution:
    """Resolved factors plus the warnings raised on the way."""

    values: list[FactorValue] = field(default_factory=list)
    warnings: list[FactorResolutionWarning] = field(default_factory=list)

    def as_map(self) -> dict[str, FactorValue]:
        return {value.key: value for value in self.values}


def _raw_text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def _resolve_numeric(
    definition: PricingFactorDefinition,
    raw: Any,
    warnings: list[FactorResolutionWarning],
) -> FactorValue:
    number = to_decimal(raw)
    if number is not None and number.adjusted() >= MAX_FACTOR_DIGITS:
        number = None
    if number is not None and definition.data_type == FactorDataType.INTEGER:
        if number != number.to_integral_value():
            number = None
    if number is None:
        text = _raw_text(raw)
        warnings.append(FactorResolutionWarning(
            kind=ResolutionWarningKind.UNCONVERTED_NUMBER,
            factor=definition.key,
            message=(
                f"Factor '{definition.key}' expects a {definition.data_type.value.lower()} "
                f"but got '{text}'; only equality conditions can use it"
            ),
        ))
        return FactorValue(
            key=definition.key,
            data_type=definition.data_type,
            value=text,
            converted=False,
        )

    value: Any = number
    if definition.data_type == FactorDataType.INTEGER:
        value = int(number)
    return FactorValue(key=definition.key, data_type=definition.data_type, value=value)


def resolve_factor(
    definition: PricingFactorDefinition,
    raw: Any,
    warnings: list[FactorResolutionWarning],
) -> FactorValue | None:
    """
    Coerce one raw value to its definition's type.

    Returns None when the entry must be dropped.
    """
    data_type = definition.data_type

    if data_type.is_numeric:
        return _resolve_numeric(definition, raw, warnings)

    if data_type == FactorDataType.BOOLEAN:
        return FactorValue(key=definition.key, data_type=data_type, value=parse_boolean(raw))

    if data_type == FactorDataType.SELECT:
        text = str(raw) if raw is not None else ""
        if text not in definition.allowed_values:
            warnings.append(FactorResolutionWarning(
                kind=ResolutionWarningKind.INVALID_SELECTION,
                factor=definition.key,
                message=(
                    f"Factor '{definition.key}' value '{text}' is not one of "
                    f"{', '.join(definition.allowed_values) or 'no allowed values'}"
                ),
            ))
            return None
        return FactorValue(key=definition.key, data_type=data_type, value=text)

    # DATE, TEXT, STRING
    return FactorValue(key=definition.key, data_type=data_type, value=_raw_text(raw))


def resolve_factors(
    raw_factors: Mapping[str, Any],
    definitions: Iterable[PricingFactorDefinition],
) -> FactorResolution:
    """
    Resolve a raw factor bag against factor definitions.

    Args:
        raw_factors: Factor key to raw value (text, number or boolean)
        definitions: Declared factor definitions

    Returns:
        FactorResolution with values in request order and any warnings
    """
    by_key = {definition.key: definition for definition in definitions}
    resolution = FactorResolution()

    for key, raw in raw_factors.items():
        definition = by_key.get(key)
        if definition is None:
            resolution.warnings.append(FactorResolutionWarning(
                kind=ResolutionWarningKind.UNKNOWN_FACTOR,
                factor=key,
                message=f"Factor '{key}' is not defined and was ignored",
            ))
            continue

        value = resolve_factor(definition, raw, resolution.warnings)
        if value is not None:
            resolution.values.append(value)

    if resolution.warnings:
        logger.warning(
            f"Factor resolution warnings ({len(resolution.warnings)}): "
            f"{', '.join(w.factor for w in resolution.warnings)}"
        )
    logger.debug(f"Resolved {len(resolution.values)} of {len(raw_factors)} factors")

    return resolution


