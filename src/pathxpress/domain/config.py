"""Typed service configuration.

Platform defaults live as key/value rows in the ``service_config`` table.
They are read into a frozen ``ServiceConfig`` once per operation so the rest
of the code never looks up raw strings. Each field's alias is its storage key.
"""

from datetime import time
from decimal import Decimal
from typing import Optional, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from pathxpress.domain.errors import ValidationError


class ServiceConfig(BaseModel):
    """Platform-wide billing defaults."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    cod_fee_percentage: Decimal = Field(
        Decimal("3.3"),
        alias="COD_FEE_PERCENTAGE",
        ge=0,
        le=100,
        description="COD fee percentage (of collected value)",
    )
    cod_min_fee: Decimal = Field(
        Decimal("2.00"), alias="COD_MIN_FEE", ge=0, description="Minimum COD fee"
    )
    cod_max_fee: Optional[Decimal] = Field(
        None, alias="COD_MAX_FEE", ge=0, description="Maximum COD fee (empty = no cap)"
    )
    default_max_weight: Decimal = Field(
        Decimal("5"),
        alias="DEFAULT_MAX_WEIGHT",
        gt=0,
        description="Weight in kg covered by the base rate",
    )
    volumetric_divisor: Decimal = Field(
        Decimal("5000"),
        alias="VOLUMETRIC_DIVISOR",
        gt=0,
        description="cm3 per kg used for volumetric weight",
    )
    rate_round_up_extra_kg: bool = Field(
        False,
        alias="RATE_ROUND_UP_EXTRA_KG",
        description="Round extra kilograms up to whole kg (true/false)",
    )
    invoice_tax_percent: Decimal = Field(
        Decimal("0"),
        alias="INVOICE_TAX_PERCENT",
        ge=0,
        le=100,
        description="Tax percentage applied to invoice subtotals",
    )
    invoice_due_days: int = Field(
        30, alias="INVOICE_DUE_DAYS", ge=0, description="Payment term in days"
    )
    fod_default_fee: Decimal = Field(
        Decimal("5.00"),
        alias="FOD_DEFAULT_FEE",
        ge=0,
        description="Fit-on-delivery fee when the client has none",
    )
    default_currency: str = Field(
        "AED", alias="DEFAULT_CURRENCY", min_length=1, description="Currency for invoices"
    )
    sdd_cut_off_time: time = Field(
        time(14, 0),
        alias="SDD_CUT_OFF_TIME",
        description="Same-day delivery cut-off time (HH:MM)",
    )


# Storage key -> model field name
CONFIG_KEYS: dict[str, str] = {
    field.alias: name for name, field in ServiceConfig.model_fields.items()
}

CONFIG_DESCRIPTIONS: dict[str, str] = {
    field.alias: field.description for field in ServiceConfig.model_fields.values()
}


def load_service_config(entries: Mapping[str, str]) -> ServiceConfig:
    """Build a ServiceConfig from stored key/value rows.

    Unknown keys are ignored so that unrelated settings can share the table.
    An empty value clears optional settings such as ``COD_MAX_FEE``.

    Args:
        entries: Mapping of config key to raw string value

    Returns:
        ServiceConfig with stored values overriding the defaults

    Raises:
        ValidationError: If a known key holds a malformed or out-of-range value
    """
    stored = {}
    for key, raw in entries.items():
        key = key.strip().upper()
        if key not in CONFIG_KEYS:
            continue
        value = "" if raw is None else str(raw).strip()
        if not value:
            if ServiceConfig.model_fields[CONFIG_KEYS[key]].default is None:
                stored[key] = None
            continue
        stored[key] = value

    try:
        return ServiceConfig.model_validate(stored)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid service config: {problems}") from e


def config_to_entries(config: ServiceConfig) -> dict[str, str]:
    """Render a ServiceConfig back to storable key/value strings."""
    entries = {}
    for key, value in config.model_dump(by_alias=True).items():
        if value is None:
            rendered = ""
        elif isinstance(value, bool):
            rendered = "true" if value else "false"
        elif isinstance(value, time):
            rendered = value.strftime("%H:%M")
        else:
            rendered = str(value)
        entries[key] = rendered
    return entries
