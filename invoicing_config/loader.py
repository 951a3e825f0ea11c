"""
Configuration Loader (``invoicing_config.loader``).

Responsibility
--------------
Loads YAML configuration sets and parses them into the frozen
``invoicing_config.schema`` dataclasses.  Runtime callers use
``invoicing_config.get_active_config()`` instead of this module.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid numbers, dates, kinds or currencies  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from invoicing_config.schema import (
    ConfigScope,
    FodecDefaults,
    InvoicingConfig,
    StampDutyDefaults,
    TaxUsage,
    VatRateDef,
    WithholdingDefaults,
)
from invoicing_engines.totals import WithholdingScope
from invoicing_kernel.domain.currency import CurrencyRegistry
from invoicing_kernel.domain.documents import DocumentKind
from invoicing_kernel.domain.monetary import to_decimal


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any) -> Decimal:
    # YAML floats (19.0, 1.000) go through str, never binary arithmetic
    return to_decimal(value)


def parse_kinds(values: Any) -> tuple[DocumentKind, ...]:
    return tuple(DocumentKind(v) for v in (values or ()))


def parse_scope(data: dict[str, Any]) -> ConfigScope:
    return ConfigScope(
        jurisdiction=str(data["jurisdiction"]).upper(),
        currency=CurrencyRegistry.validate(data["currency"]),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_vat_rate(data: dict[str, Any]) -> VatRateDef:
    return VatRateDef(
        code=str(data["code"]).upper().strip(),
        rate_pct=parse_decimal(data["rate_pct"]),
        label=data.get("label", ""),
        applies_to=TaxUsage(data.get("applies_to", "both")),
        active=data.get("active", True),
    )


def parse_fodec(data: dict[str, Any]) -> FodecDefaults:
    return FodecDefaults(
        rate_pct=parse_decimal(data.get("rate_pct", "1")),
        enabled_for=parse_kinds(data.get("enabled_for")),
    )


def parse_stamp_duty(data: dict[str, Any]) -> StampDutyDefaults:
    return StampDutyDefaults(
        amount=parse_decimal(data.get("amount", "1.000")),
        enabled_for=parse_kinds(data.get("enabled_for")),
    )


def parse_withholding(data: dict[str, Any]) -> WithholdingDefaults:
    return WithholdingDefaults(
        enabled=data.get("enabled", False),
        rate_pct=parse_decimal(data.get("rate_pct", "0")),
        applies_to=WithholdingScope(data.get("applies_to", WithholdingScope.ALL.value)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> InvoicingConfig:
    """Parse a loaded YAML mapping into an InvoicingConfig."""
    vat = data["vat"]
    rates = tuple(parse_vat_rate(r) for r in vat.get("rates", ()))
    default_code = str(vat["default_code"]).upper().strip()

    default_pct = vat.get("default_pct")
    if default_pct is None:
        match = next((r for r in rates if r.code == default_code), None)
        if match is None:
            raise ValueError(f"Default VAT code {default_code!r} is not among the configured rates")
        default_pct = match.rate_pct

    return InvoicingConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        scope=parse_scope(data["scope"]),
        vat_rates=rates,
        default_vat_code=default_code,
        default_vat_pct=parse_decimal(default_pct),
        fodec=parse_fodec(data.get("fodec") or {}),
        stamp_duty=parse_stamp_duty(data.get("stamp_duty") or {}),
        withholding=parse_withholding(data.get("withholding") or {}),
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> InvoicingConfig:
    return parse_config(load_yaml_file(path))
