"""
invoicing_config -- single public entrypoint for invoicing configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain jurisdiction defaults
    (currency, VAT codes, FODEC, stamp duty, withholding) at runtime.

Architecture position:
    Configuration -- YAML sets parsed into frozen dataclasses.  Sits beside
    ``invoicing_services``; may import kernel and engines, never services.
    Engines never import from here: callers turn a config into a
    ``DocumentTotalsConfig`` with ``InvoicingConfig.totals_config_for()``.

Failure modes:
    - ``ConfigNotFoundError`` -- no set for the requested jurisdiction.
    - ``ValueError`` / ``KeyError`` -- malformed set.

Audit relevance:
    Every successful call emits an ``INVOICING_CONFIG_TRACE`` log record
    with the config id, version, jurisdiction, and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from invoicing_config.loader import load_config_file
from invoicing_config.schema import InvoicingConfig, TaxUsage, usage_for_kind
from invoicing_kernel.exceptions import ConfigNotFoundError

_logger = logging.getLogger("invoicing_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    jurisdiction: str,
    config_dir: Path | None = None,
) -> InvoicingConfig:
    """Load the configuration set for ``jurisdiction`` (e.g. ``"TN"``).

    Args:
        jurisdiction: Case-insensitive jurisdiction code.
        config_dir: Override path to the sets directory.

    Raises:
        ConfigNotFoundError: If no set declares this jurisdiction.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    wanted = jurisdiction.upper().strip()

    for path in sorted(sets_dir.glob("*.yaml")):
        config = load_config_file(path)
        if config.scope.jurisdiction != wanted:
            continue

        _logger.info(
            "INVOICING_CONFIG_TRACE",
            extra={
                "trace_type": "INVOICING_CONFIG_TRACE",
                "config_id": config.config_id,
                "config_version": config.version,
                "jurisdiction": config.scope.jurisdiction,
                "currency": config.currency,
                "checksum": config.checksum,
                "vat_rate_count": len(config.vat_rates),
                "source": path.name,
            },
        )
        return config

    raise ConfigNotFoundError(wanted, str(sets_dir))


__all__ = [
    "InvoicingConfig",
    "TaxUsage",
    "get_active_config",
    "usage_for_kind",
]
