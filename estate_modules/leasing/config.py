"""
Leasing Configuration Schema.

Defines the VAT rate, currency, remainder placement for fresh and renewal
schedules, and how carried-forward arrears are labelled.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

import yaml

from estate_engines.scheduler import RemainderSlot
from estate_kernel.logging_config import get_logger

logger = get_logger("modules.leasing.config")


@dataclass
class LeasingConfig:
    """Configuration schema for the leasing module."""

    # VAT applied to the taxed portion of a lease
    default_tax_rate: Decimal = Decimal("0.05")

    # Currency
    default_currency: str = "AED"

    # Remainder slot per schedule kind
    fresh_remainder_slot: RemainderSlot = RemainderSlot.LAST
    renewal_remainder_slot: RemainderSlot = RemainderSlot.FIRST

    # Installment description template (str.format: number, count)
    installment_description: str = "Rent Installment {number} of {count}"

    # Prefix descriptions of installments carried into a renewal
    label_carried_arrears: bool = True
    arrears_label: str = "Arrears {year} - {description}"
    # Used when the carried installment has no description
    arrears_label_blank: str = "Arrears from lease {year}"

    def __post_init__(self):
        self.default_tax_rate = Decimal(str(self.default_tax_rate))
        self.fresh_remainder_slot = RemainderSlot(self.fresh_remainder_slot)
        self.renewal_remainder_slot = RemainderSlot(self.renewal_remainder_slot)
        if self.default_tax_rate < 0:
            raise ValueError("default_tax_rate cannot be negative")
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")
        for name in ("arrears_label", "arrears_label_blank"):
            if "{year}" not in getattr(self, name):
                raise ValueError(f"{name} must contain a {{year}} placeholder")

        logger.info(
            "leasing_config_initialized",
            extra={
                "default_tax_rate": str(self.default_tax_rate),
                "default_currency": self.default_currency,
                "fresh_remainder_slot": self.fresh_remainder_slot.value,
                "renewal_remainder_slot": self.renewal_remainder_slot.value,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults (5% VAT, AED)."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Build a config from a mapping, rejecting unknown keys.

        Raises:
            KeyError: If the mapping contains an unknown setting.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise KeyError(f"Unknown leasing settings: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Self:
        """
        Load settings from a YAML file (optionally nested under ``leasing:``).

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "leasing" in data:
            data = data["leasing"] or {}
        return cls.from_dict(data)
