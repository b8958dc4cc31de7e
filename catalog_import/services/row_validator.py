"""
Per-row validation driven by a rule table keyed on import type.

Every applicable rule runs against the row so a single pass reports the
complete problem set; typed values of the valid present fields are
returned alongside the messages for the reconciliation diff.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from catalog_import.models import ImportJob, Product
from catalog_import.services.file_parser import SourceRow

ImportType = ImportJob.ImportType

SKU_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
SKU_MIN_LENGTH = 3
SKU_MAX_LENGTH = 64

FIELD_LABELS = {
    "sku": "SKU",
    "name": "name",
    "description": "description",
    "price_base": "base price",
    "promo_price": "promo price",
    "stock_quantity": "stock quantity",
    "pack_size": "pack size",
    "moq": "MOQ",
    "tax_rate": "tax rate",
    "is_active": "active flag",
}

TRUE_VALUES = {"true", "yes", "1", "y", "oui"}
FALSE_VALUES = {"false", "no", "0", "n", "non"}


# ---------------------------------------------------------------------------
# Value parsers
# ---------------------------------------------------------------------------


def parse_money(value: str) -> Decimal:
    """Parse a non-negative number, tolerating a leading currency symbol and spaces."""
    cleaned = value.strip().replace("$", "").replace("€", "").replace(" ", "")
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError("must be a non-negative number")
    if not number.is_finite() or number < 0:
        raise ValueError("must be a non-negative number")
    return number


def decimal_field_parser(attribute: str) -> Callable[[str], Decimal]:
    """
    Build a money parser bounded by the precision of a Product decimal field.

    The parsed value is quantized to the field's decimal places, so "99.9"
    and "99.90" compare and store the same way.
    """

    def parse(value: str) -> Decimal:
        model_field = Product._meta.get_field(attribute)
        places = model_field.decimal_places
        whole_digits = model_field.max_digits - places
        number = parse_money(value)
        if number and number.adjusted() >= whole_digits:
            raise ValueError(f"must be less than {10 ** whole_digits}")
        quantized = number.quantize(Decimal(1).scaleb(-places))
        if quantized != number:
            raise ValueError(f"must have at most {places} decimal places")
        return quantized

    return parse


def parse_quantity(value: str) -> int:
    """Parse a non-negative integer; workbook-style "12.0" is accepted."""
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        raise ValueError("must be a non-negative integer")
    if not number.is_finite() or number < 0 or number != number.to_integral_value():
        raise ValueError("must be a non-negative integer")
    return int(number)


def parse_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError("expected true or false")


def parse_text(value: str) -> str:
    return value.strip()


def text_field_parser(attribute: str) -> Callable[[str], str]:
    """Build a text parser bounded by a Product field's max_length."""

    def parse(value: str) -> str:
        text = parse_text(value)
        max_length = Product._meta.get_field(attribute).max_length
        if max_length and len(text) > max_length:
            raise ValueError(f"must be at most {max_length} characters")
        return text

    return parse


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportTypeRules:
    """Which fields an import type reads, requires and may create from."""

    required: tuple[str, ...]
    parsers: dict[str, Callable[[str], Any]]
    create_allowed: bool

    @property
    def fields(self) -> tuple[str, ...]:
        """Fields diffed on update and applied on commit, in column order."""
        return tuple(self.parsers)


IMPORT_TYPE_RULES: dict[str, ImportTypeRules] = {
    ImportType.FULL: ImportTypeRules(
        required=("sku", "name"),
        parsers={
            "name": text_field_parser("name"),
            "description": parse_text,
            "price_base": decimal_field_parser("base_price"),
            "promo_price": decimal_field_parser("promo_price"),
            "stock_quantity": parse_quantity,
            "pack_size": parse_quantity,
            "moq": parse_quantity,
            "tax_rate": decimal_field_parser("tax_rate"),
            "is_active": parse_flag,
        },
        create_allowed=True,
    ),
    ImportType.STOCK_ONLY: ImportTypeRules(
        required=("sku",),
        parsers={"stock_quantity": parse_quantity},
        create_allowed=False,
    ),
    ImportType.PRICE_ONLY: ImportTypeRules(
        required=("sku",),
        parsers={
            "price_base": decimal_field_parser("base_price"),
            "promo_price": decimal_field_parser("promo_price"),
        },
        create_allowed=False,
    ),
}


def rules_for(import_type: str) -> ImportTypeRules:
    try:
        return IMPORT_TYPE_RULES[import_type]
    except KeyError:
        raise ValueError(f"Unknown import type: {import_type!r}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class RowValidation:
    """Outcome of validating one SourceRow."""

    sku: str
    values: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def sku_errors(sku: str) -> list[str]:
    if not sku:
        return ["SKU is required"]
    if len(sku) < SKU_MIN_LENGTH or not SKU_PATTERN.fullmatch(sku):
        return ["Invalid SKU format"]
    if len(sku) > SKU_MAX_LENGTH:
        return [f"SKU is longer than {SKU_MAX_LENGTH} characters"]
    return []


def validate_row(row: SourceRow, import_type: str) -> RowValidation:
    """Run every rule for ``import_type`` against ``row``."""
    rules = rules_for(import_type)
    result = RowValidation(sku=row.get("sku"))
    result.errors.extend(sku_errors(result.sku))

    for field_name in rules.required:
        if field_name != "sku" and not row.has(field_name):
            result.errors.append(f"{FIELD_LABELS[field_name].capitalize()} is required")

    for field_name, parser in rules.parsers.items():
        if not row.has(field_name):
            continue
        try:
            result.values[field_name] = parser(row.get(field_name))
        except ValueError as e:
            result.errors.append(f"Invalid {FIELD_LABELS[field_name]}: {e}")

    return result
