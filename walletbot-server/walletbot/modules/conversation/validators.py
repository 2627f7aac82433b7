"""Input predicates used by the collectors."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Callable

from .exceptions import ValidationError

Predicate = Callable[[str], bool]

PHONE_PATTERN = re.compile(r"^09\d{8}$", re.ASCII)
WALLET_NUMBER_PATTERN = re.compile(r"^(09|07)\d{8}$", re.ASCII)
ACCOUNT_NAME_PATTERN = re.compile(r"^[A-Za-z ]{3,}$")

_AMOUNT_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$", re.ASCII)


def parse_amount(text: str) -> Decimal:
    """Parse a positive amount with at most two decimal places."""
    candidate = text.strip().replace(",", "")
    if not _AMOUNT_PATTERN.match(candidate):
        raise ValidationError(f"not an amount: {text!r}")
    try:
        return Decimal(candidate)
    except InvalidOperation as exc:
        raise ValidationError(f"not an amount: {text!r}") from exc


def amount_between(minimum: Decimal, maximum: Decimal) -> Predicate:
    def predicate(text: str) -> bool:
        try:
            amount = parse_amount(text)
        except ValidationError:
            return False
        return minimum <= amount <= maximum

    return predicate


def matches(pattern: re.Pattern[str]) -> Predicate:
    return lambda text: bool(pattern.match(text))


def is_account_name(text: str) -> bool:
    return bool(ACCOUNT_NAME_PATTERN.match(text)) and len(text.strip()) >= 3
