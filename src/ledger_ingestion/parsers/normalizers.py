"""Map free-text payment and cost-center cells onto the controlled vocabulary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models.records import CostCenter
from .cells import cell_text, fold_text

CREDIT_CARD = "Credit Card"


@dataclass(frozen=True, slots=True)
class PaymentInfo:
    method: str | None = None
    institution: str | None = None


# Checked in order against the folded cell text; the first contained key wins.
PAYMENT_METHOD_TABLE: tuple[tuple[str, PaymentInfo], ...] = (
    ("amazon", PaymentInfo(CREDIT_CARD, "Amazon")),
    ("inter", PaymentInfo(CREDIT_CARD, "Inter")),
    ("nubank", PaymentInfo(CREDIT_CARD, "Nubank")),
    ("pix", PaymentInfo("PIX")),
    ("debit", PaymentInfo("Debit")),
    ("debito", PaymentInfo("Debit")),
    ("cash", PaymentInfo("Cash")),
    ("dinheiro", PaymentInfo("Cash")),
    ("transfer", PaymentInfo("Transfer")),
    ("transferencia", PaymentInfo("Transfer")),
    ("bank slip", PaymentInfo("Bank Slip")),
    ("boleto", PaymentInfo("Bank Slip")),
)

CARD_ISSUER_HINTS = ("nuban", "inter", "amazon", "itau", "bradesco", "santander")

_NON_ESSENTIAL_MARKERS = (
    "non-essential",
    "non essential",
    "nonessential",
    "not essential",
    "nao essencial",
    "nao-essencial",
)
_ESSENTIAL_MARKERS = ("essential", "essencial")
_FIXED_MARKERS = ("fixed", "fixa")


def normalize_payment_method(value: Any) -> PaymentInfo:
    """
    Derive `{method, institution}` from a payment cell such as "Nubank" or "Pix".

    Text naming a card issuer we do not list explicitly is assumed to be a credit
    card from that issuer; anything else is passed through as the method.
    """

    original = cell_text(value)
    if not original:
        return PaymentInfo()

    folded = fold_text(original)
    for key, info in PAYMENT_METHOD_TABLE:
        if key in folded:
            return info

    if any(hint in folded for hint in CARD_ISSUER_HINTS):
        return PaymentInfo(CREDIT_CARD, original)
    return PaymentInfo(original)


def normalize_cost_center(value: Any) -> CostCenter | None:
    folded = fold_text(value)
    if not folded:
        return None
    # "non-essential" contains "essential", so it has to be ruled out first.
    if any(marker in folded for marker in _NON_ESSENTIAL_MARKERS):
        return CostCenter.NON_ESSENTIAL
    if any(marker in folded for marker in _ESSENTIAL_MARKERS):
        return CostCenter.ESSENTIAL
    if any(marker in folded for marker in _FIXED_MARKERS):
        return CostCenter.FIXED_EXPENSE
    return None
