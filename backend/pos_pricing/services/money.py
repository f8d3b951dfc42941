"""
Money and tax arithmetic.

Prices in the catalog are tax-inclusive, so net and VAT are derived by
division. Amounts stay unrounded through every intermediate step; rounding
to currency precision happens once, on aggregated order values.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from dataclasses import dataclass
from typing import Iterable, Union

from pos_pricing.services.errors import InvalidRateError

CENT = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without inheriting binary float noise"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_rate(rate: Number) -> Decimal:
    """
    Rates arrive either as a fraction (0.15) or as a percent (15).
    Anything >= 1 is read as a percent.
    """
    try:
        value = to_decimal(rate)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRateError(rate)

    if not value.is_finite() or value < 0:
        raise InvalidRateError(rate)

    if value >= ONE:
        value = value / HUNDRED
    return value


@dataclass(frozen=True)
class TaxSplit:
    net: Decimal
    vat: Decimal
    gross: Decimal

    def __add__(self, other: "TaxSplit") -> "TaxSplit":
        return TaxSplit(
            net=self.net + other.net,
            vat=self.vat + other.vat,
            gross=self.gross + other.gross,
        )


EMPTY_SPLIT = TaxSplit(net=ZERO, vat=ZERO, gross=ZERO)


def decompose(amount_gross: Number, rate: Number) -> TaxSplit:
    """Split a tax-inclusive amount into net and VAT (unrounded)"""
    gross = to_decimal(amount_gross)
    fraction = normalize_rate(rate)
    net = gross / (ONE + fraction)
    return TaxSplit(net=net, vat=gross - net, gross=gross)


def sum_splits(splits: Iterable[TaxSplit]) -> TaxSplit:
    """Sum per-line splits component-wise; never re-split a blended total"""
    total = EMPTY_SPLIT
    for split in splits:
        total = total + split
    return total


def rounded_split(split: TaxSplit) -> TaxSplit:
    """
    Round gross and net to the cent and derive VAT from them, so the
    rounded parts always add up to the rounded gross.
    """
    gross = round_money(split.gross)
    net = round_money(split.net)
    return TaxSplit(net=net, vat=gross - net, gross=gross)
