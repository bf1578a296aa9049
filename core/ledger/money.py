"""
금액 값 타입

최소 단위 정수 + ISO 4217 통화 코드.
잔액 검증에 부동소수점이 관여하지 않도록 모든 연산은 정수 연산.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.constants import MoneyLimits
from core.ledger.errors import CurrencyMismatchError, ValidationError

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def validate_currency(currency: str) -> str:
    """통화 코드 검증 (대문자 3글자)

    Raises:
        ValidationError: 형식이 잘못된 경우
    """
    if not isinstance(currency, str) or not CURRENCY_PATTERN.match(currency):
        raise ValidationError(f"invalid currency code: {currency!r}")
    return currency


@dataclass(frozen=True)
class Money:
    """금액 (불변)

    동등성은 구조적: 최소 단위와 통화가 모두 같아야 함.

    Attributes:
        minor_units: 최소 단위 금액 (센트 등, signed 64-bit)
        currency: 3글자 ISO 통화 코드
    """

    minor_units: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise ValidationError("amount must be an integer number of minor units")
        if not MoneyLimits.MIN_MINOR_UNITS <= self.minor_units <= MoneyLimits.MAX_MINOR_UNITS:
            raise ValidationError("amount out of 64-bit range")
        validate_currency(self.currency)

    @classmethod
    def zero(cls, currency: str) -> Money:
        """0 금액"""
        return cls(0, currency)

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def add(self, other: Money) -> Money:
        """덧셈

        Raises:
            CurrencyMismatchError: 통화가 다른 경우
        """
        self._check_currency(other)
        return Money(self.minor_units + other.minor_units, self.currency)

    def sub(self, other: Money) -> Money:
        """뺄셈

        Raises:
            CurrencyMismatchError: 통화가 다른 경우
        """
        self._check_currency(other)
        return Money(self.minor_units - other.minor_units, self.currency)

    def __add__(self, other: Money) -> Money:
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        return self.sub(other)

    def __neg__(self) -> Money:
        return Money(-self.minor_units, self.currency)

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_decimal_str(self) -> str:
        """소수점 2자리 문자열 (표시용)

        Example:
            >>> Money(-5, "USD").to_decimal_str()
            '-0.05'
        """
        sign = "-" if self.minor_units < 0 else ""
        major, minor = divmod(abs(self.minor_units), MoneyLimits.MINOR_PER_MAJOR)
        return f"{sign}{major}.{minor:02d}"

    def __str__(self) -> str:
        return f"{self.to_decimal_str()} {self.currency}"

    def to_dict(self) -> dict[str, int | str]:
        """와이어 형식 (정수 최소 단위 + 통화)"""
        return {"amount": self.minor_units, "currency": self.currency}
