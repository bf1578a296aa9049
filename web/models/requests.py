"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
금액은 정수 최소 단위 (예: 10000 = 100.00 USD)
"""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from core.ledger.models import BudgetLine, JournalLineInput
from core.ledger.money import Money
from core.ledger.types import AccountStatus, AccountType, RecurringFrequency


class AccountCreateRequest(BaseModel):
    """계정 생성 요청"""

    code: str = Field(..., description="계정 코드 (유일, 대소문자 구분)")
    name: str = Field(..., description="계정 이름")
    account_type: AccountType = Field(..., description="계정 유형")
    parent_id: UUID | None = Field(default=None, description="상위 계정 ID (같은 유형)")
    description: str | None = Field(default=None, description="설명")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"code": "1100", "name": "Cash", "account_type": "Asset"},
            ]
        }
    }


class AccountUpdateRequest(BaseModel):
    """계정 부분 수정 요청

    보낸 필드만 변경. code는 변경 불가.
    """

    name: str | None = Field(default=None, description="계정 이름")
    description: str | None = Field(default=None, description="설명 (null이면 삭제)")
    parent_id: UUID | None = Field(default=None, description="상위 계정 ID (null이면 해제)")
    status: AccountStatus | None = Field(default=None, description="Active / Inactive")
    account_type: AccountType | None = Field(default=None, description="계정 유형")
    code: str | None = Field(default=None, description="변경 불가 (현재 값과 같아야 함)")

    def to_patch(self) -> dict[str, Any]:
        """명시적으로 보낸 필드만 추출"""
        return {name: getattr(self, name) for name in self.model_fields_set}


class FiscalYearCreateRequest(BaseModel):
    """회계연도 생성 요청"""

    name: str = Field(..., description="회계연도 이름")
    start_date: date = Field(..., description="시작일 (YYYY-MM-DD)")
    end_date: date = Field(..., description="종료일 (YYYY-MM-DD, 포함)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "FY2024", "start_date": "2024-01-01", "end_date": "2024-12-31"},
            ]
        }
    }


class FiscalPeriodCreateRequest(BaseModel):
    """회계기간 생성 요청"""

    name: str = Field(..., description="기간 이름")
    start_date: date = Field(..., description="시작일 (YYYY-MM-DD)")
    end_date: date = Field(..., description="종료일 (YYYY-MM-DD, 포함)")


class JournalLineRequest(BaseModel):
    """분개 항목 요청"""

    account_id: UUID = Field(..., description="계정 ID")
    debit: int = Field(default=0, description="차변 금액 (최소 단위)")
    credit: int = Field(default=0, description="대변 금액 (최소 단위)")
    description: str | None = Field(default=None, description="항목 적요")

    def to_input(self, currency: str) -> JournalLineInput:
        return JournalLineInput(
            account_id=self.account_id,
            debit=Money(self.debit, currency),
            credit=Money(self.credit, currency),
            description=self.description,
        )


class JournalEntryRequest(BaseModel):
    """분개 작성/수정 요청

    currency를 생략하면 설정의 default_currency 적용.
    """

    entry_date: date = Field(..., alias="date", description="회계일자 (YYYY-MM-DD)")
    description: str = Field(..., description="적요")
    reference: str | None = Field(default=None, description="외부 참조")
    currency: str | None = Field(default=None, description="통화 (ISO 4217)")
    lines: list[JournalLineRequest] = Field(default_factory=list, description="분개 항목")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2024-06-15",
                    "description": "sale",
                    "lines": [
                        {"account_id": "6f1c...", "debit": 10000, "credit": 0},
                        {"account_id": "9a2d...", "debit": 0, "credit": 10000},
                    ],
                },
            ]
        }
    }

    def to_inputs(self, default_currency: str) -> tuple[str, list[JournalLineInput]]:
        """(분개 통화, 항목 입력 목록)

        Raises:
            ValidationError: 금액/통화 형식 오류
        """
        currency = self.currency or default_currency
        return currency, [line.to_input(currency) for line in self.lines]


class ReverseRequest(BaseModel):
    """역분개 요청"""

    reversal_date: date = Field(..., alias="date", description="역분개 일자 (YYYY-MM-DD)")
    description: str = Field(..., description="적요")

    model_config = {"populate_by_name": True}


class RecurringJournalCreateRequest(BaseModel):
    """반복 분개 템플릿 생성 요청"""

    name: str = Field(..., description="템플릿 이름")
    description: str | None = Field(default=None, description="분개 적요 (생략 시 이름)")
    frequency: RecurringFrequency = Field(..., description="주기")
    interval: int = Field(default=1, description="주기 배수 (1 이상)")
    start_date: date = Field(..., description="첫 회차 일자")
    end_date: date | None = Field(default=None, description="마지막 회차 상한 (포함)")
    currency: str | None = Field(default=None, description="통화 (ISO 4217)")
    auto_post: bool = Field(default=False, description="작성 즉시 전기")
    lines: list[JournalLineRequest] = Field(default_factory=list, description="분개 항목")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "office rent",
                    "frequency": "Monthly",
                    "start_date": "2024-01-31",
                    "auto_post": True,
                    "lines": [
                        {"account_id": "5a7e...", "debit": 150000, "credit": 0},
                        {"account_id": "6f1c...", "debit": 0, "credit": 150000},
                    ],
                },
            ]
        }
    }

    def to_inputs(self, default_currency: str) -> tuple[str, list[JournalLineInput]]:
        currency = self.currency or default_currency
        return currency, [line.to_input(currency) for line in self.lines]


class BudgetLineRequest(BaseModel):
    """예산 항목 요청"""

    account_id: UUID = Field(..., description="계정 ID")
    amount: int = Field(..., description="예산액 (최소 단위)")


class BudgetCreateRequest(BaseModel):
    """예산 생성 요청"""

    name: str = Field(..., description="예산 이름")
    start_date: date = Field(..., description="시작일 (YYYY-MM-DD)")
    end_date: date = Field(..., description="종료일 (YYYY-MM-DD, 포함)")
    currency: str | None = Field(default=None, description="통화 (ISO 4217)")
    lines: list[BudgetLineRequest] = Field(default_factory=list, description="계정별 예산")

    def to_lines(self, default_currency: str) -> tuple[str, list[BudgetLine]]:
        currency = self.currency or default_currency
        return currency, [
            BudgetLine(account_id=line.account_id, amount=Money(line.amount, currency))
            for line in self.lines
        ]
