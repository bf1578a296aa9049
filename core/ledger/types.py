"""
복식부기 타입 정의

AccountType, EntryStatus 등 Ledger 시스템에서 사용하는 Enum 정의.
모든 Enum은 str을 상속하여 JSON 직렬화 가능.
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 유형

    복식부기의 5대 계정 유형.
    """

    ASSET = "Asset"  # 자산
    LIABILITY = "Liability"  # 부채
    EQUITY = "Equity"  # 자본
    REVENUE = "Revenue"  # 수익
    EXPENSE = "Expense"  # 비용

    @property
    def is_debit_normal(self) -> bool:
        """차변 정상 계정 여부 (자산, 비용)"""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class AccountStatus(str, Enum):
    """계정 상태"""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class EntryStatus(str, Enum):
    """분개 상태

    전이 규칙:
    - Draft → Posted: 전기 (CAS)
    - Posted → Reversed: 역분개 생성 시에만
    """

    DRAFT = "Draft"
    POSTED = "Posted"
    REVERSED = "Reversed"

    @property
    def is_posted(self) -> bool:
        """잔액 집계 대상 여부 (Posted, Reversed)"""
        return self in (EntryStatus.POSTED, EntryStatus.REVERSED)


class YearStatus(str, Enum):
    """회계연도 상태"""

    OPEN = "Open"
    CLOSED = "Closed"


class PeriodStatus(str, Enum):
    """회계기간 상태"""

    OPEN = "Open"
    CLOSED = "Closed"


class JournalSide(str, Enum):
    """분개 방향 (차변/대변)"""

    DEBIT = "Debit"  # 차변 (자산 증가, 비용 증가)
    CREDIT = "Credit"  # 대변 (부채/자본/수익 증가)


class RecurringFrequency(str, Enum):
    """반복 분개 주기 (interval 배수로 적용)"""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    BIWEEKLY = "Biweekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"

    @property
    def months(self) -> int:
        """월 단위 주기의 개월 수 (일 단위 주기는 0)"""
        return {
            RecurringFrequency.MONTHLY: 1,
            RecurringFrequency.QUARTERLY: 3,
            RecurringFrequency.YEARLY: 12,
        }.get(self, 0)

    @property
    def days(self) -> int:
        """일 단위 주기의 일수 (월 단위 주기는 0)"""
        return {
            RecurringFrequency.DAILY: 1,
            RecurringFrequency.WEEKLY: 7,
            RecurringFrequency.BIWEEKLY: 14,
        }.get(self, 0)


class RecurringStatus(str, Enum):
    """반복 분개 상태

    - Active: 도래 시 분개 생성
    - Inactive: 사용자가 중지
    - Completed: 종료일을 지나 더 생성할 회차 없음
    """

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    COMPLETED = "Completed"


class CurrencyMixingPolicy(str, Enum):
    """계정 잔액 조회 시 통화 혼합 처리 정책"""

    REJECT = "reject"  # 혼합 시 BusinessRule 오류
    PER_CURRENCY = "per_currency"  # 통화별 잔액 목록 반환


# 기본 계정과목표 (seed_chart 스크립트에서 사용)
DEFAULT_CHART: list[tuple[str, str, str, str | None]] = [
    # (code, name, account_type, parent_code)

    # 자산
    ("1000", "Assets", "Asset", None),
    ("1100", "Cash", "Asset", "1000"),
    ("1200", "Accounts Receivable", "Asset", "1000"),
    ("1300", "Inventory", "Asset", "1000"),

    # 부채
    ("2000", "Liabilities", "Liability", None),
    ("2100", "Accounts Payable", "Liability", "2000"),
    ("2200", "Accrued Liabilities", "Liability", "2000"),

    # 자본
    ("3000", "Equity", "Equity", None),
    ("3100", "Share Capital", "Equity", "3000"),
    ("3200", "Retained Earnings", "Equity", "3000"),

    # 수익
    ("4000", "Revenue", "Revenue", None),
    ("4100", "Sales", "Revenue", "4000"),
    ("4200", "Other Income", "Revenue", "4000"),

    # 비용
    ("5000", "Expenses", "Expense", None),
    ("5100", "Cost of Goods Sold", "Expense", "5000"),
    ("5200", "Salaries", "Expense", "5000"),
    ("5300", "Rent", "Expense", "5000"),
]
