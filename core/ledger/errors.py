"""
Ledger 오류 체계

오류는 종류(kind)로 분류되며, 엔진을 거쳐 호출자에게 그대로 전파됨.
HTTP 어댑터는 kind를 상태 코드로 매핑.

- VALIDATION: 입력 형식 오류 (빈 문자열, 음수 금액, 잘못된 통화 코드 등)
- NOT_FOUND: 참조 ID/코드 없음
- CONFLICT: 유일성 위반, 잘못된 상태 전이, 동시 수정 경합 패배
- BUSINESS_RULE: 입력 오류가 아닌 불변식 위반 (불균형 분개, 마감 기간 등)
- STORAGE: 저장소 오류 (원인은 보존하되 외부에 노출하지 않음)
"""

from enum import Enum


class ErrorKind(str, Enum):
    """오류 종류"""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BUSINESS_RULE = "BUSINESS_RULE"
    STORAGE = "STORAGE"


class LedgerError(Exception):
    """Ledger 오류 기본 클래스

    Args:
        message: 짧고 외부 노출에 안전한 메시지
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """딕셔너리로 변환 (응답/로깅용)"""
        return {"error": self.kind.value, "message": self.message}


class ValidationError(LedgerError):
    """입력 검증 실패"""

    kind = ErrorKind.VALIDATION


class NotFoundError(LedgerError):
    """참조 대상 없음"""

    kind = ErrorKind.NOT_FOUND


class ConflictError(LedgerError):
    """유일성 위반 / 상태 전이 불가"""

    kind = ErrorKind.CONFLICT


class BusinessRuleError(LedgerError):
    """업무 규칙 위반"""

    kind = ErrorKind.BUSINESS_RULE


class CurrencyMismatchError(BusinessRuleError):
    """서로 다른 통화 간 연산"""

    def __init__(self, left: str, right: str):
        self.left = left
        self.right = right
        super().__init__(f"currency mismatch: {left} vs {right}")


class StorageError(LedgerError):
    """저장소 오류

    원인 예외는 __cause__로 보존.
    """

    kind = ErrorKind.STORAGE
