"""
계정과목표 (AccountBook)

계정 레코드, 상위/하위 트리, 유형 분류, 활성 상태 관리.
트리는 (id, parent_id)로 저장하고 탐색은 반복 조회로 수행.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable
from uuid import UUID

from core.ledger.errors import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from core.ledger.models import Account, AccountFilter, new_id
from core.ledger.types import AccountStatus, AccountType
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.interfaces import IJournalStore, IStoreTxn

logger = logging.getLogger(__name__)


class _Unset:
    """부분 수정에서 '변경 없음'을 나타내는 표식"""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def _require_text(value: str | None, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value


def coerce_account_type(value: AccountType | str) -> AccountType:
    """문자열을 AccountType으로 변환

    Raises:
        ValidationError: 알 수 없는 유형
    """
    try:
        return AccountType(value)
    except ValueError as e:
        raise ValidationError(f"unknown account type: {value!r}") from e


def coerce_account_status(value: AccountStatus | str) -> AccountStatus:
    try:
        return AccountStatus(value)
    except ValueError as e:
        raise ValidationError(f"unknown account status: {value!r}") from e


class AccountBook:
    """계정과목표 관리

    Args:
        store: JournalStore 포트
        clock: 현재 시각 함수 (테스트 주입용)

    사용 예시:
    ```python
    book = AccountBook(store)
    cash = await book.create_account("1100", "Cash", AccountType.ASSET)
    ```
    """

    def __init__(
        self,
        store: IJournalStore,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.clock = clock

    # -------------------------------------------------------------------------
    # 생성 / 조회
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        parent_id: UUID | None = None,
        description: str | None = None,
    ) -> Account:
        """계정 생성

        Raises:
            ValidationError: code/name 누락, 상위 계정 없음 또는 유형 불일치
            ConflictError: code 중복
        """
        _require_text(code, "code")
        _require_text(name, "name")
        account_type = coerce_account_type(account_type)

        async with self.store.begin_txn() as txn:
            if await txn.get_account_by_code(code) is not None:
                raise ConflictError(f"account code already exists: {code}")

            if parent_id is not None:
                parent = await txn.get_account(parent_id)
                if parent is None:
                    raise ValidationError("parent account not found")
                if parent.account_type != account_type:
                    raise ValidationError("parent account type mismatch")

            now = self.clock()
            account = Account(
                id=new_id(),
                code=code,
                name=name,
                account_type=account_type,
                parent_id=parent_id,
                description=description,
                status=AccountStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            )
            await txn.insert_account(account)

        logger.info(
            "계정 생성",
            extra={"account_id": str(account.id), "code": code, "account_type": account_type.value},
        )
        return account

    async def get_account(self, account_id: UUID) -> Account:
        """계정 조회

        Raises:
            NotFoundError: 계정 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            return await self.require_in(txn, account_id)

    async def get_by_code(self, code: str) -> Account:
        """코드로 계정 조회

        Raises:
            NotFoundError: 계정 없음
        """
        async with self.store.begin_txn(readonly=True) as txn:
            account = await txn.get_account_by_code(code)
        if account is None:
            raise NotFoundError(f"account not found: {code}")
        return account

    async def list_accounts(self, account_filter: AccountFilter | None = None) -> list[Account]:
        """계정 목록 (code 오름차순)"""
        async with self.store.begin_txn(readonly=True) as txn:
            return await txn.list_accounts(account_filter)

    # -------------------------------------------------------------------------
    # 수정 / 삭제
    # -------------------------------------------------------------------------

    async def update_account(
        self,
        account_id: UUID,
        *,
        name: str = UNSET,
        description: str | None = UNSET,
        parent_id: UUID | None = UNSET,
        status: AccountStatus | str = UNSET,
        account_type: AccountType | str = UNSET,
        code: str = UNSET,
    ) -> Account:
        """계정 부분 수정

        UNSET인 필드는 변경하지 않음. description/parent_id는 None으로 해제 가능.

        Raises:
            NotFoundError: 계정 없음
            ValidationError: code 변경 시도, 잘못된 상위 계정 변경 (순환/자기 참조/유형 불일치)
            BusinessRuleError: 전기 항목이 있는 계정의 유형 변경
        """
        async with self.store.begin_txn() as txn:
            account = await self.require_in(txn, account_id)
            changes: dict[str, Any] = {}

            if code is not UNSET and code != account.code:
                raise ValidationError("account code is immutable")

            if name is not UNSET:
                changes["name"] = _require_text(name, "name")

            if description is not UNSET:
                changes["description"] = description

            if status is not UNSET:
                changes["status"] = coerce_account_status(status)

            new_type = account.account_type
            if account_type is not UNSET:
                new_type = coerce_account_type(account_type)
                if new_type != account.account_type:
                    await self._check_type_change(txn, account)
                    changes["account_type"] = new_type

            new_parent_id = account.parent_id if parent_id is UNSET else parent_id
            if parent_id is not UNSET or "account_type" in changes:
                await self._check_parent(txn, account.id, new_parent_id, new_type)
                changes["parent_id"] = new_parent_id

            if not changes:
                return account

            updated = replace(account, **changes, updated_at=self.clock())
            await txn.update_account(updated)

        logger.info(
            "계정 수정",
            extra={"account_id": str(account_id), "fields": sorted(changes)},
        )
        return updated

    async def deactivate(self, account_id: UUID) -> Account:
        """계정 비활성화

        비활성 계정은 새 분개에서 참조할 수 없으나 기존 전기 분개는 영향 없음.
        """
        return await self.update_account(account_id, status=AccountStatus.INACTIVE)

    async def delete_account(self, account_id: UUID) -> None:
        """계정 삭제

        Raises:
            NotFoundError: 계정 없음
            ConflictError: 하위 계정, 분개(Draft 포함), 반복 분개 또는 예산이 참조 중
        """
        async with self.store.begin_txn() as txn:
            account = await self.require_in(txn, account_id)

            children = await txn.list_accounts(AccountFilter(parent_id=account.id))
            if children:
                raise ConflictError("account has child accounts")

            if await txn.account_has_entries(account.id):
                raise ConflictError("account is referenced by journal entries")

            if await txn.account_has_plans(account.id):
                raise ConflictError("account is referenced by recurring journals or budgets")

            await txn.delete_account(account.id)

        logger.info("계정 삭제", extra={"account_id": str(account_id), "code": account.code})

    # -------------------------------------------------------------------------
    # 트리 탐색
    # -------------------------------------------------------------------------

    async def ancestors(self, account_id: UUID) -> list[Account]:
        """상위 계정 목록 (가까운 순, 자신 제외)"""
        async with self.store.begin_txn(readonly=True) as txn:
            account = await self.require_in(txn, account_id)
            return await self.ancestors_in(txn, account)

    async def descendants(self, account_id: UUID) -> list[Account]:
        """하위 계정 전체 (자신 제외, 너비 우선)"""
        async with self.store.begin_txn(readonly=True) as txn:
            await self.require_in(txn, account_id)
            return await self.descendants_in(txn, account_id)

    # -------------------------------------------------------------------------
    # 트랜잭션 내부 헬퍼 (엔진 공용)
    # -------------------------------------------------------------------------

    async def require_in(self, txn: IStoreTxn, account_id: UUID) -> Account:
        account = await txn.get_account(account_id)
        if account is None:
            raise NotFoundError(f"account not found: {account_id}")
        return account

    async def ancestors_in(self, txn: IStoreTxn, account: Account) -> list[Account]:
        chain: list[Account] = []
        seen: set[UUID] = {account.id}
        parent_id = account.parent_id
        while parent_id is not None and parent_id not in seen:
            parent = await txn.get_account(parent_id)
            if parent is None:
                break
            chain.append(parent)
            seen.add(parent.id)
            parent_id = parent.parent_id
        return chain

    async def descendants_in(self, txn: IStoreTxn, account_id: UUID) -> list[Account]:
        children: dict[UUID, list[Account]] = {}
        for candidate in await txn.list_accounts():
            if candidate.parent_id is not None:
                children.setdefault(candidate.parent_id, []).append(candidate)

        result: list[Account] = []
        seen: set[UUID] = {account_id}
        queue = [account_id]
        while queue:
            current = queue.pop(0)
            for child in children.get(current, []):
                if child.id in seen:
                    continue
                seen.add(child.id)
                result.append(child)
                queue.append(child.id)
        return result

    async def check_usable_in(
        self,
        txn: IStoreTxn,
        account_ids: Iterable[UUID],
        *,
        missing_is_validation: bool,
    ) -> dict[UUID, Account]:
        """분개에서 참조 가능한 계정인지 확인

        Args:
            missing_is_validation: True면 없는 계정을 ValidationError로 (작성 시),
                False면 BusinessRuleError로 (전기 시)

        Raises:
            ValidationError / BusinessRuleError: 계정 없음
            BusinessRuleError: 비활성 계정
        """
        accounts: dict[UUID, Account] = {}
        for account_id in dict.fromkeys(account_ids):
            account = await txn.get_account(account_id)
            if account is None:
                message = f"account not found: {account_id}"
                if missing_is_validation:
                    raise ValidationError(message)
                raise BusinessRuleError(message)
            if not account.is_active:
                raise BusinessRuleError(f"account is inactive: {account.code}")
            accounts[account_id] = account
        return accounts

    async def _check_type_change(self, txn: IStoreTxn, account: Account) -> None:
        if await txn.account_has_entries(account.id, posted_only=True):
            raise BusinessRuleError("account type cannot change: account has posted lines")
        if await txn.list_accounts(AccountFilter(parent_id=account.id)):
            raise ValidationError("account type cannot change: account has child accounts")

    async def _check_parent(
        self,
        txn: IStoreTxn,
        account_id: UUID,
        parent_id: UUID | None,
        account_type: AccountType,
    ) -> None:
        """상위 계정 변경 검증 (자기 참조, 유형 불일치, 순환)"""
        if parent_id is None:
            return
        if parent_id == account_id:
            raise ValidationError("account cannot be its own parent")

        parent = await txn.get_account(parent_id)
        if parent is None:
            raise ValidationError("parent account not found")
        if parent.account_type != account_type:
            raise ValidationError("parent account type mismatch")

        # 새 상위 계정의 조상 중에 자신이 있으면 순환
        for ancestor in await self.ancestors_in(txn, parent):
            if ancestor.id == account_id:
                raise ValidationError("parent change would create a cycle")
