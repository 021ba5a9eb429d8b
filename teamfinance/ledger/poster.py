"""Mini README: The ledger poster, sole writer of account balances.

Structure:
    * coerce_amount - validate a caller supplied amount and return its magnitude.
    * LedgerPoster - posts entries, transfers between accounts and reversals.

Every posting opens one store transaction on the target account, increments
the balance, reads the new value back and inserts exactly one entry carrying
that value as ``balance_after``. A failure inside the block rolls both
writes back. Transfers are two postings; if the credit leg fails the debit is
compensated with a reversal entry so the source balance is restored.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from numbers import Real
from typing import Callable, Optional, Tuple

from ..logging_utils import get_logger
from .errors import InvalidAmount, InvalidTransfer
from .models import Direction, LedgerEntry, ReferenceType, new_identifier, utcnow
from .store import LedgerStore

LOGGER = get_logger(__name__)


def coerce_amount(amount: object) -> float:
    """Return ``abs(amount)`` as a float, rejecting zero, NaN and non-numbers."""

    if isinstance(amount, bool):
        raise InvalidAmount(f"Amount must be numeric, got {amount!r}")
    if isinstance(amount, (Real, Decimal)):
        try:
            value = float(amount)
        except OverflowError as error:
            raise InvalidAmount(f"Amount must be finite, got {amount!r}") from error
    elif isinstance(amount, str):
        try:
            value = float(Decimal(amount.strip()))
        except (InvalidOperation, ValueError, OverflowError) as error:
            raise InvalidAmount(f"Amount must be numeric, got {amount!r}") from error
    else:
        raise InvalidAmount(f"Amount must be numeric, got {amount!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidAmount(f"Amount must be finite, got {amount!r}")
    if value == 0:
        raise InvalidAmount("Amount must be non-zero")
    return abs(value)


class LedgerPoster:
    """Convert money movements into balance updates plus immutable entries."""

    def __init__(self, store: LedgerStore, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def post_entry(
        self,
        user_id: str,
        account_id: str,
        direction: "Direction | str",
        amount: object,
        ref_type: "ReferenceType | str",
        ref_id: Optional[str] = None,
        remark: Optional[str] = None,
    ) -> LedgerEntry:
        """Apply one signed movement to an account and record it.

        Raises:
            InvalidDirection: direction is not credit or debit.
            InvalidReference: ref_type is not a supported reason.
            InvalidAmount: amount is zero, non-numeric, NaN or infinite.
            AccountNotFound: the account does not exist.
        """

        parsed_direction = Direction.from_str(direction)
        parsed_ref_type = ReferenceType.from_str(ref_type)
        magnitude = coerce_amount(amount)
        delta = parsed_direction.signed(magnitude)

        async with self._store.transaction(account_id) as session:
            balance_after = await session.increment_balance(delta)
            entry = LedgerEntry(
                entry_id=new_identifier("txn"),
                user_id=user_id,
                account_id=account_id,
                direction=parsed_direction,
                amount=magnitude,
                delta=delta,
                balance_after=balance_after,
                ref_type=parsed_ref_type,
                ref_id=ref_id,
                remark=remark,
                created_at=self._clock(),
            )
            await session.insert_entry(entry)

        LOGGER.info(
            "Posted %s %.2f on account %s (%s) -> balance %.2f",
            parsed_direction.value,
            magnitude,
            account_id,
            parsed_ref_type.value,
            balance_after,
        )
        return entry

    async def transfer(
        self,
        user_id: str,
        source_account_id: str,
        target_account_id: str,
        amount: object,
        remark: Optional[str] = None,
    ) -> Tuple[LedgerEntry, LedgerEntry]:
        """Move money between two accounts as a debit/credit pair."""

        if source_account_id == target_account_id:
            raise InvalidTransfer("Source and target accounts must differ")
        magnitude = coerce_amount(amount)
        # both legs must exist before any money moves
        await self._store.get_account(target_account_id)
        transfer_id = new_identifier("trf")

        debit = await self.post_entry(
            user_id,
            source_account_id,
            Direction.DEBIT,
            magnitude,
            ReferenceType.TRANSFER,
            ref_id=transfer_id,
            remark=remark or f"Transfer to {target_account_id}",
        )
        try:
            credit = await self.post_entry(
                user_id,
                target_account_id,
                Direction.CREDIT,
                magnitude,
                ReferenceType.TRANSFER,
                ref_id=transfer_id,
                remark=remark or f"Transfer from {source_account_id}",
            )
        except Exception:
            LOGGER.error(
                "Credit leg of transfer %s failed; compensating debit %s", transfer_id, debit.entry_id
            )
            try:
                await self.post_entry(
                    user_id,
                    source_account_id,
                    Direction.CREDIT,
                    magnitude,
                    ReferenceType.REVERSAL,
                    ref_id=debit.entry_id,
                    remark=f"Compensate failed transfer {transfer_id}",
                )
            except Exception:
                LOGGER.exception(
                    "Compensation for transfer %s failed; debit %s on account %s is stranded",
                    transfer_id,
                    debit.entry_id,
                    source_account_id,
                )
            raise
        return debit, credit

    async def reverse_entry(
        self, user_id: str, entry_id: str, remark: Optional[str] = None
    ) -> LedgerEntry:
        """Post the opposite movement of an existing entry."""

        original = await self._store.get_entry(entry_id)
        reversal = await self.post_entry(
            user_id,
            original.account_id,
            original.direction.opposite,
            original.amount,
            ReferenceType.REVERSAL,
            ref_id=original.entry_id,
            remark=remark or f"Reversal of {original.entry_id}",
        )
        LOGGER.info("Reversed entry %s with %s", entry_id, reversal.entry_id)
        return reversal
