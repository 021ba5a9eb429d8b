"""Mini README: Domain records for accounts and the append-only ledger.

Structure:
    * AccountKind - enum of money containers (bank or wallet).
    * Direction - credit increases a balance, debit decreases it.
    * ReferenceType - business reason behind a movement.
    * Account - named money container with a denormalised balance.
    * LedgerEntry - frozen record of one signed movement and the balance after it.

Entries are immutable once built; corrections are new ``reversal`` entries.
Timestamps are always timezone-aware UTC datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from .errors import InvalidDirection, InvalidReference


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def new_identifier(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


class AccountKind(str, Enum):
    """Enumerate the supported account containers."""

    BANK = "bank"
    WALLET = "wallet"

    @classmethod
    def from_str(cls, value: str) -> "AccountKind":
        """Coerce arbitrary casing into a valid account kind."""

        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported account kind: {value}") from error


class Direction(str, Enum):
    """Whether a movement increases (credit) or decreases (debit) a balance."""

    CREDIT = "credit"
    DEBIT = "debit"

    @classmethod
    def from_str(cls, value: "str | Direction") -> "Direction":
        """Parse a direction, failing fast on anything but credit or debit."""

        if isinstance(value, Direction):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise InvalidDirection(f"Unsupported direction: {value!r}") from error

    @property
    def opposite(self) -> "Direction":
        return Direction.DEBIT if self is Direction.CREDIT else Direction.CREDIT

    def signed(self, amount: float) -> float:
        """Return ``+amount`` for credits and ``-amount`` for debits."""

        return amount if self is Direction.CREDIT else -amount


class ReferenceType(str, Enum):
    """Business reason recorded on every ledger entry."""

    PAYMENT = "payment"
    EXPENSE = "expense"
    MANUAL = "manual"
    TRANSFER = "transfer"
    REVERSAL = "reversal"

    @classmethod
    def from_str(cls, value: "str | ReferenceType") -> "ReferenceType":
        if isinstance(value, ReferenceType):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise InvalidReference(f"Unsupported reference type: {value!r}") from error


@dataclass(slots=True)
class Account:
    """Represent a bank or wallet account owned by a user."""

    account_id: str
    owner_id: str
    kind: AccountKind
    name: str
    details: Dict[str, Any] = field(default_factory=dict)
    balance: float = 0.0
    opening_balance: float = 0.0
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> Dict[str, object]:
        """Export the account with serialisable values."""

        return {
            "account_id": self.account_id,
            "owner_id": self.owner_id,
            "kind": self.kind.value,
            "name": self.name,
            "details": dict(self.details),
            "balance": self.balance,
            "opening_balance": self.opening_balance,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Immutable record of one signed money movement against one account."""

    entry_id: str
    user_id: str
    account_id: str
    direction: Direction
    amount: float
    delta: float
    balance_after: float
    ref_type: ReferenceType
    ref_id: Optional[str] = None
    remark: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> Dict[str, object]:
        return {
            "entry_id": self.entry_id,
            "user_id": self.user_id,
            "account_id": self.account_id,
            "direction": self.direction.value,
            "amount": self.amount,
            "delta": self.delta,
            "balance_after": self.balance_after,
            "ref_type": self.ref_type.value,
            "ref_id": self.ref_id,
            "remark": self.remark,
            "created_at": self.created_at.isoformat(),
        }
