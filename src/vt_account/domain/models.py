"""Domain models for vt_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Profile:
    id: str                  # Telegram user id
    username: str | None
    balance: float           # EUR, may go negative through maintenance debits
    trading_volume: float    # EUR, eligible sell notional; unlocks the property market
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: float                    # EUR, positive=income negative=expense
    balance_after: float             # EUR, balance snapshot after op
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    reward: float
