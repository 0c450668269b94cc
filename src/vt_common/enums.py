"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class LedgerEntryType(str, Enum):
    # Spot trading
    BUY_CRYPTO = "BUY_CRYPTO"
    SELL_CRYPTO = "SELL_CRYPTO"
    # Leverage
    LEVERAGE_OPEN = "LEVERAGE_OPEN"
    LEVERAGE_CLOSE = "LEVERAGE_CLOSE"
    LIQUIDATION = "LIQUIDATION"
    # Property market
    BUY_PROPERTY = "BUY_PROPERTY"
    SELL_PROPERTY = "SELL_PROPERTY"
    PROPERTY_REPAIR = "PROPERTY_REPAIR"
    RENT = "RENT"
    MAINTENANCE = "MAINTENANCE"
    # Rewards
    ACHIEVEMENT = "ACHIEVEMENT"


class RiskLevel(str, Enum):
    """Liquidation proximity tier of a leveraged position."""
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"
    LIQUIDATED = "liquidated"


class NotificationKind(str, Enum):
    LIQUIDATION = "liquidation"
    LIQUIDATION_WARNING = "liquidation_warning"
    RENT = "rent"
    MAINTENANCE = "maintenance"
    MARKET_NEWS = "market_news"


class TaskState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    STOPPED = "STOPPED"
