"""Unit tests for TradingService using mock repositories."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.vt_account.domain.models import Achievement, Profile
from src.vt_common.errors import InsufficientFundsError, InsufficientHoldingsError
from src.vt_market.domain.models import PriceQuote
from src.vt_trading.application.service import TradingService
from src.vt_trading.domain.models import SpotPosition
from tests.fakes import NOW


def _make_feed(price: float = 60000.0, symbol: str = "bitcoin") -> AsyncMock:
    feed = AsyncMock()
    feed.get_quote.return_value = PriceQuote(symbol, price, 0.0, NOW)
    return feed


def _make_service(
    feed: AsyncMock, accounts: AsyncMock, positions: AsyncMock, now=NOW
) -> tuple[TradingService, AsyncMock]:
    achievements = AsyncMock()
    achievements.award.return_value = None
    svc = TradingService(
        feed,
        0.005,
        account_repo=accounts,
        position_repo=positions,
        achievements=achievements,
        clock=lambda: now,
    )
    return svc, achievements


class TestBuy:
    async def test_reference_scenario(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 3970.0
        positions = AsyncMock()
        positions.get_for_update.return_value = None
        svc, _ = _make_service(_make_feed(), accounts, positions)
        db = AsyncMock()

        receipt = await svc.buy(db, "u1", "BTC", 0.1)

        accounts.adjust_balance.assert_awaited_once()
        assert accounts.adjust_balance.await_args.args[2] == pytest.approx(-6030.0)
        assert receipt.subtotal == pytest.approx(6000.0)
        assert receipt.fee == pytest.approx(30.0)
        assert receipt.total == pytest.approx(6030.0)
        assert receipt.balance_after == 3970.0
        saved: SpotPosition = positions.save.await_args.args[1]
        assert saved.amount == pytest.approx(0.1)
        assert saved.avg_buy_price == 60000.0
        ledger_args = accounts.append_ledger.await_args.args
        assert ledger_args[2] == "BUY_CRYPTO"
        assert ledger_args[3] == pytest.approx(-6030.0)
        db.commit.assert_awaited_once()

    async def test_insufficient_funds_rolls_back(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.side_effect = InsufficientFundsError(6030.0, 100.0)
        positions = AsyncMock()
        svc, _ = _make_service(_make_feed(), accounts, positions)
        db = AsyncMock()

        with pytest.raises(InsufficientFundsError):
            await svc.buy(db, "u1", "bitcoin", 0.1)

        positions.save.assert_not_awaited()
        accounts.append_ledger.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_first_trade_reward_in_balance(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 3970.0
        positions = AsyncMock()
        positions.get_for_update.return_value = None
        svc, achievements = _make_service(_make_feed(), accounts, positions)
        achievements.award.return_value = Achievement("first_trade", "t", "d", 100.0)

        receipt = await svc.buy(AsyncMock(), "u1", "bitcoin", 0.1)

        assert receipt.achievements == ["first_trade"]
        assert receipt.balance_after == pytest.approx(4070.0)


class TestSell:
    async def test_held_over_an_hour_credits_volume(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 5000.0
        positions = AsyncMock()
        positions.get_for_update.return_value = SpotPosition(
            "u1", "bitcoin", 0.5, 50000.0, NOW - timedelta(hours=2)
        )
        svc, _ = _make_service(_make_feed(60000.0), accounts, positions)

        receipt = await svc.sell(AsyncMock(), "u1", "bitcoin", 0.2)

        accounts.add_trading_volume.assert_awaited_once()
        assert accounts.add_trading_volume.await_args.args[2] == pytest.approx(12000.0)
        assert receipt.volume_credited == pytest.approx(12000.0)
        assert receipt.total == pytest.approx(12000.0 * 0.995)
        assert receipt.position_amount == pytest.approx(0.3)
        positions.save.assert_awaited_once()

    async def test_fresh_position_gets_no_volume_credit(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 5000.0
        positions = AsyncMock()
        positions.get_for_update.return_value = SpotPosition(
            "u1", "bitcoin", 0.5, 50000.0, NOW - timedelta(minutes=10)
        )
        svc, _ = _make_service(_make_feed(), accounts, positions)

        receipt = await svc.sell(AsyncMock(), "u1", "bitcoin", 0.2)

        accounts.add_trading_volume.assert_not_awaited()
        assert receipt.volume_credited == 0.0

    async def test_configured_min_hold_applies(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 5000.0
        positions = AsyncMock()
        positions.get_for_update.return_value = SpotPosition(
            "u1", "bitcoin", 0.5, 50000.0, NOW - timedelta(minutes=90)
        )
        svc = TradingService(
            _make_feed(),
            0.005,
            account_repo=accounts,
            position_repo=positions,
            achievements=AsyncMock(award=AsyncMock(return_value=None)),
            volume_min_hold=timedelta(hours=2),
            clock=lambda: NOW,
        )

        receipt = await svc.sell(AsyncMock(), "u1", "bitcoin", 0.2)

        accounts.add_trading_volume.assert_not_awaited()
        assert receipt.volume_credited == 0.0

    async def test_selling_everything_deletes_position(self) -> None:
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 5000.0
        positions = AsyncMock()
        positions.get_for_update.return_value = SpotPosition("u1", "bitcoin", 0.5, 50000.0, NOW)
        svc, _ = _make_service(_make_feed(), accounts, positions)

        receipt = await svc.sell(AsyncMock(), "u1", "bitcoin", 0.5)

        positions.delete.assert_awaited_once()
        positions.save.assert_not_awaited()
        assert receipt.position_amount == 0.0

    async def test_no_position_rejected_without_mutation(self) -> None:
        accounts = AsyncMock()
        positions = AsyncMock()
        positions.get_for_update.return_value = None
        svc, _ = _make_service(_make_feed(), accounts, positions)
        db = AsyncMock()

        with pytest.raises(InsufficientHoldingsError):
            await svc.sell(db, "u1", "bitcoin", 0.1)

        accounts.adjust_balance.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestTradeInfo:
    async def test_limits_from_profile_and_holdings(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 10000.0, 0.0)
        positions = AsyncMock()
        positions.list_for_user.return_value = [SpotPosition("u1", "bitcoin", 0.25, 1.0, NOW)]
        svc, _ = _make_service(_make_feed(), accounts, positions)

        info = await svc.trade_info(AsyncMock(), "u1", "bitcoin")

        assert info.holdings == 0.25
        assert info.max_sell == 0.25
        assert info.max_buy == pytest.approx((10000.0 / 60000.0) / 1.005)
        assert info.fee_rate_display == "0.5%"
