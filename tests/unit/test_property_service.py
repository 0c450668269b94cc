"""Unit tests for PropertyService using mock repositories."""

from unittest.mock import AsyncMock

import pytest

from src.vt_account.domain.models import Achievement, Profile
from src.vt_common.errors import (
    InsufficientFundsError,
    PropertyAlreadyOwnedError,
    PropertyMarketLockedError,
    PropertyNotFoundError,
)
from src.vt_economy.application.service import PropertyService
from src.vt_economy.domain.properties import PROPERTY_CATALOG, PropertyAsset
from tests.fakes import NOW


def _make_asset(
    asset_id: int = 7, asset_type: str = "garage", condition: int = 40, user: str = "u1"
) -> PropertyAsset:
    return PropertyAsset(
        id=asset_id,
        user_id=user,
        asset_type=asset_type,
        purchase_price=PROPERTY_CATALOG[asset_type].price,
        condition=condition,
        last_rent_collected_at=NOW,
        created_at=NOW,
    )


def _make_service(
    properties: AsyncMock, accounts: AsyncMock
) -> tuple[PropertyService, AsyncMock]:
    achievements = AsyncMock()
    achievements.award.return_value = None
    svc = PropertyService(
        property_repo=properties, account_repo=accounts, achievements=achievements
    )
    return svc, achievements


class TestBuy:
    async def test_locked_below_trading_volume(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 1e6, 29999.0)
        properties = AsyncMock()
        svc, _ = _make_service(properties, accounts)

        with pytest.raises(PropertyMarketLockedError):
            await svc.buy(AsyncMock(), "u1", "garage")

        properties.insert.assert_not_awaited()

    async def test_buys_and_debits_price(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 20000.0, 30000.0)
        accounts.adjust_balance.return_value = 5000.0
        properties = AsyncMock()
        properties.insert.return_value = _make_asset(condition=100)
        properties.list_for_user.return_value = [_make_asset(condition=100)]
        svc, achievements = _make_service(properties, accounts)
        db = AsyncMock()

        receipt = await svc.buy(db, "u1", "garage")

        assert accounts.adjust_balance.await_args.args[2] == -15000.0
        assert accounts.append_ledger.await_args.args[2] == "BUY_PROPERTY"
        assert receipt.balance_after == 5000.0
        assert receipt.condition == 100
        achievements.award.assert_not_awaited()
        db.commit.assert_awaited_once()

    async def test_already_owned(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 1e6, 1e6)
        properties = AsyncMock()
        properties.insert.return_value = None
        svc, _ = _make_service(properties, accounts)

        with pytest.raises(PropertyAlreadyOwnedError):
            await svc.buy(AsyncMock(), "u1", "garage")

        accounts.adjust_balance.assert_not_awaited()

    async def test_insufficient_balance_rolls_back_insert(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 100.0, 1e6)
        accounts.adjust_balance.side_effect = InsufficientFundsError(15000.0, 100.0)
        properties = AsyncMock()
        properties.insert.return_value = _make_asset(condition=100)
        svc, _ = _make_service(properties, accounts)
        db = AsyncMock()

        with pytest.raises(InsufficientFundsError):
            await svc.buy(db, "u1", "garage")

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_every_type_awards_mogul_and_king(self) -> None:
        accounts = AsyncMock()
        accounts.get_profile.return_value = Profile("u1", "alice", 1e8, 1e6)
        accounts.adjust_balance.return_value = 1000.0
        properties = AsyncMock()
        properties.insert.return_value = _make_asset(asset_type="skyscraper", condition=100)
        properties.list_for_user.return_value = [
            _make_asset(i, t, 100) for i, t in enumerate(PROPERTY_CATALOG)
        ]
        svc, achievements = _make_service(properties, accounts)
        achievements.award.side_effect = [
            Achievement("property_mogul", "t", "d", 5000.0),
            Achievement("portfolio_king", "t", "d", 25000.0),
        ]

        receipt = await svc.buy(AsyncMock(), "u1", "skyscraper")

        assert receipt.achievements == ["property_mogul", "portfolio_king"]
        assert receipt.balance_after == pytest.approx(31000.0)

    async def test_unknown_type(self) -> None:
        svc, _ = _make_service(AsyncMock(), AsyncMock())
        with pytest.raises(PropertyNotFoundError):
            await svc.buy(AsyncMock(), "u1", "castle")


class TestPortfolio:
    async def test_lists_current_rent_and_repair_cost(self) -> None:
        properties = AsyncMock()
        properties.list_for_user.return_value = [_make_asset(condition=60)]
        svc, _ = _make_service(properties, AsyncMock())

        items = await svc.portfolio(AsyncMock(), "u1")

        assert len(items) == 1
        assert items[0].current_rent == 66
        assert items[0].repair_cost == 150.0
        assert items[0].last_rent_collected_at == NOW.isoformat()


class TestSellAndRepair:
    async def test_sell_returns_eighty_percent(self) -> None:
        properties = AsyncMock()
        properties.delete.return_value = _make_asset(asset_type="apartment")
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 68000.0
        svc, _ = _make_service(properties, accounts)

        receipt = await svc.sell(AsyncMock(), "u1", 7)

        assert receipt.amount == pytest.approx(68000.0)
        assert accounts.append_ledger.await_args.args[2] == "SELL_PROPERTY"

    async def test_sell_foreign_or_missing(self) -> None:
        properties = AsyncMock()
        properties.delete.return_value = None
        svc, _ = _make_service(properties, AsyncMock())
        with pytest.raises(PropertyNotFoundError):
            await svc.sell(AsyncMock(), "u1", 99)

    async def test_repair_costs_three_maintenance_and_restores(self) -> None:
        properties = AsyncMock()
        properties.get_for_update.return_value = _make_asset(condition=40)
        accounts = AsyncMock()
        accounts.adjust_balance.return_value = 850.0
        svc, _ = _make_service(properties, accounts)

        receipt = await svc.repair(AsyncMock(), "u1", 7)

        assert accounts.adjust_balance.await_args.args[2] == -150.0
        properties.update_state.assert_awaited_once()
        assert properties.update_state.await_args.args[2] == 100
        assert receipt.condition == 100

    async def test_repair_someone_elses_asset(self) -> None:
        properties = AsyncMock()
        properties.get_for_update.return_value = _make_asset(user="u2")
        svc, _ = _make_service(properties, AsyncMock())
        with pytest.raises(PropertyNotFoundError):
            await svc.repair(AsyncMock(), "u1", 7)
