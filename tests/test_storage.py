"""
Tests for storage implementations.

The in-memory backend is tested directly. The Google Sheets backend is
tested against a fake client whose worksheets keep rows in lists, so no
network access or credentials are needed.
"""

import pytest
from uuid import uuid4

from savings_tracker.models.audit import AuditEventBuilder, AuditEventType
from savings_tracker.models.savings import SavingsAccountCreate, SavingsAccountZoneCreate
from savings_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsSavingsStorage,
    InMemoryAuditStorage,
    InMemorySavingsStorage,
    NotFoundError,
    StorageError,
)
from savings_tracker.services.storage.google_sheets import (
    ACCOUNT_COLUMNS,
    AUDIT_COLUMNS,
    ZONE_COLUMNS,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage classes."""

    def __init__(self, header: list[str]):
        self.rows = [list(header)]

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(value) for value in row])

    def update_cell(self, row: int, col: int, value):
        target = self.rows[row - 1]
        while len(target) < col:
            target.append("")
        target[col - 1] = str(value)

    def delete_rows(self, index: int):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.accounts = FakeWorksheet(ACCOUNT_COLUMNS)
        self.zones = FakeWorksheet(ZONE_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)

    def get_accounts_sheet(self):
        return self.accounts

    def get_zones_sheet(self):
        return self.zones

    def get_audit_sheet(self):
        return self.audit


class BrokenSheetsClient:
    def get_accounts_sheet(self):
        raise RuntimeError("quota exceeded")

    def get_zones_sheet(self):
        raise RuntimeError("quota exceeded")

    def get_audit_sheet(self):
        raise RuntimeError("quota exceeded")


@pytest.fixture(params=["memory", "sheets"])
def storage(request):
    """Both savings backends, so the shared contract is tested once."""
    if request.param == "memory":
        return InMemorySavingsStorage()
    return GoogleSheetsSavingsStorage(FakeSheetsClient())


def new_account(name: str = "Savings", balance: str = "1000", **kwargs) -> SavingsAccountCreate:
    return SavingsAccountCreate(name=name, balance=balance, **kwargs)


class TestSavingsStorageContract:
    """Behaviour every savings storage backend must share."""

    @pytest.mark.asyncio
    async def test_create_and_get_account(self, storage):
        account = await storage.create_account(
            new_account(interest_rate="2.5", has_zone_designation=True),
            default_currency="EUR",
        )
        fetched = await storage.get_account(account.id)

        assert fetched is not None
        assert fetched.id == account.id
        assert fetched.name == "Savings"
        assert fetched.balance == "1000"
        assert fetched.currency == "EUR"
        assert fetched.interest_rate == "2.5"
        assert fetched.has_zone_designation is True

    @pytest.mark.asyncio
    async def test_get_missing_account_returns_none(self, storage):
        assert await storage.get_account(uuid4()) is None

    @pytest.mark.asyncio
    async def test_list_accounts_sorted_by_name(self, storage):
        await storage.create_account(new_account(name="Zeta"))
        await storage.create_account(new_account(name="Alpha"))

        names = [a.name for a in await storage.list_accounts()]
        assert names == ["Alpha", "Zeta"]

    @pytest.mark.asyncio
    async def test_update_account(self, storage):
        account = await storage.create_account(new_account(currency="CZK", interest_rate="1"))

        updated = await storage.update_account(
            account.id,
            new_account(name="Renamed", balance="2500"),
        )
        fetched = await storage.get_account(account.id)

        assert updated.name == "Renamed"
        assert fetched.balance == "2500"
        assert fetched.interest_rate == "1"  # not provided, kept
        assert fetched.currency == "CZK"

    @pytest.mark.asyncio
    async def test_update_missing_account_raises(self, storage):
        with pytest.raises(NotFoundError):
            await storage.update_account(uuid4(), new_account())

    @pytest.mark.asyncio
    async def test_delete_missing_account_raises(self, storage):
        with pytest.raises(NotFoundError):
            await storage.delete_account(uuid4())

    @pytest.mark.asyncio
    async def test_zones_sorted_by_amount(self, storage):
        account = await storage.create_account(new_account(has_zone_designation=True))
        for from_amount in ("1000", "0", "200"):
            await storage.create_zone(SavingsAccountZoneCreate(
                savings_account_id=account.id,
                from_amount=from_amount,
                interest_rate="1",
            ))

        zones = await storage.get_zones(account.id)
        assert [z.from_amount for z in zones] == ["0", "200", "1000"]

    @pytest.mark.asyncio
    async def test_zones_are_per_account(self, storage):
        first = await storage.create_account(new_account(name="A"))
        second = await storage.create_account(new_account(name="B"))
        await storage.create_zone(SavingsAccountZoneCreate(
            savings_account_id=first.id, from_amount="0", interest_rate="1",
        ))

        assert len(await storage.get_zones(first.id)) == 1
        assert await storage.get_zones(second.id) == []

    @pytest.mark.asyncio
    async def test_unbounded_zone_round_trips_as_none(self, storage):
        account = await storage.create_account(new_account())
        await storage.create_zone(SavingsAccountZoneCreate(
            savings_account_id=account.id, from_amount="0", interest_rate="1",
        ))

        [zone] = await storage.get_zones(account.id)
        assert zone.to_amount is None

    @pytest.mark.asyncio
    async def test_create_zone_for_missing_account_raises(self, storage):
        with pytest.raises(NotFoundError):
            await storage.create_zone(SavingsAccountZoneCreate(
                savings_account_id=uuid4(), from_amount="0", interest_rate="1",
            ))

    @pytest.mark.asyncio
    async def test_delete_account_cascades_to_zones(self, storage):
        doomed = await storage.create_account(new_account(name="Doomed"))
        kept = await storage.create_account(new_account(name="Kept"))
        for account in (doomed, doomed, kept):
            await storage.create_zone(SavingsAccountZoneCreate(
                savings_account_id=account.id, from_amount="0", interest_rate="1",
            ))

        assert await storage.delete_account(doomed.id) is True

        assert await storage.get_account(doomed.id) is None
        assert await storage.get_zones(doomed.id) == []
        assert len(await storage.get_zones(kept.id)) == 1

    @pytest.mark.asyncio
    async def test_delete_zone(self, storage):
        account = await storage.create_account(new_account())
        zone = await storage.create_zone(SavingsAccountZoneCreate(
            savings_account_id=account.id, from_amount="0", interest_rate="1",
        ))

        assert await storage.delete_zone(zone.id) is True
        assert await storage.delete_zone(zone.id) is False
        assert await storage.get_zones(account.id) == []


class TestGoogleSheetsSavingsStorage:
    """Sheets-specific behaviour."""

    @pytest.mark.asyncio
    async def test_amounts_written_verbatim(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsSavingsStorage(client)

        await storage.create_account(new_account(balance="1000.10", interest_rate="0.5"))

        row = client.accounts.rows[1]
        assert row[ACCOUNT_COLUMNS.index("balance")] == "1000.10"
        assert row[ACCOUNT_COLUMNS.index("interest_rate")] == "0.5"
        assert row[ACCOUNT_COLUMNS.index("has_zone_designation")] == "False"

    @pytest.mark.asyncio
    async def test_blank_currency_uses_configured_default(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsSavingsStorage(client, default_currency="EUR")
        account = await storage.create_account(new_account(currency="USD"))
        client.accounts.rows[1][ACCOUNT_COLUMNS.index("currency")] = ""

        fetched = await storage.get_account(account.id)
        assert fetched.currency == "EUR"

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsSavingsStorage(client)
        await storage.create_account(new_account(name="Good"))
        client.accounts.rows.append(["not-a-uuid", "Bad"])
        client.accounts.rows.append([])

        accounts = await storage.list_accounts()
        assert [a.name for a in accounts] == ["Good"]

    @pytest.mark.asyncio
    async def test_read_failures_become_storage_errors(self):
        storage = GoogleSheetsSavingsStorage(BrokenSheetsClient())

        with pytest.raises(StorageError, match="quota exceeded"):
            await storage.list_accounts()
        with pytest.raises(StorageError):
            await storage.get_zones(uuid4())


class TestAuditStorage:
    """Tests for audit storage backends."""

    @pytest.fixture(params=["memory", "sheets"])
    def audit_storage(self, request):
        if request.param == "memory":
            return InMemoryAuditStorage()
        return GoogleSheetsAuditStorage(FakeSheetsClient())

    @pytest.mark.asyncio
    async def test_events_by_entity_and_correlation(self, audit_storage):
        account_id = uuid4()
        correlation_id = uuid4()

        await audit_storage.append_event(
            AuditEventBuilder.account_created(account_id, "Savings", correlation_id)
        )
        await audit_storage.append_event(
            AuditEventBuilder.account_deleted(account_id, correlation_id)
        )
        await audit_storage.append_event(
            AuditEventBuilder.account_created(uuid4(), "Other")
        )

        by_entity = await audit_storage.get_events_by_entity("account", account_id)
        by_correlation = await audit_storage.get_events_by_correlation_id(correlation_id)

        assert [e.event_type for e in by_entity] == [
            AuditEventType.ACCOUNT_CREATED,
            AuditEventType.ACCOUNT_DELETED,
        ]
        assert len(by_correlation) == 2

    @pytest.mark.asyncio
    async def test_recent_events_newest_first(self, audit_storage):
        for name in ("first", "second", "third"):
            await audit_storage.append_event(
                AuditEventBuilder.account_created(uuid4(), name)
            )

        recent = await audit_storage.get_recent_events(limit=2)
        assert len(recent) == 2
        assert recent[0].details["name"] == "third"

    @pytest.mark.asyncio
    async def test_sheets_round_trip_preserves_details(self):
        storage = GoogleSheetsAuditStorage(FakeSheetsClient())
        zone_id = uuid4()
        await storage.append_event(AuditEventBuilder.zone_created(
            zone_id=zone_id,
            account_id=uuid4(),
            from_amount="0",
            to_amount="100000",
            interest_rate="1.0",
        ))

        [event] = await storage.get_events_by_entity("zone", zone_id)
        assert event.details["to_amount"] == "100000"
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
