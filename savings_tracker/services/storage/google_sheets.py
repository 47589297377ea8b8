"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Users can view and fix their account and zone data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a household has a handful of accounts)
- No transactions (cascading deletes are done bottom-up, row by row)
- Limited query capabilities (we filter in Python)

Amounts are written exactly as received (strings, RAW input option)
so Sheets never reformats a balance or rate.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from savings_tracker.config import GoogleSheetsSettings, get_settings
from savings_tracker.interest import parse_amount
from savings_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from savings_tracker.models.savings import (
    SavingsAccount,
    SavingsAccountCreate,
    SavingsAccountZone,
    SavingsAccountZoneCreate,
)
from savings_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    SavingsStorageInterface,
    StorageError,
)


# Column mappings for the accounts sheet
ACCOUNT_COLUMNS = [
    "id",
    "name",
    "balance",
    "currency",
    "interest_rate",
    "has_zone_designation",
    "created_at",
    "updated_at",
]

# Column mappings for the zones sheet
ZONE_COLUMNS = [
    "id",
    "savings_account_id",
    "from_amount",
    "to_amount",
    "interest_rate",
    "created_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and blank cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        """Get or create the accounts worksheet."""
        return self._get_or_create_sheet(
            self._settings.accounts_sheet_name, ACCOUNT_COLUMNS, rows=200
        )

    def get_zones_sheet(self) -> gspread.Worksheet:
        """Get or create the zones worksheet."""
        return self._get_or_create_sheet(
            self._settings.zones_sheet_name, ZONE_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsSavingsStorage(SavingsStorageInterface):
    """
    Google Sheets implementation of account and zone storage.

    Accounts and zones live in separate worksheets, one entity per row.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_currency: Optional[str] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._default_currency = default_currency or get_settings().app.default_currency

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    def _account_to_row(self, account: SavingsAccount) -> list:
        return [
            str(account.id),
            account.name,
            account.balance,
            account.currency,
            account.interest_rate,
            str(account.has_zone_designation),
            account.created_at.isoformat(),
            account.updated_at.isoformat(),
        ]

    def _row_to_account(self, row: list) -> SavingsAccount:
        return SavingsAccount(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            balance=_cell(row, 2, "0"),
            currency=_cell(row, 3, self._default_currency),
            interest_rate=_cell(row, 4, "0"),
            has_zone_designation=_cell(row, 5).lower() == "true",
            created_at=datetime.fromisoformat(_cell(row, 6)),
            updated_at=datetime.fromisoformat(_cell(row, 7)),
        )

    def _zone_to_row(self, zone: SavingsAccountZone) -> list:
        return [
            str(zone.id),
            str(zone.savings_account_id),
            zone.from_amount,
            zone.to_amount or "",
            zone.interest_rate,
            zone.created_at.isoformat(),
        ]

    def _row_to_zone(self, row: list) -> SavingsAccountZone:
        return SavingsAccountZone(
            id=UUID(_cell(row, 0)),
            savings_account_id=UUID(_cell(row, 1)),
            from_amount=_cell(row, 2, "0"),
            to_amount=_cell(row, 3) or None,
            interest_rate=_cell(row, 4, "0"),
            created_at=datetime.fromisoformat(_cell(row, 5)),
        )

    def _find_account_row(self, rows: list[list], account_id: UUID) -> Optional[int]:
        """1-based sheet row index of the account, header excluded."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == str(account_id):
                return idx
        return None

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def list_accounts(self) -> list[SavingsAccount]:
        """List all accounts, skipping malformed rows."""
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            accounts = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                try:
                    accounts.append(self._row_to_account(row))
                except Exception:
                    continue  # Skip malformed rows

            accounts.sort(key=lambda a: a.name)
            return accounts
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")

    async def get_account(self, account_id: UUID) -> Optional[SavingsAccount]:
        """Retrieve an account by its ID."""
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_account_row(all_rows, account_id)
            if idx is None:
                return None
            return self._row_to_account(all_rows[idx - 1])
        except Exception as e:
            raise StorageError(f"Failed to get account: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def create_account(
        self,
        data: SavingsAccountCreate,
        default_currency: str = "CZK",
    ) -> SavingsAccount:
        """Append a new account row."""
        try:
            account = SavingsAccount.from_create(data, default_currency)
            sheet = self._client.get_accounts_sheet()
            sheet.append_row(self._account_to_row(account), value_input_option="RAW")
            return account
        except Exception as e:
            raise StorageError(f"Failed to save account: {e}")

    async def update_account(
        self,
        account_id: UUID,
        data: SavingsAccountCreate,
    ) -> SavingsAccount:
        """Rewrite an account row in place."""
        try:
            sheet = self._client.get_accounts_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_account_row(all_rows, account_id)
            if idx is None:
                raise NotFoundError(f"Savings account not found: {account_id}")

            existing = self._row_to_account(all_rows[idx - 1])
            updated, _ = existing.apply_update(data)

            for col_idx, value in enumerate(self._account_to_row(updated), start=1):
                sheet.update_cell(idx, col_idx, value)

            return updated
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update account: {e}")

    async def delete_account(self, account_id: UUID) -> bool:
        """Delete the account row and every zone row it owns."""
        try:
            sheet = self._client.get_accounts_sheet()
            idx = self._find_account_row(sheet.get_all_values(), account_id)
            if idx is None:
                raise NotFoundError(f"Savings account not found: {account_id}")

            zones_sheet = self._client.get_zones_sheet()
            zone_rows = zones_sheet.get_all_values()
            owned = [
                zone_idx
                for zone_idx, row in enumerate(zone_rows[1:], start=2)
                if len(row) > 1 and row[1] == str(account_id)
            ]
            # Bottom-up so earlier deletions don't shift later indices
            for zone_idx in reversed(owned):
                zones_sheet.delete_rows(zone_idx)

            sheet.delete_rows(idx)
            return True
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete account: {e}")

    # -------------------------------------------------------------------------
    # Zones
    # -------------------------------------------------------------------------

    async def get_zones(self, account_id: UUID) -> list[SavingsAccountZone]:
        """Zones of one account, ordered by from_amount."""
        try:
            sheet = self._client.get_zones_sheet()
            all_rows = sheet.get_all_values()[1:]

            zones = []
            for row in all_rows:
                if len(row) > 1 and row[1] == str(account_id):
                    try:
                        zones.append(self._row_to_zone(row))
                    except Exception:
                        continue

            zones.sort(key=lambda z: parse_amount(z.from_amount))
            return zones
        except Exception as e:
            raise StorageError(f"Failed to get zones: {e}")

    async def create_zone(self, data: SavingsAccountZoneCreate) -> SavingsAccountZone:
        """Append a zone row after checking the owning account exists."""
        if await self.get_account(data.savings_account_id) is None:
            raise NotFoundError(f"Savings account not found: {data.savings_account_id}")

        zone = SavingsAccountZone(**data.model_dump())
        await self._append_zone(zone)
        return zone

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _append_zone(self, zone: SavingsAccountZone) -> None:
        try:
            sheet = self._client.get_zones_sheet()
            sheet.append_row(self._zone_to_row(zone), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save zone: {e}")

    async def delete_zone(self, zone_id: UUID) -> bool:
        """Delete a zone row if present."""
        try:
            sheet = self._client.get_zones_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(zone_id):
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete zone: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=UUID(_cell(row, 5)) if _cell(row, 5) else None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
            is_user_action=_cell(row, 10).lower() == "true",
        )

    def _read_events(self, predicate) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if row and row[0] and predicate(row):
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. AuditLogger decides what a failure means."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = self._read_events(
                lambda row: len(row) > 6 and row[6] == str(correlation_id)
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        try:
            events = self._read_events(
                lambda row: (
                    len(row) > 5
                    and row[4] == entity_type
                    and row[5] == str(entity_id)
                )
            )
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = list(reversed(self._read_events(lambda row: True)))
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
