"""
Google Sheets Store Implementation

DESIGN DECISION: Google Sheets is used as the hosted store because:
1. Users can view their own history directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for one user's history)
- No transactions (each record is a single append or row update)
- Limited query capabilities (we filter and sort in Python)

gspread is blocking, so every call runs in a worker thread via
asyncio.to_thread. That keeps each store call a real suspension point
and lets concurrent reads overlap.
"""

import asyncio
import json
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from javali.config import get_settings
from javali.errors import StorageError
from javali.models.audit import AuditEvent, AuditEventType, AuditSeverity
from javali.models.goals import Goal, GoalPriority
from javali.models.memory import (
    ConversationRecord,
    ConversationType,
    FinancialContextRecord,
    FinancialContextType,
    UserPreferences,
)
from javali.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    MemoryStoreInterface,
)

T = TypeVar("T")


# Column mappings, one list per worksheet
CONVERSATION_COLUMNS = [
    "id",
    "user_id",
    "session_id",
    "conversation_type",
    "title",
    "content_json",
    "metadata_json",
    "created_at",
]

PREFERENCES_COLUMNS = [
    "id",
    "user_id",
    "monthly_budget",
    "financial_goals_json",
    "spending_categories_json",
    "notification_settings_json",
    "ai_personality_json",
    "updated_at",
]

FINANCIAL_CONTEXT_COLUMNS = [
    "id",
    "user_id",
    "context_type",
    "category",
    "amount",
    "description",
    "date_recorded",
    "metadata_json",
    "created_at",
]

GOAL_COLUMNS = [
    "id",
    "user_id",
    "name",
    "description",
    "target_amount",
    "current_amount",
    "target_date",
    "created_date",
    "category",
    "priority",
    "is_completed",
    "monthly_target",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "session_id",
    "description",
    "details_json",
    "error_message",
]


def _cell_reader(row: list) -> Callable[[int], str]:
    """Index into a row, treating missing trailing cells as empty."""
    def safe_get(index: int) -> str:
        try:
            return row[index] or ""
        except IndexError:
            return ""
    return safe_get


def _dump_json(value) -> str:
    return json.dumps(value, default=str) if value is not None else ""


def _load_json(text: str):
    return json.loads(text) if text else None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

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

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        self._worksheets[title] = sheet
        return sheet


async def _in_thread(operation: str, fn: Callable[..., T], *args) -> T:
    """Run a blocking gspread call off the event loop, as a StorageError on failure."""
    try:
        return await asyncio.to_thread(fn, *args)
    except StorageError:
        raise
    except Exception as e:
        raise StorageError(f"Failed to {operation}: {e}") from e


def _upsert_row(sheet: gspread.Worksheet, key_index: int, key: str, row: list) -> None:
    """Replace the first data row whose key column equals `key`, or append."""
    all_rows = sheet.get_all_values()
    for idx, existing in enumerate(all_rows[1:], start=2):  # Row 1 is the header
        if len(existing) > key_index and existing[key_index] == key:
            sheet.update(range_name=f"A{idx}", values=[row])
            return
    sheet.append_row(row, value_input_option="RAW")


class GoogleSheetsMemoryStore(MemoryStoreInterface):
    """
    Google Sheets implementation of the store.

    One worksheet per record kind. Structured fields are JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self, kind: str) -> gspread.Worksheet:
        settings = self._client.settings
        title, columns = {
            "conversations": (settings.conversations_sheet_name, CONVERSATION_COLUMNS),
            "preferences": (settings.preferences_sheet_name, PREFERENCES_COLUMNS),
            "financial_context": (
                settings.financial_context_sheet_name, FINANCIAL_CONTEXT_COLUMNS
            ),
            "goals": (settings.goals_sheet_name, GOAL_COLUMNS),
        }[kind]
        return self._client.get_worksheet(title, columns)

    def _data_rows(self, kind: str) -> list[list]:
        return [row for row in self._sheet(kind).get_all_values()[1:] if row and row[0]]

    # =========================================================================
    # ROW MAPPING
    # =========================================================================

    @staticmethod
    def _conversation_to_row(record: ConversationRecord) -> list:
        return [
            str(record.id),
            record.user_id,
            record.session_id,
            record.conversation_type.value,
            record.title or "",
            _dump_json(record.content),
            _dump_json(record.metadata),
            record.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_conversation(row: list) -> ConversationRecord:
        get = _cell_reader(row)
        return ConversationRecord(
            id=UUID(get(0)),
            user_id=get(1),
            session_id=get(2),
            conversation_type=ConversationType(get(3)),
            title=get(4) or None,
            content=_load_json(get(5)) or {},
            metadata=_load_json(get(6)) or {},
            created_at=datetime.fromisoformat(get(7)),
        )

    @staticmethod
    def _preferences_to_row(preferences: UserPreferences) -> list:
        return [
            str(preferences.id),
            preferences.user_id,
            str(preferences.monthly_budget) if preferences.monthly_budget is not None else "",
            _dump_json(preferences.financial_goals),
            _dump_json(preferences.spending_categories),
            _dump_json(preferences.notification_settings),
            _dump_json(preferences.ai_personality),
            preferences.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_preferences(row: list) -> UserPreferences:
        get = _cell_reader(row)
        return UserPreferences(
            id=UUID(get(0)),
            user_id=get(1),
            monthly_budget=Decimal(get(2)) if get(2) else None,
            financial_goals=_load_json(get(3)),
            spending_categories=_load_json(get(4)),
            notification_settings=_load_json(get(5)),
            ai_personality=_load_json(get(6)),
            updated_at=datetime.fromisoformat(get(7)),
        )

    @staticmethod
    def _context_to_row(record: FinancialContextRecord) -> list:
        return [
            str(record.id),
            record.user_id,
            record.context_type.value,
            record.category or "",
            str(record.amount) if record.amount is not None else "",
            record.description or "",
            record.date_recorded.isoformat(),
            _dump_json(record.metadata),
            record.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_context(row: list) -> FinancialContextRecord:
        get = _cell_reader(row)
        return FinancialContextRecord(
            id=UUID(get(0)),
            user_id=get(1),
            context_type=FinancialContextType(get(2)),
            category=get(3) or None,
            amount=Decimal(get(4)) if get(4) else None,
            description=get(5) or None,
            date_recorded=datetime.fromisoformat(get(6)),
            metadata=_load_json(get(7)) or {},
            created_at=datetime.fromisoformat(get(8)),
        )

    @staticmethod
    def _goal_to_row(user_id: str, goal: Goal) -> list:
        return [
            str(goal.id),
            user_id,
            goal.name,
            goal.description or "",
            str(goal.target_amount),
            str(goal.current_amount),
            goal.target_date.isoformat(),
            goal.created_date.isoformat(),
            goal.category,
            goal.priority.value,
            str(goal.is_completed),
            str(goal.monthly_target),
        ]

    @staticmethod
    def _row_to_goal(row: list) -> Goal:
        get = _cell_reader(row)
        return Goal(
            id=UUID(get(0)),
            name=get(2),
            description=get(3) or None,
            target_amount=Decimal(get(4)),
            current_amount=Decimal(get(5)),
            target_date=datetime.fromisoformat(get(6)),
            created_date=datetime.fromisoformat(get(7)),
            category=get(8),
            priority=GoalPriority(get(9)),
            is_completed=get(10).lower() == "true",
            monthly_target=Decimal(get(11) or "0"),
        )

    # =========================================================================
    # CONVERSATIONS
    # =========================================================================

    async def insert_conversation(
        self,
        record: ConversationRecord,
    ) -> ConversationRecord:
        def write():
            self._sheet("conversations").append_row(
                self._conversation_to_row(record), value_input_option="RAW"
            )

        await _in_thread("save conversation", write)
        return record

    async def select_conversations(
        self,
        user_id: str,
        conversation_type: Optional[ConversationType] = None,
        session_id: Optional[str] = None,
        limit: Optional[int] = 50,
        newest_first: bool = True,
    ) -> list[ConversationRecord]:
        def read() -> list[ConversationRecord]:
            records = []
            for row in self._data_rows("conversations"):
                if len(row) < 2 or row[1] != user_id:
                    continue
                record = self._row_to_conversation(row)
                if conversation_type and record.conversation_type != conversation_type:
                    continue
                if session_id and record.session_id != session_id:
                    continue
                records.append(record)
            if newest_first:
                records.reverse()
            records.sort(key=lambda c: c.created_at, reverse=newest_first)
            return records if limit is None else records[:limit]

        return await _in_thread("list conversations", read)

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def upsert_preferences(
        self,
        preferences: UserPreferences,
    ) -> UserPreferences:
        def write():
            _upsert_row(
                self._sheet("preferences"),
                key_index=1,
                key=preferences.user_id,
                row=self._preferences_to_row(preferences),
            )

        await _in_thread("save preferences", write)
        return preferences

    async def select_preferences(
        self,
        user_id: str,
    ) -> Optional[UserPreferences]:
        def read() -> Optional[UserPreferences]:
            for row in self._data_rows("preferences"):
                if len(row) > 1 and row[1] == user_id:
                    return self._row_to_preferences(row)
            return None

        return await _in_thread("load preferences", read)

    # =========================================================================
    # FINANCIAL CONTEXT
    # =========================================================================

    async def insert_financial_context(
        self,
        record: FinancialContextRecord,
    ) -> FinancialContextRecord:
        def write():
            self._sheet("financial_context").append_row(
                self._context_to_row(record), value_input_option="RAW"
            )

        await _in_thread("save financial context", write)
        return record

    async def select_financial_context(
        self,
        user_id: str,
        context_type: Optional[FinancialContextType] = None,
        limit: int = 100,
    ) -> list[FinancialContextRecord]:
        def read() -> list[FinancialContextRecord]:
            records = []
            for row in reversed(self._data_rows("financial_context")):
                if len(row) < 3 or row[1] != user_id:
                    continue
                if context_type and row[2] != context_type.value:
                    continue
                records.append(self._row_to_context(row))
            records.sort(key=lambda r: r.date_recorded, reverse=True)
            return records[:limit]

        return await _in_thread("list financial context", read)

    # =========================================================================
    # GOALS
    # =========================================================================

    async def upsert_goal(self, user_id: str, goal: Goal) -> Goal:
        def write():
            _upsert_row(
                self._sheet("goals"),
                key_index=0,
                key=str(goal.id),
                row=self._goal_to_row(user_id, goal),
            )

        await _in_thread("save goal", write)
        return goal

    async def select_goals(self, user_id: str) -> list[Goal]:
        def read() -> list[Goal]:
            return [
                self._row_to_goal(row)
                for row in self._data_rows("goals")
                if len(row) > 1 and row[1] == user_id
            ]

        return await _in_thread("list goals", read)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )

    @staticmethod
    def _row_to_event(row: list) -> AuditEvent:
        get = _cell_reader(row)
        return AuditEvent(
            event_id=UUID(get(0)),
            timestamp=datetime.fromisoformat(get(1)),
            event_type=AuditEventType(get(2)),
            severity=AuditSeverity(get(3)),
            entity_type=get(4) or None,
            entity_id=UUID(get(5)) if get(5) else None,
            user_id=get(6) or None,
            session_id=get(7) or None,
            description=get(8),
            details=_load_json(get(9)) or {},
            error_message=get(10) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are raised for the AuditLogger to report."""
        def write():
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")

        await _in_thread("write audit event", write)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        def read() -> list[AuditEvent]:
            events = [
                self._row_to_event(row)
                for row in self._sheet().get_all_values()[1:]
                if row and row[0]
            ]
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]

        return await _in_thread("read audit events", read)
