"""
Integration tests for the orchestrator flows.

Flows run against in-memory storage and a fake model, with the audit
trail captured in InMemoryAuditStorage.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import make_tx
from moneynote.agents import VoiceExpenseAgent, VoiceParseError
from moneynote.audit import AuditLogger
from moneynote.i18n import Localizer
from moneynote.models.audit import AuditEventType
from moneynote.models.transaction import (
    BudgetSettings,
    BudgetState,
    Category,
    SortDirection,
    SortKey,
    SortState,
    TransactionDraft,
    TransactionType,
)
from moneynote.orchestrator import (
    BudgetFlow,
    BudgetRejectedError,
    DashboardService,
    LedgerFlow,
    TransactionRejectedError,
    VoiceEntryFlow,
    create_app_components,
)
from moneynote.services.storage import (
    ChangeNotifier,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryTransactionStorage,
    NotFoundError,
)
from moneynote.validation import TransactionValidator

TODAY = date(2024, 6, 15)


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, text: str = ""):
        self.text = text

    async def generate_content_async(self, contents, **kwargs):
        return FakeResponse(self.text)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def tx_storage(notifier):
    return InMemoryTransactionStorage(notifier)


@pytest.fixture
def ledger_flow(tx_storage, audit_logger, app_settings):
    return LedgerFlow(tx_storage, TransactionValidator(app_settings), audit_logger)


def event_types(audit_storage) -> list[AuditEventType]:
    return [e.event_type for e in audit_storage.events]


class TestLedgerFlow:
    """Tests for LedgerFlow."""

    def test_add_transaction(self, ledger_flow, tx_storage, audit_storage):
        saved = asyncio.run(ledger_flow.add_transaction(
            user_id="mgmg",
            amount=4500,
            label="Breakfast",
            type=TransactionType.EXPENSE,
            category=Category.FOOD,
            today=TODAY,
        ))
        assert saved.date == "2024-06-15"
        assert saved.amount == Decimal(4500)
        assert saved.user_id == "mgmg"
        assert saved.created_at is not None
        assert asyncio.run(tx_storage.list_transactions("mgmg")) == [saved]
        assert event_types(audit_storage) == [AuditEventType.TRANSACTION_SAVED]

    def test_add_publishes_change(self, ledger_flow, notifier):
        events = []
        notifier.subscribe(events.append)
        asyncio.run(ledger_flow.add_transaction("mgmg", 100, "Tea", today=TODAY))
        assert len(events) == 1

    def test_invalid_input_is_rejected(self, ledger_flow, tx_storage, audit_storage):
        with pytest.raises(TransactionRejectedError) as exc_info:
            asyncio.run(ledger_flow.add_transaction("mgmg", 0, "Tea", today=TODAY))
        assert exc_info.value.result.issues[0].field == "amount"
        assert asyncio.run(tx_storage.list_transactions("mgmg")) == []
        assert event_types(audit_storage) == [AuditEventType.VALIDATION_FAILED]

    def test_warnings_do_not_block(self, ledger_flow):
        saved = asyncio.run(ledger_flow.add_transaction(
            "mgmg", 100, "Salary", type=TransactionType.INCOME,
            category=Category.FOOD, today=TODAY,
        ))
        assert saved.category == Category.FOOD

    def test_update_transaction(self, ledger_flow, audit_storage):
        saved = asyncio.run(ledger_flow.add_transaction("mgmg", 4500, "Breakfast", today=TODAY))
        edited = saved.model_copy(update={"amount": Decimal(5000), "label": "Brunch"})
        updated = asyncio.run(ledger_flow.update_transaction(edited, today=TODAY))

        assert updated.amount == Decimal(5000)
        assert updated.label == "Brunch"
        assert updated.created_at == saved.created_at
        assert updated.user_id == "mgmg"

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.TRANSACTION_UPDATED
        assert set(event.details["changes"]) == {"amount", "label"}

    def test_update_cannot_change_owner(self, ledger_flow):
        saved = asyncio.run(ledger_flow.add_transaction("mgmg", 100, "Tea", today=TODAY))
        updated = asyncio.run(ledger_flow.update_transaction(
            saved.model_copy(update={"user_id": "someone"}), today=TODAY
        ))
        assert updated.user_id == "mgmg"

    def test_update_missing(self, ledger_flow):
        with pytest.raises(NotFoundError):
            asyncio.run(ledger_flow.update_transaction(make_tx("Tea", 1, "2024-06-01")))

    def test_update_past_month_is_rejected(self, ledger_flow, tx_storage):
        old = asyncio.run(tx_storage.save_transaction(
            make_tx("Tea", 100, "2024-05-20", user_id="mgmg")
        ))
        with pytest.raises(TransactionRejectedError):
            asyncio.run(ledger_flow.update_transaction(
                old.model_copy(update={"date": "2024-06-01"}), today=TODAY
            ))
        assert asyncio.run(tx_storage.get_transaction(old.id)).date == "2024-05-20"

    def test_delete_transaction(self, ledger_flow, tx_storage, audit_storage):
        saved = asyncio.run(ledger_flow.add_transaction("mgmg", 100, "Tea", today=TODAY))
        assert asyncio.run(ledger_flow.delete_transaction(saved.id, today=TODAY)) is True
        assert asyncio.run(tx_storage.get_transaction(saved.id)) is None
        assert audit_storage.events[-1].event_type == AuditEventType.TRANSACTION_DELETED

    def test_delete_missing_returns_false(self, ledger_flow):
        assert asyncio.run(ledger_flow.delete_transaction("nope", today=TODAY)) is False

    def test_delete_past_month_is_rejected(self, ledger_flow, tx_storage):
        old = asyncio.run(tx_storage.save_transaction(make_tx("Tea", 100, "2024-05-20")))
        with pytest.raises(TransactionRejectedError):
            asyncio.run(ledger_flow.delete_transaction(old.id, today=TODAY))
        assert asyncio.run(tx_storage.get_transaction(old.id)) is not None

    def test_export(self, ledger_flow, audit_storage, june_ledger):
        filename, content = asyncio.run(
            ledger_flow.export("mgmg", "mgmg", june_ledger, date(2024, 6, 30))
        )
        assert filename == "MoneyNote_mgmg_2024-06-30.csv"
        assert content.splitlines()[0] == "Date,Label,Type,Amount"
        assert len(content.splitlines()) == 4
        assert audit_storage.events[-1].details == {"row_count": 3}

    def test_export_defaults_to_every_month(self, ledger_flow, tx_storage):
        for tx in [
            make_tx("Rent", 150000, "2024-04-01", user_id="mgmg"),
            make_tx("Tea", 800, "2024-05-20", user_id="mgmg"),
            make_tx("Salary", 300000, "2024-06-05", TransactionType.INCOME, user_id="mgmg"),
            make_tx("Lunch", 3000, "2024-06-06", user_id="aye"),
        ]:
            asyncio.run(tx_storage.save_transaction(tx))

        _, content = asyncio.run(ledger_flow.export("mgmg", "mgmg", today=TODAY))
        lines = content.splitlines()
        assert len(lines) == 4
        assert [line.split(",")[1] for line in lines[1:]] == ["Rent", "Tea", "Salary"]


class TestBudgetFlow:
    """Tests for BudgetFlow."""

    @pytest.fixture
    def budget_storage(self):
        return InMemoryBudgetStorage()

    @pytest.fixture
    def flow(self, budget_storage, audit_logger, app_settings):
        return BudgetFlow(budget_storage, audit_logger, app_settings)

    def test_set_budget_uses_default_thresholds(self, flow):
        settings = asyncio.run(flow.set_budget("mgmg", 500000))
        assert settings.limit_amount == Decimal(500000)
        assert settings.warning_percent == 80
        assert settings.danger_percent == 100
        assert settings.enabled is True

    def test_set_budget_rejects_bad_input(self, flow, budget_storage):
        with pytest.raises(BudgetRejectedError) as exc_info:
            asyncio.run(flow.set_budget("mgmg", 0))
        assert exc_info.value.issues[0].field == "limit_amount"
        assert asyncio.run(budget_storage.get_budget("mgmg")) is None

    def test_set_budget_rejects_close_thresholds(self, flow):
        with pytest.raises(BudgetRejectedError):
            asyncio.run(flow.set_budget("mgmg", 1000, 90, 92))

    def test_toggle_keeps_limit_and_timestamp(self, flow):
        saved = asyncio.run(flow.set_budget("mgmg", 1000, now=datetime(2024, 6, 2, 9, 0)))
        toggled = asyncio.run(flow.set_enabled("mgmg", False))
        assert toggled.enabled is False
        assert toggled.limit_amount == saved.limit_amount
        assert toggled.updated_at == saved.updated_at

    def test_toggle_without_budget(self, flow):
        assert asyncio.run(flow.set_enabled("mgmg", True)) is None

    def test_clear_budget(self, flow, audit_storage):
        asyncio.run(flow.set_budget("mgmg", 1000))
        assert asyncio.run(flow.clear_budget("mgmg")) is True
        assert asyncio.run(flow.clear_budget("mgmg")) is False
        assert AuditEventType.BUDGET_CLEARED in event_types(audit_storage)

    def test_load_active_budget(self, flow):
        asyncio.run(flow.set_budget("mgmg", 1000, now=datetime(2024, 6, 2)))
        assert asyncio.run(flow.load_active_budget("mgmg", TODAY)).limit_amount == Decimal(1000)

    def test_stale_budget_is_discarded(self, flow, budget_storage):
        asyncio.run(flow.set_budget("mgmg", 1000, now=datetime(2024, 5, 31, 22, 0)))
        assert asyncio.run(flow.load_active_budget("mgmg", TODAY)) is None
        assert asyncio.run(budget_storage.get_budget("mgmg")) is None


class TestVoiceEntryFlow:
    """Tests for VoiceEntryFlow."""

    @pytest.fixture
    def model(self):
        return FakeModel()

    @pytest.fixture
    def flow(self, model, ledger_flow, audit_logger, app_settings):
        agent = VoiceExpenseAgent(model=model, localizer=Localizer("en"))
        return VoiceEntryFlow(agent, ledger_flow, audit_logger, TransactionValidator(app_settings))

    def test_parse_then_confirm(self, flow, model, tx_storage, audit_storage):
        model.text = (
            '[{"label": "Breakfast", "amount": 4500, "category": "Food"},'
            ' {"label": "Shopping", "amount": 5000, "category": "Shopping"}]'
        )
        drafts = asyncio.run(flow.parse("မနက်စာ ၄၅၀၀ ဈေးဝယ် ၅၀၀၀", TODAY))

        # Parsing alone never saves
        assert asyncio.run(tx_storage.list_transactions("mgmg")) == []

        saved = asyncio.run(flow.confirm_and_save("mgmg", drafts, TODAY))
        assert [tx.label for tx in saved] == ["Breakfast", "Shopping"]
        assert len(asyncio.run(tx_storage.list_transactions("mgmg"))) == 2

        types = event_types(audit_storage)
        assert types[0] == AuditEventType.VOICE_PARSED
        assert types[1] == AuditEventType.USER_CONFIRMED
        assert types.count(AuditEventType.TRANSACTION_SAVED) == 2

    def test_one_bad_draft_saves_nothing(self, flow, tx_storage):
        drafts = [
            TransactionDraft(amount=Decimal(100), label="Tea", date="2024-06-15"),
            TransactionDraft(amount=None, label="???", date="2024-06-15"),
        ]
        with pytest.raises(TransactionRejectedError):
            asyncio.run(flow.confirm_and_save("mgmg", drafts, TODAY))
        assert asyncio.run(tx_storage.list_transactions("mgmg")) == []

    def test_parse_failure_is_audited(self, flow, model, audit_storage):
        model.text = "not json"
        with pytest.raises(VoiceParseError):
            asyncio.run(flow.parse("text", TODAY))
        assert event_types(audit_storage) == [AuditEventType.VOICE_FAILED]

    def test_transcribe(self, flow, model, audit_storage):
        model.text = "မနက်စာ ၄၅၀၀"
        assert asyncio.run(flow.transcribe(b"audio")) == "မနက်စာ ၄၅၀၀"
        assert event_types(audit_storage) == [AuditEventType.VOICE_TRANSCRIBED]

    def test_discard(self, flow, audit_storage):
        asyncio.run(flow.discard("mgmg", reason="wrong amounts"))
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.USER_REJECTED
        assert event.details["reason"] == "wrong amounts"


class TestDashboardService:
    """Tests for DashboardService."""

    def test_current_month_snapshot(self, june_ledger):
        budget = BudgetSettings(limit_amount=Decimal(10000), updated_at=datetime(2024, 6, 1))
        snapshot = DashboardService().snapshot(
            june_ledger, budget, today=date(2024, 6, 20)
        )
        assert snapshot.period_key == "2024-06"
        assert not snapshot.is_read_only
        assert snapshot.stats.net == Decimal(290500)
        assert len(snapshot.daily_series) == 30
        assert [tx.label for tx in snapshot.rows] == ["Salary", "Shopping", "Breakfast"]
        assert snapshot.budget.state == BudgetState.WARNING

    def test_past_month_is_read_only_without_budget(self, june_ledger):
        budget = BudgetSettings(limit_amount=Decimal(100), updated_at=datetime(2024, 7, 1))
        snapshot = DashboardService().snapshot(
            june_ledger, budget, period_key="2024-06", today=date(2024, 7, 3)
        )
        assert snapshot.is_read_only
        assert snapshot.budget.state == BudgetState.UNCONFIGURED
        assert snapshot.stats.expense == Decimal(9500)

    def test_sort_and_search(self, june_ledger):
        snapshot = DashboardService().snapshot(
            june_ledger,
            None,
            sort=SortState(key=SortKey.AMOUNT, direction=SortDirection.ASC),
            query="00",
            today=date(2024, 6, 20),
        )
        assert [tx.label for tx in snapshot.rows] == ["Breakfast", "Shopping", "Salary"]
        assert snapshot.row_count == 3

    def test_history_excludes_viewed_month(self, june_ledger):
        ledger = june_ledger + [make_tx("May rent", 1000, "2024-05-01")]
        snapshot = DashboardService(history_limit=12).snapshot(
            ledger, None, today=date(2024, 6, 20)
        )
        assert [h.period_key for h in snapshot.history] == ["2024-05"]


class TestCreateAppComponents:
    """Tests for the composition root."""

    def test_in_memory(self, app_settings):
        components = create_app_components(use_storage=False, settings=app_settings)
        assert components.sheets_client is None
        assert components.localizer.language.value == "en"

        saved = asyncio.run(components.ledger_flow.add_transaction("mgmg", 100, "Tea"))
        loaded = asyncio.run(components.ledger_flow.load_transactions("mgmg"))
        assert loaded == [saved]
