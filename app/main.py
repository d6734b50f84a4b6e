"""
Streamlit Frontend for MoneyNote

The screen a Burmese-speaking user opens every day to log spending.

DESIGN PRINCIPLES:
1. One month on screen at a time
2. Explicit confirmation before anything from voice is saved
3. Plain status messages in the user's language
4. Past months are shown read-only
5. No hidden actions

The page reads a snapshot from DashboardService and never computes
totals itself. Storage change events mark the cached ledger stale so
the next run reloads it.
"""

import asyncio
from datetime import date

import streamlit as st

from moneynote.agents import TranscriptionError, VoiceParseError
from moneynote.audit import create_correlation_id
from moneynote.config import validate_all_settings
from moneynote.i18n import Language, Localizer
from moneynote.ledger import (
    amount_from_input,
    current_period_key,
    filter_by_period,
    local_today,
    toggle_sort,
)
from moneynote.models.transaction import (
    BudgetState,
    Category,
    SortDirection,
    SortKey,
    SortState,
    Transaction,
    TransactionType,
)
from moneynote.orchestrator import (
    AppComponents,
    BudgetRejectedError,
    TransactionRejectedError,
    create_app_components,
)
from moneynote.services.storage import ChangeEvent, StorageError


# Page configuration
st.set_page_config(
    page_title="MoneyNote",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 16px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 16px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)

BUDGET_BOX = {
    BudgetState.WARNING: "warning-box",
    BudgetState.DANGER: "error-box",
}

SORT_ARROWS = {SortDirection.ASC: "▲", SortDirection.DESC: "▼"}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def init_session(components: AppComponents):
    defaults = {
        "sort": SortState(),
        "period_key": current_period_key(),
        "editing_id": None,
        "voice_text": "",
        "voice_drafts": None,
        "advice": None,
        # Plain dict so the notifier callback can flag it from any thread
        "ledger_state": {"stale": True, "transactions": []},
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

    if "on_change" not in st.session_state:
        ledger_state = st.session_state.ledger_state

        def on_change(event: ChangeEvent):
            if event.entity == "transaction":
                ledger_state["stale"] = True

        # Session state owns the callback; the notifier only holds a weak
        # reference, so the subscription ends with the session
        st.session_state.on_change = on_change
        components.notifier.subscribe(on_change, weak=True)


def load_transactions(components: AppComponents, user_id: str) -> list[Transaction]:
    ledger_state = st.session_state.ledger_state
    if ledger_state["stale"] or ledger_state.get("user_id") != user_id:
        ledger_state["transactions"] = run_async(
            components.ledger_flow.load_transactions(user_id)
        )
        ledger_state["user_id"] = user_id
        ledger_state["stale"] = False
    return ledger_state["transactions"]


def main():
    """Main application entry point."""
    components = get_components()
    init_session(components)

    st.sidebar.title("💰 MoneyNote")
    language = st.sidebar.selectbox(
        "🌐",
        options=list(Language),
        index=list(Language).index(components.localizer.language),
        format_func=lambda lang: {"my": "မြန်မာ", "en": "English", "ja": "日本語"}[lang.value],
    )
    t = Localizer(language, components.localizer.currency_label)

    username = st.sidebar.text_input(t.text("welcome"), value="guest").strip() or "guest"
    st.sidebar.markdown("---")

    today = local_today()
    transactions = load_transactions(components, username)
    budget = run_async(components.budget_flow.load_active_budget(username, today))

    snapshot = components.dashboard.snapshot(
        transactions,
        budget,
        period_key=st.session_state.period_key,
        sort=st.session_state.sort,
        query=st.session_state.get("query", ""),
        today=today,
    )

    render_sidebar_history(t, snapshot, today)
    render_connection_status(t)

    st.title(f"📒 {t.month_title(snapshot.period_key)}")
    if snapshot.is_read_only:
        st.info(f"🔒 {t.text('read_only')}")

    render_stats(t, snapshot)
    if not snapshot.is_read_only:
        render_budget(components, t, snapshot, username)
        render_entry_form(components, t, username, today)
        if components.voice_flow is not None:
            render_voice_entry(components, t, username, today)

    render_table(components, t, snapshot, today)
    render_chart(t, snapshot)
    render_export(components, t, username, today)
    if components.voice_flow is not None:
        render_advice(components, t, filter_by_period(transactions, snapshot.period_key))


def render_sidebar_history(t: Localizer, snapshot, today: date):
    st.sidebar.subheader(f"🗂️ {t.text('history_title')}")
    current = current_period_key(today)

    if snapshot.period_key != current:
        if st.sidebar.button(t.text("back_to_current")):
            st.session_state.period_key = current
            st.rerun()

    if not snapshot.history:
        st.sidebar.caption(t.text("no_history"))
        return

    for summary in snapshot.history:
        label = f"{t.month_title(summary.period_key)} · {t.format_money(summary.net)}"
        if st.sidebar.button(label, key=f"history_{summary.period_key}"):
            st.session_state.period_key = summary.period_key
            st.rerun()


def render_stats(t: Localizer, snapshot):
    col1, col2, col3 = st.columns(3)
    col1.metric(f"📈 {t.text('income')}", t.format_money(snapshot.stats.income))
    col2.metric(f"📉 {t.text('expense')}", t.format_money(snapshot.stats.expense))
    col3.metric(f"💵 {t.text('balance')}", t.format_money(snapshot.stats.net))


def render_budget(components: AppComponents, t: Localizer, snapshot, username: str):
    status = snapshot.budget
    st.subheader(f"🎯 {t.text('budget_title')}")

    if status.is_configured:
        st.progress(int(status.progress_percent) / 100)
        st.caption(
            f"{t.text('spent')}: {t.format_money(status.expense)} / "
            f"{t.text('limit')}: {t.format_money(status.limit_amount)}"
        )

    message = t.budget_message(status)
    box = BUDGET_BOX.get(status.state)
    if box:
        st.markdown(f'<div class="{box}">{message}</div>', unsafe_allow_html=True)
    else:
        st.caption(message)

    with st.expander(f"⚙️ {t.text('budget_settings_title')}"):
        st.caption(t.text("budget_settings_desc"))

        has_budget = status.limit_amount > 0
        if has_budget:
            enabled = st.toggle(t.text("budget_enabled"), value=status.enabled)
            if enabled != status.enabled:
                run_async(components.budget_flow.set_enabled(username, enabled))
                st.rerun()

        with st.form("budget_form"):
            limit_value = st.number_input(
                t.text("budget_amount"),
                min_value=0.0,
                step=10000.0,
                value=float(status.limit_amount) if has_budget else 0.0,
                format="%.2f",
            )
            warning = st.slider(t.text("warning_alert"), 50, 95, status.warning_percent, step=5)
            st.caption(t.text("warning_msg", percent=warning))
            danger = st.slider(t.text("critical_alert"), 55, 100, status.danger_percent, step=5)
            st.caption(t.text("critical_msg", percent=danger))

            if st.form_submit_button(t.text("save")):
                limit = amount_from_input(limit_value, status.limit_amount if has_budget else None)
                try:
                    run_async(components.budget_flow.set_budget(username, limit, warning, danger))
                    st.rerun()
                except BudgetRejectedError as e:
                    for issue in e.issues:
                        st.error(issue.message)

        if has_budget and st.button(f"🗑️ {t.text('remove_budget')}"):
            run_async(components.budget_flow.clear_budget(username))
            st.rerun()


def render_entry_form(components: AppComponents, t: Localizer, username: str, today: date):
    editing = None
    if st.session_state.editing_id:
        editing = next(
            (tx for tx in st.session_state.ledger_state["transactions"]
             if tx.id == st.session_state.editing_id),
            None,
        )

    title = t.text("edit_transaction") if editing else t.text("add_transaction")
    with st.expander(f"➕ {title}", expanded=editing is not None):
        tx_type = st.radio(
            f"{t.text('income')} / {t.text('expense')}",
            options=list(TransactionType),
            index=list(TransactionType).index(editing.type) if editing else 1,
            format_func=lambda x: t.text(x.value.lower()),
            horizontal=True,
            key="entry_type",
        )
        categories = list(Category.for_type(tx_type))

        with st.form("entry_form", clear_on_submit=editing is None):
            col1, col2 = st.columns(2)
            with col1:
                label = st.text_input(
                    t.text("label"),
                    value=editing.label if editing else "",
                    placeholder=t.text(f"label_placeholder_{tx_type.value.lower()}"),
                )
                amount_value = st.number_input(
                    t.text("amount"),
                    min_value=0.0,
                    step=500.0,
                    value=float(editing.amount) if editing else 0.0,
                    format="%.2f",
                )
            with col2:
                entry_date = st.date_input(
                    t.text("date"),
                    value=date.fromisoformat(editing.date) if editing else today,
                )
                current_category = editing.category if editing else None
                category = st.selectbox(
                    t.text("category"),
                    options=categories,
                    index=categories.index(current_category) if current_category in categories else 0,
                    format_func=t.category_label,
                )

            submitted = st.form_submit_button(t.text("save") if editing else t.text("add"))

        if editing and st.button(t.text("cancel")):
            st.session_state.editing_id = None
            st.rerun()

    if not submitted:
        return

    amount = amount_from_input(amount_value, editing.amount if editing else None)
    try:
        if editing:
            run_async(components.ledger_flow.update_transaction(
                editing.model_copy(update={
                    "amount": amount,
                    "label": label,
                    "date": entry_date.isoformat(),
                    "type": tx_type,
                    "category": category,
                }),
                today=today,
            ))
            st.session_state.editing_id = None
        else:
            run_async(components.ledger_flow.add_transaction(
                user_id=username,
                amount=amount,
                label=label,
                type=tx_type,
                category=category,
                date=entry_date.isoformat(),
                today=today,
            ))
        st.toast(f"✅ {t.text('saved')}")
        st.rerun()
    except TransactionRejectedError as e:
        st.error(str(e))
    except StorageError as e:
        st.error(f"{t.text('save_failed')}: {e}")


def render_voice_entry(components: AppComponents, t: Localizer, username: str, today: date):
    voice_flow = components.voice_flow

    with st.expander(f"🎙️ {t.text('voice_title')}"):
        audio = st.audio_input(t.text("voice_hint"))
        if audio is not None and st.button("📝 Transcribe"):
            with st.spinner("..."):
                try:
                    st.session_state.voice_text = run_async(
                        voice_flow.transcribe(audio.getvalue(), audio.type or "audio/webm")
                    )
                except TranscriptionError:
                    st.error(t.text("voice_failed"))

        text = st.text_area(
            t.text("voice_hint"),
            value=st.session_state.voice_text,
            key="voice_text_area",
        )

        if st.button(f"🔍 {t.text('voice_parse')}", disabled=not text.strip()):
            with st.spinner("..."):
                try:
                    st.session_state.voice_drafts = run_async(voice_flow.parse(text, today))
                except VoiceParseError:
                    st.session_state.voice_drafts = None
                    st.error(t.text("voice_failed"))

        drafts = st.session_state.voice_drafts
        if drafts is None:
            return
        if not drafts:
            st.info(t.text("voice_empty"))
            return

        # Nothing is saved until the user confirms
        for draft in drafts:
            sign = "+" if draft.type == TransactionType.INCOME else "-"
            amount = t.format_money(draft.amount) if draft.amount is not None else "?"
            st.markdown(
                f"- **{draft.label or '?'}** · {t.category_label(draft.category)} · {sign}{amount}"
            )

        col1, col2 = st.columns(2)
        with col1:
            if st.button(f"✅ {t.text('voice_confirm')}", type="primary"):
                try:
                    run_async(voice_flow.confirm_and_save(
                        username, drafts, today, create_correlation_id()
                    ))
                    st.session_state.voice_drafts = None
                    st.session_state.voice_text = ""
                    st.toast(f"✅ {t.text('saved')}")
                    st.rerun()
                except TransactionRejectedError as e:
                    st.error(str(e))
                except StorageError as e:
                    st.error(f"{t.text('save_failed')}: {e}")
        with col2:
            if st.button(f"✖️ {t.text('cancel')}"):
                run_async(voice_flow.discard(username, reason="discarded in review"))
                st.session_state.voice_drafts = None
                st.rerun()


def render_table(components: AppComponents, t: Localizer, snapshot, today: date):
    st.subheader(f"📋 {t.text('date')} · {snapshot.row_count} {t.text('items')}")
    st.text_input(
        "🔎",
        key="query",
        placeholder=t.text("search_placeholder"),
        label_visibility="collapsed",
    )

    sort = st.session_state.sort
    header = st.columns([2, 4, 3, 1, 1])
    for column, key, text in (
        (header[0], SortKey.DATE, t.text("date")),
        (header[1], SortKey.LABEL, t.text("label")),
        (header[2], SortKey.AMOUNT, t.text("amount")),
    ):
        arrow = SORT_ARROWS[sort.direction] if sort.key == key else ""
        if column.button(f"{text} {arrow}", key=f"sort_{key.value}"):
            st.session_state.sort = toggle_sort(sort, key)
            st.rerun()

    if not snapshot.rows:
        st.caption(t.text("no_data"))
        return

    for tx in snapshot.rows:
        cols = st.columns([2, 4, 3, 1, 1])
        cols[0].write(tx.date)
        cols[1].write(f"{tx.label} · {t.category_label(tx.category)}")
        sign = "+" if tx.type == TransactionType.INCOME else "-"
        cols[2].write(f"{sign}{t.format_money(tx.amount)}")

        if snapshot.is_read_only:
            continue
        if cols[3].button("✏️", key=f"edit_{tx.id}", help=t.text("edit")):
            st.session_state.editing_id = tx.id
            st.rerun()
        if cols[4].button("🗑️", key=f"delete_{tx.id}", help=t.text("delete")):
            try:
                run_async(components.ledger_flow.delete_transaction(tx.id, today=today))
                st.toast(f"🗑️ {t.text('deleted')}")
                st.rerun()
            except (TransactionRejectedError, StorageError) as e:
                st.error(str(e))


def render_chart(t: Localizer, snapshot):
    st.subheader(f"📊 {t.text('chart_title')}")
    st.bar_chart(
        {
            t.text("income"): [float(p.income) for p in snapshot.daily_series],
            t.text("expense"): [float(p.expense) for p in snapshot.daily_series],
        },
        color=["#28a745", "#dc3545"],
    )
    st.caption(" ".join(p.day for p in snapshot.daily_series[::5]))


def render_export(components: AppComponents, t: Localizer, username: str, today: date):
    st.sidebar.markdown("---")
    if st.sidebar.button(f"📤 {t.text('export')}"):
        st.session_state.export = run_async(
            components.ledger_flow.export(username, username, today=today)
        )

    if st.session_state.get("export"):
        filename, content = st.session_state.export
        st.sidebar.caption(t.text("export_confirm"))
        st.sidebar.download_button(
            f"⬇️ {t.text('download')}",
            data=content.encode("utf-8-sig"),
            file_name=filename,
            mime="text/csv",
        )


def render_advice(components: AppComponents, t: Localizer, month_transactions: list[Transaction]):
    with st.expander(f"🤖 {t.text('advice_title')}"):
        if st.button("✨ " + t.text("advice_title")):
            with st.spinner("..."):
                st.session_state.advice = run_async(
                    components.voice_flow.analyze(month_transactions)
                )
        if st.session_state.advice:
            st.markdown(st.session_state.advice)


def render_connection_status(t: Localizer):
    status = validate_all_settings()
    services = [
        ("Google Sheets", "google_sheets"),
        ("Gemini", "gemini"),
    ]
    with st.sidebar.expander(f"⚙️ {t.text('settings')}"):
        for name, key in services:
            if status.get(key, False):
                st.success(f"✅ {name}")
            else:
                error = status.get(f"{key}_error", "Not configured")
                st.error(f"❌ {name} - {error}")


if __name__ == "__main__":
    main()
