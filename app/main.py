"""
Streamlit Frontend for Card Keeper

The pages a user works with: a dashboard, the card list with add/edit
forms, per-card bill statements, and payment reminders.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted
3. Clear error messages next to the field that caused them
4. Visual feedback while a request is in flight
5. No hidden actions

Navigation is path based (`?path=/credit-cards/...`) so pages can be
bookmarked. Every page except the dashboard, login and register needs a
signed-in user; the router sends everyone else to the login page.
"""

import asyncio
import html
from typing import Any, Optional
from uuid import UUID

import streamlit as st

from cardkeeper.audit import configure_logging
from cardkeeper.calculations import (
    default_statement_dates,
    is_due_date_approaching,
    reminder_status,
)
from cardkeeper.config import get_settings, validate_all_settings
from cardkeeper.formatting import (
    format_currency,
    format_cycle,
    format_date,
    format_expiry_date,
)
from cardkeeper.models.card import CARD_COLORS, CARD_NETWORKS, DEFAULT_CARD_COLOR, CreditCard
from cardkeeper.models.reminder import PaymentReminder, ReminderStatus
from cardkeeper.models.statement import StatementFile
from cardkeeper.orchestrator import AppComponents, create_app_components
from cardkeeper.routing import NAV_ROUTES, ResolvedRoute, Route, guard, path_for, resolve_route
from cardkeeper.services.auth import AuthError
from cardkeeper.services.storage import ConfigurationError, StorageError, UploadError


# Page configuration
st.set_page_config(
    page_title="Card Keeper",
    page_icon="💳",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .card-tile {
        padding: 18px;
        border-radius: 12px;
        color: #ffffff;
        margin: 6px 0 12px 0;
    }
    .card-tile .number {
        font-family: monospace;
        font-size: 1.3em;
        letter-spacing: 2px;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .field-error {
        color: #dc3545;
        font-size: 0.85em;
        margin-top: -8px;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def setup_logging() -> bool:
    """Configure logging once per server process."""
    try:
        level = get_settings().app.log_level
    except Exception:
        level = "INFO"
    configure_logging(level)
    return True


def get_components() -> AppComponents:
    """
    Get or create application components for this browser session.

    Not st.cache_resource: the Supabase client carries the signed-in
    user, so it must never be shared between browsers.
    """
    if "components" not in st.session_state:
        st.session_state.components = create_app_components()
    return st.session_state.components


# =============================================================================
# NAVIGATION HELPERS
# =============================================================================

def current_path() -> str:
    return st.query_params.get("path", "/")


def navigate(route: Route, entity_id: Optional[UUID] = None) -> None:
    """Go to another page."""
    st.query_params["path"] = path_for(route, entity_id)
    st.session_state.pop("form_errors", None)
    st.rerun()


def show_field_errors(errors: dict[str, list[str]], field: str) -> None:
    for message in errors.get(field, []):
        st.markdown(f'<div class="field-error">{message}</div>', unsafe_allow_html=True)


def form_errors(form_key: str) -> dict[str, list[str]]:
    stored = st.session_state.get("form_errors") or {}
    return stored.get(form_key, {})


def set_form_errors(form_key: str, errors: dict[str, list[str]]) -> None:
    st.session_state.form_errors = {form_key: errors}


def card_label(card: CreditCard) -> str:
    return f"{card.card_name} ({card.masked_number})"


def main():
    """Main application entry point."""
    setup_logging()

    try:
        components = get_components()
    except ConfigurationError as e:
        st.title("💳 Card Keeper")
        st.error(f"The app is not configured: {e}")
        st.markdown(
            "Create a `.env` file with `SUPABASE_URL` and `SUPABASE_ANON_KEY`. "
            "See `.env.example` for the full list of variables."
        )
        st.stop()

    session = components.holder.current
    requested = resolve_route(current_path())
    resolved = guard(requested, session)
    if resolved.route != requested.route:
        st.query_params["path"] = resolved.path

    render_sidebar(components, resolved)

    if resolved.route == Route.LOGIN:
        render_login_page(components, resolved)
    elif resolved.route == Route.REGISTER:
        render_register_page(components)
    elif resolved.route == Route.DASHBOARD:
        render_dashboard_page(components)
    elif resolved.route == Route.CARDS:
        render_cards_page(components)
    elif resolved.route == Route.CARD_ADD:
        render_card_form_page(components, None)
    elif resolved.route == Route.CARD_EDIT:
        render_card_form_page(components, resolved.entity_id)
    elif resolved.route == Route.CARD_STATEMENTS:
        render_statements_page(components, resolved.entity_id)
    elif resolved.route == Route.REMINDERS:
        render_reminders_page(components)


def render_sidebar(components: AppComponents, resolved: ResolvedRoute):
    st.sidebar.title("💳 Card Keeper")
    st.sidebar.markdown("---")

    session = components.holder.current
    if session is None:
        if st.sidebar.button("🔑 Sign In"):
            navigate(Route.LOGIN)
        if st.sidebar.button("📝 Create Account"):
            navigate(Route.REGISTER)
        return

    for route in NAV_ROUTES:
        is_current = resolved.route == route
        if st.sidebar.button(route.label, type="primary" if is_current else "secondary"):
            navigate(route)

    st.sidebar.markdown("---")
    st.sidebar.caption(f"Signed in as {session.email or session.user_id}")
    if st.sidebar.button("🚪 Sign Out"):
        try:
            run_async(components.session_flow.sign_out())
        except AuthError as e:
            st.sidebar.error(str(e))
        else:
            navigate(Route.LOGIN)

    with st.sidebar.expander("⚙️ Settings"):
        render_settings_panel()


# =============================================================================
# SESSION PAGES
# =============================================================================

def render_login_page(components: AppComponents, resolved: ResolvedRoute):
    st.title("🔑 Sign In")
    if resolved.redirected_from is not None:
        st.info("Please sign in to continue.")

    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign In", type="primary")

    if submitted:
        if not email or not password:
            st.error("Email and password are required")
            return
        with st.spinner("Signing in..."):
            try:
                run_async(components.session_flow.sign_in(email, password))
            except AuthError as e:
                st.error(str(e))
                return
        navigate(Route.DASHBOARD)

    st.markdown("Don't have an account?")
    if st.button("Create one"):
        navigate(Route.REGISTER)


def render_register_page(components: AppComponents):
    st.title("📝 Create Account")

    with st.form("register_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button("Create Account", type="primary")

    if submitted:
        if not email or not password:
            st.error("Email and password are required")
            return
        if password != confirm:
            st.error("Passwords do not match")
            return
        with st.spinner("Creating your account..."):
            try:
                session = run_async(components.session_flow.sign_up(email, password))
            except AuthError as e:
                st.error(str(e))
                return
        if session is None:
            st.success("Account created. Check your email to confirm it, then sign in.")
            return
        navigate(Route.DASHBOARD)

    if st.button("I already have an account"):
        navigate(Route.LOGIN)


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(components: AppComponents):
    st.title("📊 Dashboard")

    session = components.holder.current
    if session is None:
        st.info("Sign in to see your cards and upcoming payments.")
        if st.button("🔑 Sign In", type="primary"):
            navigate(Route.LOGIN)
        return

    try:
        summary = run_async(components.dashboard_flow.summary(session))
    except StorageError as e:
        st.error(f"Could not load your dashboard: {e}")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Cards", summary.card_count)
    col2.metric("Total Balance", format_currency(summary.total_balance))
    col3.metric("Total Limit", format_currency(summary.total_limit))
    col4.metric("Utilization", f"{summary.utilization:.1f}%")

    if not summary.has_cards:
        st.info("You have not added any cards yet.")
        if st.button("➕ Add your first card", type="primary"):
            navigate(Route.CARD_ADD)
        return

    st.markdown("### Upcoming Payments")
    if not summary.upcoming_reminders:
        st.caption("Nothing due right now.")
    cards = components.card_flow.store
    for reminder in summary.upcoming_reminders:
        card = cards.get(reminder.credit_card_id)
        status = reminder_status(reminder.due_date, reminder.is_paid)
        col1, col2, col3 = st.columns([3, 2, 2])
        col1.markdown(f"**{card_label(card) if card else 'Unknown card'}**")
        col2.markdown(f"Due {format_date(reminder.due_date)}")
        col3.markdown(f"{format_currency(reminder.amount)} · {status.label}")

    if st.button("🔄 Refresh"):
        run_async(components.dashboard_flow.summary(session, refresh=True))
        st.rerun()


# =============================================================================
# CARDS
# =============================================================================

def render_card_tile(card: CreditCard):
    st.markdown(f"""
    <div class="card-tile" style="background-color: {card.color};">
        <div><strong>{html.escape(card.bank_name)}</strong> · {card.network_label}</div>
        <div class="number">{card.masked_number}</div>
        <div>{html.escape(card.card_name)} · Exp {format_expiry_date(card.expiry_date)}</div>
    </div>
    """, unsafe_allow_html=True)


def render_cards_page(components: AppComponents):
    st.title("💳 Credit Cards")
    session = components.holder.current

    if st.button("➕ Add Card", type="primary"):
        navigate(Route.CARD_ADD)

    try:
        cards = run_async(components.card_flow.ensure_loaded(session))
    except StorageError as e:
        st.error(f"Could not load your cards: {e}")
        return

    if not cards:
        st.info("No cards yet. Add one to start tracking it.")
        return

    pending_delete = st.session_state.get("confirm_delete_card")

    for card in cards:
        with st.container(border=True):
            col1, col2 = st.columns([2, 3])
            with col1:
                render_card_tile(card)
            with col2:
                m1, m2, m3 = st.columns(3)
                m1.metric("Balance", format_currency(card.current_balance))
                m2.metric("Limit", format_currency(card.credit_limit))
                m3.metric("Available", format_currency(card.display_available_credit))
                st.caption(
                    f"Last bill {format_date(card.last_bill_date)} · "
                    f"Last due {format_date(card.last_due_date)} · "
                    f"Cycle {format_cycle(card.bill_cycle_days)}"
                )
                if is_due_date_approaching(card.last_due_date):
                    st.warning(f"Payment due on {format_date(card.last_due_date)}")

                b1, b2, b3 = st.columns(3)
                if b1.button("✏️ Edit", key=f"edit_{card.id}"):
                    navigate(Route.CARD_EDIT, card.id)
                if b2.button("📄 Statements", key=f"stmts_{card.id}"):
                    navigate(Route.CARD_STATEMENTS, card.id)
                if b3.button("🗑️ Delete", key=f"del_{card.id}"):
                    st.session_state.confirm_delete_card = card.id
                    st.rerun()

            if pending_delete == card.id:
                st.markdown(f"""
                <div class="warning-box">
                    Delete <strong>{html.escape(card.card_name)}</strong>? Its reminders and
                    statements will be deleted too. This cannot be undone.
                </div>
                """, unsafe_allow_html=True)
                c1, c2 = st.columns(2)
                if c1.button("Yes, delete", key=f"confirm_{card.id}", type="primary"):
                    st.session_state.confirm_delete_card = None
                    with st.spinner("Deleting..."):
                        try:
                            run_async(components.card_flow.delete(session, card.id))
                        except StorageError as e:
                            st.error(f"Could not delete the card: {e}")
                            return
                    st.rerun()
                if c2.button("Cancel", key=f"cancel_{card.id}"):
                    st.session_state.confirm_delete_card = None
                    st.rerun()


def _option_index(options: list, value: Any, default: int = 0) -> int:
    return options.index(value) if value in options else default


def render_card_form_page(components: AppComponents, card_id: Optional[UUID]):
    session = components.holder.current
    card = None
    if card_id is not None:
        try:
            card = run_async(components.card_flow.get(session, card_id))
        except StorageError as e:
            st.error(f"Could not load the card: {e}")
            return
        if card is None:
            st.error("Card not found")
            if st.button("Back to cards"):
                navigate(Route.CARDS)
            return

    st.title("✏️ Edit Card" if card else "➕ Add Card")
    errors = form_errors("card")

    network_keys = list(CARD_NETWORKS)
    color_keys = list(CARD_COLORS)

    with st.form("card_form"):
        col1, col2 = st.columns(2)
        with col1:
            card_name = st.text_input("Card name", value=card.card_name if card else "")
            show_field_errors(errors, "card_name")
            bank_name = st.text_input("Bank name", value=card.bank_name if card else "")
            show_field_errors(errors, "bank_name")
            last_four = st.text_input(
                "Last four digits",
                value=card.last_four_digits if card else "",
                max_chars=4,
            )
            show_field_errors(errors, "last_four_digits")
            network = st.selectbox(
                "Network",
                options=network_keys,
                index=_option_index(network_keys, card.card_network if card else None),
                format_func=lambda k: CARD_NETWORKS[k],
            )
            show_field_errors(errors, "card_network")
            color = st.selectbox(
                "Color",
                options=color_keys,
                index=_option_index(
                    color_keys,
                    card.color if card else DEFAULT_CARD_COLOR,
                ),
                format_func=lambda k: CARD_COLORS[k],
            )
            show_field_errors(errors, "color")
        with col2:
            credit_limit = st.text_input(
                "Credit limit",
                value=str(card.credit_limit) if card else "",
            )
            show_field_errors(errors, "credit_limit")
            current_balance = st.text_input(
                "Current balance",
                value=str(card.current_balance) if card else "",
            )
            show_field_errors(errors, "current_balance")
            joining_fees = st.text_input(
                "Joining fees",
                value=str(card.joining_fees) if card else "",
            )
            show_field_errors(errors, "joining_fees")
            annual_fees = st.text_input(
                "Annual fees",
                value=str(card.annual_fees) if card else "",
            )
            show_field_errors(errors, "annual_fees")

        col3, col4 = st.columns(2)
        with col3:
            last_bill_date = st.date_input(
                "Last bill date",
                value=card.last_bill_date if card else None,
            )
            show_field_errors(errors, "last_bill_date")
            joining_date = st.date_input(
                "Joining date",
                value=card.joining_date if card else None,
            )
            show_field_errors(errors, "joining_date")
        with col4:
            last_due_date = st.date_input(
                "Last due date",
                value=card.last_due_date if card else None,
            )
            show_field_errors(errors, "last_due_date")
            expiry_date = st.date_input(
                "Expiry date",
                value=card.expiry_date if card else None,
            )
            show_field_errors(errors, "expiry_date")

        submitted = st.form_submit_button(
            "💾 Save Changes" if card else "💾 Add Card",
            type="primary",
        )

    if st.button("Cancel"):
        navigate(Route.CARDS)

    if not submitted:
        return

    raw = {
        "card_name": card_name,
        "bank_name": bank_name,
        "last_four_digits": last_four,
        "card_network": network,
        "color": color,
        "card_image": card.card_image if card else None,
        "credit_limit": credit_limit,
        "current_balance": current_balance,
        "joining_fees": joining_fees,
        "annual_fees": annual_fees,
        "last_bill_date": last_bill_date,
        "last_due_date": last_due_date,
        "joining_date": joining_date,
        "expiry_date": expiry_date,
    }

    with st.spinner("Saving card..."):
        try:
            if card:
                result, saved = run_async(components.card_flow.update(session, card.id, raw))
            else:
                result, saved = run_async(components.card_flow.create(session, raw))
        except StorageError as e:
            st.error(f"Could not save the card: {e}")
            return

    if saved is None:
        set_form_errors("card", result.field_errors)
        st.rerun()
    navigate(Route.CARDS)


# =============================================================================
# STATEMENTS
# =============================================================================

@st.dialog("Upload Bill Statement")
def upload_statement_dialog(components: AppComponents, card: CreditCard):
    session = components.holder.current
    defaults = default_statement_dates(card.last_bill_date, card.last_due_date)

    uploaded = st.file_uploader("Statement PDF", type=["pdf"])
    bill_date = st.date_input("Bill date", value=defaults[0] if defaults else None)
    due_date = st.date_input("Due date", value=defaults[1] if defaults else None)
    amount = st.text_input("Amount")

    if not st.button("⬆️ Upload", type="primary"):
        return

    file = None
    if uploaded is not None:
        file = StatementFile(
            file_name=uploaded.name,
            content=uploaded.getvalue(),
            mime_type=uploaded.type or "application/octet-stream",
        )

    raw = {"bill_date": bill_date, "due_date": due_date, "amount": amount}
    with st.spinner("Uploading statement..."):
        try:
            result, saved = run_async(
                components.statement_flow.upload(session, card.id, raw, file)
            )
        except UploadError as e:
            st.error(f"Upload failed: {e}")
            if e.file_path and not e.compensated:
                st.caption("The uploaded file could not be cleaned up automatically.")
            return
        except StorageError as e:
            st.error(f"Upload failed: {e}")
            return

    if saved is None:
        # Stay in the dialog so the user can fix the inputs
        for messages in result.field_errors.values():
            for message in messages:
                st.error(message)
        return
    st.rerun()


def render_statements_page(components: AppComponents, card_id: UUID):
    session = components.holder.current
    try:
        card = run_async(components.card_flow.get(session, card_id))
    except StorageError as e:
        st.error(f"Could not load the card: {e}")
        return
    if card is None:
        st.error("Card not found")
        return

    st.title(f"📄 Statements · {card.card_name}")
    render_card_tile(card)

    col1, col2 = st.columns(2)
    if col1.button("⬆️ Upload Statement", type="primary"):
        upload_statement_dialog(components, card)
    if col2.button("← Back to cards"):
        navigate(Route.CARDS)

    try:
        statements = run_async(components.statement_flow.load(session, card_id))
    except StorageError as e:
        st.error(f"Could not load statements: {e}")
        return

    if not statements:
        st.info("No statements uploaded for this card yet.")
        return

    flow = components.statement_flow
    for statement in statements:
        with st.container(border=True):
            c1, c2, c3 = st.columns([3, 2, 3])
            c1.markdown(f"**{statement.file_name}**")
            c1.caption(f"{statement.size_kb:.1f} KB")
            c2.markdown(
                f"Bill {format_date(statement.bill_date)}  \n"
                f"Due {format_date(statement.due_date)}"
            )
            c2.markdown(f"**{format_currency(statement.amount)}**")

            b1, b2, b3 = c3.columns(3)
            if b1.button("👁️ View", key=f"view_{statement.id}"):
                try:
                    url = run_async(flow.signed_url(session, statement))
                    st.link_button("Open statement", url)
                except StorageError as e:
                    st.error(f"Could not open the statement: {e}")
            if b2.button("⬇️ Download", key=f"dl_{statement.id}"):
                try:
                    data = run_async(flow.download(session, statement))
                    st.download_button(
                        "Save file",
                        data=data,
                        file_name=statement.file_name,
                        mime=statement.file_type,
                        key=f"save_{statement.id}",
                    )
                except StorageError as e:
                    st.error(f"Could not download the statement: {e}")
            if b3.button("🗑️ Delete", key=f"sdel_{statement.id}"):
                st.session_state.confirm_delete_statement = statement.id
                st.rerun()

            if st.session_state.get("confirm_delete_statement") == statement.id:
                st.warning(f"Delete {statement.file_name}? This cannot be undone.")
                d1, d2 = st.columns(2)
                if d1.button("Yes, delete", key=f"sconfirm_{statement.id}", type="primary"):
                    st.session_state.confirm_delete_statement = None
                    try:
                        run_async(flow.delete(session, statement))
                    except StorageError as e:
                        st.error(f"Could not delete the statement: {e}")
                        return
                    st.rerun()
                if d2.button("Cancel", key=f"scancel_{statement.id}"):
                    st.session_state.confirm_delete_statement = None
                    st.rerun()


# =============================================================================
# REMINDERS
# =============================================================================

STATUS_ICONS = {
    ReminderStatus.PAID: "✅",
    ReminderStatus.OVERDUE: "🔴",
    ReminderStatus.DUE_TODAY: "🟠",
    ReminderStatus.DUE_SOON: "🟡",
    ReminderStatus.UPCOMING: "🔵",
}


def render_reminder_form(
    components: AppComponents,
    cards: list[CreditCard],
    reminder: Optional[PaymentReminder] = None,
):
    session = components.holder.current
    errors = form_errors("reminder")
    card_ids = [c.id for c in cards]
    by_id = {c.id: c for c in cards}

    with st.form("reminder_form"):
        credit_card_id = st.selectbox(
            "Credit card",
            options=[None] + card_ids,
            index=_option_index(
                [None] + card_ids,
                reminder.credit_card_id if reminder else None,
            ),
            format_func=lambda cid: "Select a card" if cid is None else card_label(by_id[cid]),
        )
        show_field_errors(errors, "credit_card_id")
        due_date = st.date_input("Due date", value=reminder.due_date if reminder else None)
        show_field_errors(errors, "due_date")
        amount = st.text_input("Amount", value=str(reminder.amount) if reminder else "")
        show_field_errors(errors, "amount")
        notes = st.text_area("Notes", value=(reminder.notes or "") if reminder else "")
        is_paid = st.checkbox("Paid", value=reminder.is_paid if reminder else False)
        submitted = st.form_submit_button(
            "💾 Save Reminder" if reminder else "➕ Add Reminder",
            type="primary",
        )

    if not submitted:
        return

    raw = {
        "credit_card_id": credit_card_id,
        "due_date": due_date,
        "amount": amount,
        "notes": notes,
        "is_paid": is_paid,
    }
    flow = components.reminder_flow
    with st.spinner("Saving reminder..."):
        try:
            if reminder:
                result, saved = run_async(flow.update(session, reminder.id, raw))
            else:
                result, saved = run_async(flow.create(session, raw))
        except StorageError as e:
            st.error(f"Could not save the reminder: {e}")
            return

    if saved is None:
        set_form_errors("reminder", result.field_errors)
    else:
        st.session_state.pop("form_errors", None)
        st.session_state.editing_reminder = None
    st.rerun()


def render_reminder_row(
    components: AppComponents,
    reminder: PaymentReminder,
    cards_by_id: dict[UUID, CreditCard],
):
    session = components.holder.current
    flow = components.reminder_flow
    status = reminder_status(
        reminder.due_date,
        reminder.is_paid,
        due_soon_days=get_settings().app.due_soon_days,
    )
    card = cards_by_id.get(reminder.credit_card_id)

    with st.container(border=True):
        c1, c2, c3 = st.columns([3, 2, 3])
        c1.markdown(f"{STATUS_ICONS[status]} **{card_label(card) if card else 'Unknown card'}**")
        if reminder.notes:
            c1.caption(reminder.notes)
        c2.markdown(f"**{format_currency(reminder.amount)}**")
        c2.caption(f"Due {format_date(reminder.due_date)} · {status.label}")

        b1, b2, b3 = c3.columns(3)
        toggle_label = "↩️ Unpaid" if reminder.is_paid else "✅ Paid"
        if b1.button(toggle_label, key=f"toggle_{reminder.id}"):
            try:
                run_async(flow.toggle_paid(session, reminder.id))
            except StorageError as e:
                st.error(f"Could not update the reminder: {e}")
                return
            st.rerun()
        if b2.button("✏️ Edit", key=f"redit_{reminder.id}"):
            st.session_state.editing_reminder = reminder.id
            st.session_state.pop("form_errors", None)
            st.rerun()
        if b3.button("🗑️ Delete", key=f"rdel_{reminder.id}"):
            st.session_state.confirm_delete_reminder = reminder.id
            st.rerun()

        if st.session_state.get("confirm_delete_reminder") == reminder.id:
            st.warning("Delete this reminder?")
            d1, d2 = st.columns(2)
            if d1.button("Yes, delete", key=f"rconfirm_{reminder.id}", type="primary"):
                st.session_state.confirm_delete_reminder = None
                try:
                    run_async(flow.delete(session, reminder.id))
                except StorageError as e:
                    st.error(f"Could not delete the reminder: {e}")
                    return
                st.rerun()
            if d2.button("Cancel", key=f"rcancel_{reminder.id}"):
                st.session_state.confirm_delete_reminder = None
                st.rerun()


def render_reminders_page(components: AppComponents):
    st.title("⏰ Payment Reminders")
    session = components.holder.current

    try:
        cards = run_async(components.card_flow.ensure_loaded(session))
        reminders = run_async(components.reminder_flow.ensure_loaded(session))
    except StorageError as e:
        st.error(f"Could not load reminders: {e}")
        return

    if not cards:
        st.info("Add a credit card before creating reminders.")
        if st.button("➕ Add Card", type="primary"):
            navigate(Route.CARD_ADD)
        return

    editing_id = st.session_state.get("editing_reminder")
    editing = components.reminder_flow.store.get(editing_id) if editing_id else None

    with st.expander("✏️ Edit Reminder" if editing else "➕ New Reminder", expanded=editing is not None):
        render_reminder_form(components, cards, editing)
        if editing and st.button("Cancel edit"):
            st.session_state.editing_reminder = None
            st.rerun()

    cards_by_id = {c.id: c for c in cards}
    upcoming = [r for r in reminders if not r.is_paid]
    paid = [r for r in reminders if r.is_paid]

    tab_upcoming, tab_paid = st.tabs([f"Upcoming ({len(upcoming)})", f"Paid ({len(paid)})"])
    with tab_upcoming:
        if not upcoming:
            st.caption("No unpaid reminders.")
        for reminder in upcoming:
            render_reminder_row(components, reminder, cards_by_id)
    with tab_paid:
        if not paid:
            st.caption("No paid reminders yet.")
        for reminder in paid:
            render_reminder_row(components, reminder, cards_by_id)


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_panel():
    """Connection and configuration status."""
    status = validate_all_settings()

    sections = [
        ("Supabase (Backend)", "supabase"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")


if __name__ == "__main__":
    main()
