"""
Streamlit Frontend for Household Budget

This is the interface the household uses to keep one monthly budget
across two countries and two currencies.

DESIGN PRINCIPLES:
1. One page per region, plus a global dashboard
2. Every total shown in the primary currency is converted the same way
3. Clear error messages instead of silently dropped input
4. Nothing changes the document except an explicit button

The budget document is saved in full after every change.
"""

from datetime import date

import plotly.graph_objects as go
import streamlit as st

from household_budget.backup import BackupFormatError
from household_budget.config import get_settings, validate_all_settings
from household_budget.models.budget import Category, DateRange, ItemType, Region
from household_budget.models.user import SessionUser
from household_budget.orchestrator import (
    BudgetBook,
    EntryNotFoundError,
    create_app_components,
    create_drive_mirror,
)
from household_budget.reports import chart_breakdown, preset_range, to_secondary
from household_budget.services.storage import NotFoundError, StorageError
from household_budget.users import UserDirectory, UserDirectoryError
from household_budget.validation import InvalidEntryError


SESSION_PARAM = "session"


# Page configuration
st.set_page_config(
    page_title="YAiFinanzas",
    page_icon="💶",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .card {
        padding: 16px 20px;
        border-radius: 10px;
        margin: 6px 0;
        background-color: #f8f9fa;
        border-left: 5px solid #6c757d;
    }
    .card-income { border-left-color: #28a745; }
    .card-expense { border-left-color: #dc3545; }
    .card-savings { border-left-color: #007bff; }
    .card-remaining { border-left-color: #17a2b8; }
    .card-over { border-left-color: #dc3545; background-color: #f8d7da; }
    .card-label {
        font-size: 0.9em;
        color: #6c757d;
    }
    .big-number {
        font-size: 1.8em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

DARK_CSS = """
<style>
    .stApp { background-color: #0f172a; color: #e2e8f0; }
    .card { background-color: #1e293b; }
    .big-number { color: #f1f5f9; }
</style>
"""

CHART_LABELS = {
    "primary_expenses": "Expenses (primary)",
    "secondary_expenses": "Expenses (secondary)",
    "savings": "Savings",
    "available": "Available",
}
CHART_COLORS = ["#dc3545", "#fd7e14", "#007bff", "#28a745"]


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def format_money(amount: float, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def render_card(label: str, value: str, style: str) -> None:
    st.markdown(f"""
    <div class="card card-{style}">
        <div class="card-label">{label}</div>
        <div class="big-number">{value}</div>
    </div>
    """, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    book, directory, sessions, audit_logger = get_components()
    settings = book.settings

    if sessions.dark_mode():
        st.markdown(DARK_CSS, unsafe_allow_html=True)

    if "user" not in st.session_state:
        # The token in the URL keeps this browser signed in across reloads
        token = st.query_params.get(SESSION_PARAM)
        st.session_state.user = sessions.restore_session(token, directory)

    user = st.session_state.user
    if user is None:
        render_login_page(directory, sessions)
        return

    # Sidebar navigation
    st.sidebar.title("💶 YAiFinanzas")
    st.sidebar.markdown(f"Signed in as **{user.username}**")
    st.sidebar.markdown("---")

    pages = {
        "📊 Dashboard": "dashboard",
        f"🏠 {settings.primary_region_label}": "primary",
        f"🌴 {settings.secondary_region_label}": "secondary",
        "📈 Reports": "reports",
        "⚙️ Settings": "settings",
    }
    choice = st.sidebar.radio("Navigate to:", list(pages), index=0)

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        f"**Exchange rate:** 1 {settings.primary_currency} = "
        f"{book.document.exchange_rate:,.2f} {settings.secondary_currency}"
    )
    if st.sidebar.button("🚪 Log out"):
        sessions.end_session(user.token, user.id)
        st.session_state.user = None
        st.query_params.pop(SESSION_PARAM, None)
        st.rerun()

    # Route to appropriate page
    page = pages[choice]
    if page == "dashboard":
        render_dashboard_page(book)
    elif page == "primary":
        render_region_page(book, Region.PRIMARY)
    elif page == "secondary":
        render_region_page(book, Region.SECONDARY)
    elif page == "reports":
        render_reports_page(book)
    elif page == "settings":
        render_settings_page(book, directory, sessions, audit_logger, user)


def render_login_page(directory: UserDirectory, sessions):
    """Render the login form."""
    st.title("💶 YAiFinanzas")
    st.markdown("Sign in to manage the household budget.")

    with st.form("login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        try:
            record = directory.authenticate(username, password)
        except UserDirectoryError as e:
            st.error(str(e))
        else:
            snapshot = sessions.start_session(record)
            st.session_state.user = snapshot
            st.query_params[SESSION_PARAM] = snapshot.token
            st.rerun()


def render_dashboard_page(book: BudgetBook):
    """Render the global monthly overview."""
    settings = book.settings
    currency = settings.primary_currency
    today = date.today()
    summary = book.summary(today)

    st.title("📊 Dashboard")
    st.markdown(f"Overview for **{today.strftime('%B %Y')}**, all figures in {currency}.")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        render_card("Income this month", format_money(summary.total_income, currency), "income")
    with col2:
        render_card("Expenses", format_money(summary.total_expenses, currency), "expense")
    with col3:
        render_card("Savings", format_money(summary.total_savings, currency), "savings")
    with col4:
        render_card(
            "Remaining",
            format_money(summary.remaining, currency),
            "over" if summary.is_over_budget else "remaining",
        )

    if summary.is_over_budget:
        st.warning("⚠️ Expenses and savings exceed this month's income.")

    st.markdown("---")
    left, right = st.columns([3, 2])

    with left:
        st.subheader("💰 Incomes this month")
        incomes = book.current_month_incomes(today)
        if not incomes:
            st.info("No incomes recorded this month yet.")
        for income in incomes:
            render_income_row(book, income, currency)

        with st.form("add_income", clear_on_submit=True):
            st.markdown("**Add income**")
            c1, c2, c3 = st.columns([3, 2, 2])
            name = c1.text_input("Name", placeholder="e.g. Salary")
            amount = c2.text_input(f"Amount ({currency})", placeholder="0.00")
            entry_date = c3.date_input("Date", value=today)
            if st.form_submit_button("➕ Add income", type="primary"):
                try:
                    book.add_income(name, amount, entry_date)
                    st.rerun()
                except InvalidEntryError as e:
                    st.error(str(e))

    with right:
        st.subheader("🥧 Distribution")
        slices = [(key, value) for key, value in chart_breakdown(summary) if value > 0]
        if not slices:
            st.info("Nothing to chart yet.")
        else:
            fig = go.Figure(go.Pie(
                labels=[CHART_LABELS[key] for key, _ in slices],
                values=[value for _, value in slices],
                marker=dict(colors=CHART_COLORS[:len(slices)]),
                hole=0.4,
            ))
            fig.update_layout(margin=dict(t=20, b=20, l=20, r=20), showlegend=True)
            st.plotly_chart(fig, use_container_width=True)


def render_income_row(book: BudgetBook, income, currency: str):
    """One income with inline edit and delete."""
    with st.expander(f"{income.name} · {format_money(income.amount, currency)}"):
        with st.form(f"edit_income_{income.id}"):
            c1, c2 = st.columns([3, 2])
            name = c1.text_input("Name", value=income.name)
            amount = c2.text_input("Amount", value=f"{income.amount:.2f}")
            save, delete = st.columns(2)
            saved = save.form_submit_button("💾 Save")
            deleted = delete.form_submit_button("🗑️ Delete")

        try:
            if saved:
                book.update_income(income.id, name=name, amount=amount)
                st.rerun()
            if deleted:
                book.delete_income(income.id)
                st.rerun()
        except (InvalidEntryError, EntryNotFoundError) as e:
            st.error(str(e))


def render_region_page(book: BudgetBook, region: Region):
    """Render the expenses and savings of one region."""
    settings = book.settings
    document = book.document
    is_primary = region == Region.PRIMARY
    label = settings.primary_region_label if is_primary else settings.secondary_region_label
    currency = settings.primary_currency if is_primary else settings.secondary_currency
    ledger = document.ledger(region)

    st.title(f"{'🏠' if is_primary else '🌴'} {label}")
    st.markdown(f"Amounts on this page are in **{currency}**.")

    expenses_total = sum(item.amount for item in ledger.expenses)
    savings_total = sum(item.amount for item in ledger.savings)
    col1, col2 = st.columns(2)
    with col1:
        render_card("Expenses", format_money(expenses_total, currency), "expense")
    with col2:
        render_card("Savings", format_money(savings_total, currency), "savings")

    if not is_primary:
        rate = document.exchange_rate
        st.caption(
            f"≈ {format_money(expenses_total / rate, settings.primary_currency)} expenses, "
            f"{format_money(savings_total / rate, settings.primary_currency)} savings"
        )
        render_quick_calculator(book)

    tab_expenses, tab_savings = st.tabs(["💸 Expenses", "🏦 Savings"])
    with tab_expenses:
        render_item_section(book, region, Category.EXPENSES, currency)
    with tab_savings:
        render_item_section(book, region, Category.SAVINGS, currency)


def render_quick_calculator(book: BudgetBook):
    settings = book.settings
    with st.expander("🧮 Quick calculator"):
        c1, c2 = st.columns(2)
        amount = c1.number_input(f"{settings.primary_currency}", min_value=0.0, value=100.0, step=10.0)
        c2.text_input(
            f"{settings.secondary_currency}",
            value=f"{to_secondary(amount, book.document.exchange_rate):,.2f}",
            disabled=True,
        )


def render_item_section(book: BudgetBook, region: Region, category: Category, currency: str):
    """Add form and list of one region collection."""
    items = book.document.ledger(region).items(category)
    is_expense = category == Category.EXPENSES

    with st.form(f"add_{region.value}_{category.value}", clear_on_submit=True):
        c1, c2, c3 = st.columns([3, 2, 2])
        name = c1.text_input("Name")
        amount = c2.text_input(f"Amount ({currency})", placeholder="0.00")
        entry_date = c3.date_input("Date", value=date.today())
        item_type = ItemType.VARIABLE
        if is_expense:
            item_type = st.radio(
                "Type",
                options=list(ItemType),
                format_func=lambda x: x.value.title(),
                horizontal=True,
            )
        if st.form_submit_button("➕ Add", type="primary"):
            try:
                book.add_item(region, category, name, amount, item_type, entry_date)
                st.rerun()
            except InvalidEntryError as e:
                st.error(str(e))

    if not items:
        st.info("Nothing here yet.")
        return

    for item in items:
        c1, c2, c3, c4 = st.columns([4, 2, 2, 1])
        c1.markdown(f"**{item.name}**" + (f" · _{item.item_type.value}_" if is_expense else ""))
        c2.markdown(format_money(item.amount, currency))
        c3.markdown(item.entry_date.isoformat() if item.entry_date else "–")
        if c4.button("🗑️", key=f"del_{region.value}_{category.value}_{item.id}"):
            try:
                book.delete_item(region, category, item.id)
                st.rerun()
            except EntryNotFoundError as e:
                st.error(str(e))


def render_reports_page(book: BudgetBook):
    """Render the expense report and the statement."""
    settings = book.settings
    currency = settings.primary_currency
    st.title("📈 Reports")

    mode = st.radio("Period", ["This week", "This month", "Custom"], horizontal=True)
    if mode == "This week":
        date_range = preset_range("week")
    elif mode == "This month":
        date_range = preset_range("month")
    else:
        month = preset_range("month")
        picked = st.date_input("Date range", value=(month.start, month.end))
        if not isinstance(picked, (list, tuple)) or len(picked) != 2:
            st.info("Pick a start and an end date.")
            return
        date_range = DateRange(start=picked[0], end=picked[1])

    report = book.report(date_range)
    st.markdown(f"**{date_range.start.isoformat()} → {date_range.end.isoformat()}**")
    render_card("Combined expenses", format_money(report.combined_total, currency), "expense")

    if report.series:
        fig = go.Figure()
        fig.add_trace(go.Bar(
            name=settings.primary_region_label,
            x=[point.day for point in report.series],
            y=[point.primary for point in report.series],
            marker_color="#dc3545",
        ))
        fig.add_trace(go.Bar(
            name=settings.secondary_region_label,
            x=[point.day for point in report.series],
            y=[point.secondary for point in report.series],
            marker_color="#fd7e14",
        ))
        fig.update_layout(
            title=f"Daily expenses ({currency})",
            barmode="stack",
            xaxis_title="Date",
            yaxis_title=currency,
        )
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No dated expenses in this period.")

    st.subheader("📜 Statement")
    rows = book.statement(date_range)
    if not rows:
        st.info("No movements in this period.")
        return
    st.dataframe(
        [
            {
                "Date": row.entry_date.isoformat() if row.entry_date else "",
                "Concept": row.name,
                "Kind": row.kind.value.replace("_", " ").title(),
                "Amount": format_money(row.amount, row.currency),
                f"Amount ({currency})": round(row.signed_amount, 2),
                f"Balance ({currency})": round(row.balance, 2),
            }
            for row in rows
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_settings_page(book: BudgetBook, directory: UserDirectory, sessions, audit_logger, user: SessionUser):
    """Render the settings page."""
    settings = book.settings
    st.title("⚙️ Settings")

    st.markdown("### 💱 Exchange rate")
    with st.form("exchange_rate"):
        rate = st.text_input(
            f"{settings.secondary_currency} per 1 {settings.primary_currency}",
            value=f"{book.document.exchange_rate:.2f}",
        )
        if st.form_submit_button("Save rate"):
            try:
                book.set_exchange_rate(rate)
                st.success("Exchange rate updated")
            except InvalidEntryError as e:
                st.error(str(e))

    st.markdown("---")
    st.markdown("### 💾 Backup")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("📦 Prepare backup"):
            st.session_state.backup = book.export_backup(directory.export_records())
        if st.session_state.get("backup"):
            filename, payload = st.session_state.backup
            st.download_button("⬇️ Download backup", data=payload, file_name=filename, mime="application/json")
    with col2:
        uploaded = st.file_uploader("Import backup", type=["json"])
        if uploaded and st.button("⬆️ Restore this backup"):
            try:
                book.import_backup(uploaded.getvalue(), source=uploaded.name)
                st.success("Backup restored")
            except BackupFormatError as e:
                st.error(f"Import failed: {e}")

    render_drive_section(book, directory, audit_logger)

    if user.is_admin:
        render_users_section(directory, user)

    st.markdown("---")
    st.markdown("### 🎨 Appearance")
    dark = st.toggle("Dark mode", value=sessions.dark_mode())
    if dark != sessions.dark_mode():
        sessions.set_dark_mode(dark)
        st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    if status.get("google_drive", False):
        st.success("✅ Google Drive - Configured")
    else:
        st.warning(f"⚠️ Google Drive - {status.get('google_drive_error', 'Not configured')}")

    with st.expander("🕑 Recent activity"):
        for event in audit_logger.recent_events():
            st.markdown(
                f"`{event.timestamp.strftime('%Y-%m-%d %H:%M:%S')}` "
                f"**{event.event_type.value}** {event.description}"
            )


def render_drive_section(book: BudgetBook, directory: UserDirectory, audit_logger):
    st.markdown("---")
    st.markdown("### ☁️ Google Drive")

    if "drive_mirror" not in st.session_state:
        st.session_state.drive_mirror = None

    col1, col2 = st.columns(2)
    push = col1.button("☁️ Upload to Drive")
    pull = col2.button("📥 Restore from Drive")
    if not (push or pull):
        return

    try:
        if st.session_state.drive_mirror is None:
            st.session_state.drive_mirror = create_drive_mirror(audit_logger, get_settings())
        mirror = st.session_state.drive_mirror
        with st.spinner("Talking to Google Drive..."):
            if push:
                mirror.push(book.document, directory.export_records())
                st.success("Backup uploaded to Google Drive")
            else:
                book.replace_document(mirror.pull(), source="google_drive")
                st.success("Budget restored from Google Drive")
    except NotFoundError:
        st.warning("No backup found in Google Drive yet")
    except (StorageError, BackupFormatError) as e:
        st.error(f"Google Drive sync failed: {e}")


def render_users_section(directory: UserDirectory, user: SessionUser):
    """User administration, admins only."""
    st.markdown("---")
    st.markdown("### 👥 Users")

    for record in directory.users:
        c1, c2, c3 = st.columns([4, 2, 1])
        c1.markdown(f"**{record.username}**")
        c2.markdown(record.role.value)
        if record.id != user.id and c3.button("🗑️", key=f"del_user_{record.id}"):
            try:
                directory.delete_user(record.id, user.id)
                st.rerun()
            except UserDirectoryError as e:
                st.error(str(e))

    options = [None] + [record.id for record in directory.users]
    names = {record.id: record.username for record in directory.users}
    with st.form("save_user", clear_on_submit=True):
        target = st.selectbox(
            "User",
            options=options,
            format_func=lambda x: "➕ New user" if x is None else f"✏️ {names[x]}",
        )
        username = st.text_input("Username")
        password = st.text_input("Password", type="password", help="Leave empty to keep the current one")
        if st.form_submit_button("Save user", type="primary"):
            try:
                directory.save_user(username, password, user_id=target)
                st.success("User saved")
                st.rerun()
            except UserDirectoryError as e:
                st.error(str(e))


if __name__ == "__main__":
    main()
