"""
Streamlit Frontend for TrackIt

Three screens, driven by the app's view state:

    landing -> auth (sign up / log in) -> dashboard

The dashboard has three tabs:
- Overview: totals, budget health, AI advice, activity and category charts
- Expenses: add and delete expenses
- Settings: categories and budgets, theme, connection status, activity log

DESIGN PRINCIPLES:
1. Every edit is saved immediately
2. Clear error messages in simple language
3. Nothing here computes figures; the controller does
"""

import asyncio
from datetime import date

import streamlit as st

from trackit.config import get_settings, validate_all_settings
from trackit.dashboard import (
    AdviceInFlightError,
    DashboardController,
    DashboardTab,
    InvalidInputError,
)
from trackit.charts import (
    advice_html,
    plot_activity,
    plot_budget_bars,
    plot_category_donut,
    swatch_html,
)
from trackit.models import AuthMode, BudgetStatus, ViewState
from trackit.orchestrator import TrackItApp, create_app, create_app_components
from trackit.services.storage import KeyValueAuditStorage, StorageError


# Page configuration
st.set_page_config(
    page_title="TrackIt",
    page_icon="💸",
    layout="wide",
    initial_sidebar_state="collapsed",
)

LIGHT_CSS = """
<style>
    .stButton>button { width: 100%; }
    .status-box {
        padding: 16px;
        border-radius: 10px;
        margin: 10px 0;
    }
    .healthy { background-color: #d4edda; border-left: 5px solid #28a745; }
    .warning { background-color: #fff3cd; border-left: 5px solid #ffc107; }
    .over { background-color: #f8d7da; border-left: 5px solid #dc3545; }
    .advice-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #6366f1;
        white-space: pre-wrap;
    }
</style>
"""

DARK_CSS = """
<style>
    .stApp { background-color: #0f172a; color: #e2e8f0; }
    .healthy { background-color: #14532d; }
    .warning { background-color: #713f12; }
    .over { background-color: #7f1d1d; }
    .advice-box { background-color: #1e1b4b; }
</style>
"""

STATUS_TEXT = {
    BudgetStatus.HEALTHY: ("healthy", "✅ Healthy", "You're comfortably within budget."),
    BudgetStatus.WARNING: ("warning", "⚠️ Warning", "You've used more than 85% of your budget."),
    BudgetStatus.OVER: ("over", "🚨 Over budget", "You've spent more than your total budget."),
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def show_error(app: TrackItApp, action: str, error: Exception):
    """Show a storage failure and record it in the audit log."""
    st.error(app.report_error(action, error))


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(backend="memory", use_ai=False)


def get_app() -> TrackItApp:
    """This browser session's app shell."""
    if "trackit_app" not in st.session_state:
        store, advice_client, audit_logger = get_components()
        st.session_state.trackit_app = create_app(store, advice_client, audit_logger)
    return st.session_state.trackit_app


def main():
    """Main application entry point."""
    app = get_app()

    st.markdown(LIGHT_CSS, unsafe_allow_html=True)
    if app.dark_mode:
        st.markdown(DARK_CSS, unsafe_allow_html=True)

    if app.view == ViewState.LANDING:
        render_landing_page(app)
    elif app.view == ViewState.AUTH:
        render_auth_page(app)
    elif app.dashboard is not None:
        render_dashboard(app, app.dashboard)


def render_landing_page(app: TrackItApp):
    """Render the landing page."""
    st.title("💸 TrackIt")
    st.markdown("### Know where your money goes.")
    st.markdown(
        "Track expenses against budgets, see your spending at a glance, "
        "and get personal tips from an AI advisor."
    )

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Get Started", type="primary"):
            app.get_started(AuthMode.SIGN_UP)
            st.rerun()
    with col2:
        if st.button("Log In"):
            app.get_started(AuthMode.LOG_IN)
            st.rerun()


def render_auth_page(app: TrackItApp):
    """Render the sign up / log in page."""
    signing_up = app.gate.mode == AuthMode.SIGN_UP
    st.title("Create your account" if signing_up else "Welcome back")

    with st.form("auth_form"):
        name = st.text_input("Name") if signing_up else ""
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button(
            "Sign Up" if signing_up else "Log In",
            type="primary",
        )

    if submitted:
        try:
            if signing_up:
                result = app.sign_up(name, email, password)
            else:
                result = app.log_in(email, password)
        except StorageError as e:
            show_error(app, "reach storage", e)
        else:
            if result.success:
                st.rerun()
            else:
                st.error(result.error)

    st.markdown("---")
    with st.expander("Continue with Google"):
        google_email = st.text_input("Google account email", key="google_email")
        if st.button("Continue with Google"):
            try:
                result = app.log_in_external(google_email)
            except StorageError as e:
                show_error(app, "reach storage", e)
            else:
                if result.success:
                    st.rerun()
                st.error(result.error)

    col1, col2 = st.columns(2)
    with col1:
        label = "Already have an account? Log in" if signing_up else "New here? Sign up"
        if st.button(label):
            app.gate.switch_mode()
            st.rerun()
    with col2:
        if st.button("← Back"):
            app.back_to_landing()
            st.rerun()


def render_dashboard(app: TrackItApp, dashboard: DashboardController):
    """Render the signed-in dashboard."""
    header, theme_col, logout_col = st.columns([6, 1, 1])
    with header:
        st.title(f"Hi, {dashboard.user.first_name} 👋")
    with theme_col:
        if st.button("🌙" if not app.dark_mode else "☀️", help="Toggle theme"):
            app.toggle_theme()
            st.rerun()
    with logout_col:
        if st.button("Log out"):
            app.sign_out()
            st.rerun()

    tabs = list(DashboardTab)
    selected = st.radio(
        "View",
        options=tabs,
        index=tabs.index(dashboard.active_tab),
        format_func=lambda t: t.value.title(),
        horizontal=True,
        label_visibility="collapsed",
    )
    if selected != dashboard.active_tab:
        dashboard.switch_tab(selected)
        st.rerun()

    if dashboard.active_tab == DashboardTab.OVERVIEW:
        render_overview_tab(app, dashboard)
    elif dashboard.active_tab == DashboardTab.EXPENSES:
        render_expenses_tab(app, dashboard)
    else:
        render_settings_tab(app, dashboard)


def render_overview_tab(app: TrackItApp, dashboard: DashboardController):
    """Render totals, advice and charts."""
    summary = dashboard.summary()
    totals = summary.totals

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Spent", f"${totals.total_spent:,.2f}")
    col2.metric("Total Budget", f"${totals.total_budget:,.2f}")
    col3.metric("Remaining", f"${totals.remaining:,.2f}")
    col4.metric("Transactions", totals.transaction_count)

    css_class, title, message = STATUS_TEXT[totals.status]
    st.markdown(f"""
    <div class="status-box {css_class}">
        <h4>{title} ({totals.utilization:.0f}% used)</h4>
        <p>{message}</p>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("### 🤖 AI Financial Advisor")
    label = "Refresh advice" if dashboard.advice else "Get advice"
    if st.button(label, disabled=dashboard.advice_pending):
        with st.spinner("Thinking about your finances..."):
            try:
                run_async(dashboard.request_advice())
            except AdviceInFlightError:
                st.info("Advice is already on its way.")
    if dashboard.advice:
        st.markdown(
            f'<div class="advice-box">{advice_html(dashboard.advice)}</div>',
            unsafe_allow_html=True,
        )

    chart_left, chart_right = st.columns(2)
    chart_left.plotly_chart(
        plot_activity(summary.activity, app.dark_mode),
        use_container_width=True,
        config={"displayModeBar": False},
    )
    chart_right.plotly_chart(
        plot_category_donut(summary.spending_by_category, app.dark_mode),
        use_container_width=True,
        config={"displayModeBar": False},
    )

    list_left, list_right = st.columns(2)
    with list_left:
        st.markdown("### Recent transactions")
        if not summary.recent_transactions:
            st.info("No expenses yet. Add your first one on the Expenses tab.")
        for expense in summary.recent_transactions:
            st.markdown(
                f"**{expense.description}** · {dashboard.category_name(expense.category_id)}"
                f" · {expense.date} · ${expense.amount:,.2f}"
            )
    with list_right:
        st.plotly_chart(
            plot_budget_bars(summary.top_budget_performance, app.dark_mode),
            use_container_width=True,
            config={"displayModeBar": False},
        )
        for item in summary.top_budget_performance:
            if item.near_limit:
                st.warning(f"{item.name} is at {item.percentage:.0f}% of its budget")


def render_expenses_tab(app: TrackItApp, dashboard: DashboardController):
    """Render the add-expense form and the expense table."""
    st.markdown("### Add expense")
    categories = dashboard.categories

    with st.form("expense_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            description = st.text_input("Description")
            amount = st.text_input("Amount ($)")
        with col2:
            category = st.selectbox(
                "Category",
                options=categories,
                format_func=lambda c: c.name,
            )
            expense_date = st.date_input("Date", value=date.today())
        submitted = st.form_submit_button("Add Expense", type="primary")

    if submitted:
        try:
            dashboard.add_expense(
                description,
                amount,
                category.id if category else "",
                expense_date,
            )
            st.rerun()
        except InvalidInputError as e:
            st.error(str(e))
        except StorageError as e:
            show_error(app, "save expense", e)

    st.markdown("---")
    st.markdown("### All expenses")
    rows = dashboard.expense_rows()
    if not rows:
        st.info("No expenses recorded yet.")

    for row in rows:
        col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 2, 1])
        col1.markdown(f"**{row.expense.description}**")
        col2.markdown(
            swatch_html(row.category_color, row.category_name),
            unsafe_allow_html=True,
        )
        col3.markdown(row.expense.date)
        col4.markdown(f"${row.expense.amount:,.2f}")
        if col5.button("🗑️", key=f"delete_{row.expense.id}", help="Delete"):
            try:
                dashboard.delete_expense(row.expense.id)
            except StorageError as e:
                show_error(app, "delete expense", e)
            else:
                st.rerun()


def render_settings_tab(app: TrackItApp, dashboard: DashboardController):
    """Render category management, theme and diagnostics."""
    st.markdown("### Categories")

    for category in dashboard.categories:
        col1, col2, col3 = st.columns([3, 2, 1])
        col1.markdown(
            swatch_html(category.color, category.name),
            unsafe_allow_html=True,
        )
        new_budget = col2.number_input(
            "Budget",
            value=float(category.budget),
            min_value=0.0,
            step=10.0,
            key=f"budget_{category.id}",
            label_visibility="collapsed",
        )
        if col3.button("Save", key=f"save_{category.id}"):
            try:
                dashboard.update_category_budget(category.id, new_budget)
                st.rerun()
            except InvalidInputError as e:
                st.error(str(e))
            except StorageError as e:
                show_error(app, "update budget", e)

    with st.form("category_form", clear_on_submit=True):
        st.markdown("#### New category")
        col1, col2, col3 = st.columns(3)
        name = col1.text_input("Name")
        budget = col2.text_input("Monthly budget ($)")
        color = col3.color_picker("Color", value="#6366f1")
        if st.form_submit_button("Add Category"):
            try:
                dashboard.add_category(name, budget, color)
                st.rerun()
            except InvalidInputError as e:
                st.error(str(e))
            except StorageError as e:
                show_error(app, "add category", e)

    st.markdown("---")
    st.markdown("### Appearance")
    dark = st.toggle("Dark mode", value=app.dark_mode)
    if dark != app.dark_mode:
        app.toggle_theme()
        st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    services = [
        ("Gemini (AI advice)", "gemini"),
        (f"Storage ({get_settings().storage.backend})", "storage"),
    ]
    if "google_sheets" in status:
        services.append(("Google Sheets", "google_sheets"))

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    render_activity_log(app, dashboard)


def render_activity_log(app: TrackItApp, dashboard: DashboardController):
    """Recent audit events for the signed-in user."""
    audit_logger = app.audit_logger
    if audit_logger is None or audit_logger.storage is None:
        return

    st.markdown("---")
    st.markdown("### Recent activity")
    events = audit_logger.recent_events(dashboard.user.email, limit=20)
    if not events:
        st.info("No activity recorded yet.")
    for event in events:
        st.markdown(f"`{event.timestamp:%Y-%m-%d %H:%M}` {event.description}")

    storage = audit_logger.storage
    if events and isinstance(storage, KeyValueAuditStorage):
        if st.button("Clear my activity log"):
            try:
                removed = storage.clear(dashboard.user.email)
            except StorageError as e:
                show_error(app, "clear activity log", e)
            else:
                st.success(f"Removed {removed} entries")
                st.rerun()


if __name__ == "__main__":
    main()
