"""
Streamlit Frontend for Home Budget

The screens a household uses day to day: period reports, the monthly
budget, accounts, income goals, investments, achievements and settings.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every change is saved right away, and a failed save says so
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions: an import shows what it found before replacing data

All state lives in the BudgetSession. Pages only call its store's
operations and read figures computed from the current snapshot.
"""

import asyncio
import math
from datetime import date

import streamlit as st

from homebudget.config import validate_all_settings
from homebudget.ledger import aggregator
from homebudget.ledger.hydration import export_filename
from homebudget.ledger.periods import last_month_keys, month_key
from homebudget.models import (
    BASE_CURRENCY,
    AccountType,
    Currency,
    CurrencySettings,
    IncomeCategory,
    MonthlyGoal,
    PlatformCategory,
    RateSource,
    Transaction,
    TransactionType,
)
from homebudget.models.achievements import AchievementStatus
from homebudget.orchestrator import BudgetSession, create_session
from homebudget.services.rates import format_display_amount, to_base_amount


# Page configuration
st.set_page_config(
    page_title="Home Budget",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_session() -> BudgetSession:
    """Get or create the budget session (cached)."""
    try:
        session = create_session()
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        session = create_session(use_rates=False)
    run_async(session.load())
    return session


def commit(session: BudgetSession) -> None:
    """Save after a change and celebrate anything newly unlocked."""
    for unlocked in session.sync_achievements():
        st.toast(f"🏆 Achievement unlocked: {unlocked.achievement_id}")
    if session.store.dirty:
        result = run_async(session.save())
        if not result.success:
            st.session_state.save_error = result.message
        else:
            st.session_state.pop("save_error", None)


def money(session: BudgetSession, amount: float, view: str = "default", txn=None) -> str:
    """Format a base-currency amount in the currency chosen for a view."""
    settings = session.snapshot.currency_settings
    target = {
        "default": settings.default_currency,
        "reports": settings.reports,
        "investments": settings.investments,
    }[view]
    return format_display_amount(
        amount,
        target,
        st.session_state.get("rates"),
        settings,
        original_amount=txn.original_amount if txn else None,
        original_currency=txn.original_currency if txn else None,
    )


def main():
    """Main application entry point."""
    session = get_session()
    if "rates" not in st.session_state:
        st.session_state.rates = session.rates()

    st.sidebar.title(f"💰 {session.snapshot.app_name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Reports", "📒 Budget", "🏦 Accounts", "💵 Income", "📈 Investments", "🏆 Achievements", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.metric("Total balance", money(session, aggregator.total_balance(session.snapshot)))

    if st.session_state.get("save_error"):
        st.error(st.session_state.save_error)
        if st.button("🔁 Retry save"):
            commit(session)
            st.rerun()

    # Route to appropriate page
    if page == "📊 Reports":
        render_reports_page(session)
    elif page == "📒 Budget":
        render_budget_page(session)
    elif page == "🏦 Accounts":
        render_accounts_page(session)
    elif page == "💵 Income":
        render_income_page(session)
    elif page == "📈 Investments":
        render_investments_page(session)
    elif page == "🏆 Achievements":
        render_achievements_page(session)
    elif page == "⚙️ Settings":
        render_settings_page(session)


# =============================================================================
# REPORTS
# =============================================================================

def change_label(change: float) -> str:
    """Percent change for a metric delta; a change from nothing is 'new'."""
    if math.isinf(change):
        return "new"
    return f"{change:+.0f}%"


def render_reports_page(session: BudgetSession):
    """Render income and spending for a chosen period."""
    st.title("📊 Reports")
    snapshot = session.snapshot
    today = date.today()

    col1, col2 = st.columns(2)
    start = col1.date_input("From", value=today.replace(day=1))
    end = col2.date_input("To", value=today)
    if end < start:
        st.error("The end date must not be before the start date")
        return

    comparison = aggregator.compare_periods(snapshot, start, end)
    current, previous = comparison.current, comparison.previous
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", money(session, current.income, "reports"), change_label(comparison.income_change))
    col2.metric(
        "Spending", money(session, current.expenses, "reports"),
        change_label(comparison.expense_change), delta_color="inverse",
    )
    col3.metric("Net", money(session, current.net, "reports"))
    st.caption(f"Compared with {previous.start:%d.%m.%Y} - {previous.end:%d.%m.%Y}")

    st.markdown("---")
    st.subheader("Spending by group")
    groups = aggregator.spending_by_group(snapshot, start, end)
    if not groups:
        st.info("No categorized spending in this period.")
    else:
        st.bar_chart([{"Group": g.name, "Spent": g.amount} for g in groups], x="Group", y="Spent")
        names = {c.id: c.name for c in snapshot.iter_categories()}
        chosen = st.selectbox("Group details", groups, format_func=lambda g: g.name)
        for category_id, amount in sorted(chosen.by_category.items(), key=lambda item: -item[1]):
            st.write(f"{names.get(category_id, category_id)}: {money(session, amount, 'reports')}")

    st.subheader("Spending by day")
    per_day = aggregator.spending_by_day(snapshot, start, end)
    if per_day:
        st.bar_chart([{"Day": day.isoformat(), "Spent": amount} for day, amount in per_day.items()], x="Day", y="Spent")

    st.subheader("Income vs spending")
    per_month = aggregator.income_vs_expenses(snapshot, start, end)
    st.line_chart(
        [{"Month": key, "Income": m.income, "Spending": m.expenses} for key, m in per_month.items()],
        x="Month",
        y=["Income", "Spending"],
    )

    st.markdown("---")
    year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year, step=1)
    st.subheader(f"Income goals in {year}")
    columns = st.columns(6)
    for index, month in enumerate(aggregator.yearly_goal_overview(snapshot, int(year))):
        text = "-" if month.percentage is None else f"{month.percentage:.0f}%"
        columns[index % 6].metric(month.month, text)


# =============================================================================
# BUDGET
# =============================================================================

def render_transaction_form(session: BudgetSession):
    snapshot = session.snapshot
    accounts = [a for a in snapshot.accounts if not a.is_archived]
    if not accounts:
        st.info("Add an account first.")
        return

    categories = {c.id: c.name for c in snapshot.iter_categories()}
    sources = {s.id: s.name for s in snapshot.income_sources}
    account_names = {a.id: a.name for a in accounts}

    with st.form("add_transaction", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            txn_type = st.selectbox("Type", [t.value for t in TransactionType])
            txn_date = st.date_input("Date", value=date.today())
            payee = st.text_input("Payee")
        with col2:
            account_id = st.selectbox("Account", list(account_names), format_func=account_names.get)
            transfer_to = st.selectbox(
                "To account (transfers)",
                [None, *account_names],
                format_func=lambda i: "—" if i is None else account_names[i],
            )
            category_id = st.selectbox(
                "Category (expenses)",
                [None, *categories],
                format_func=lambda i: "Uncategorized" if i is None else categories[i],
            )
            source_id = st.selectbox(
                "Income source (income)",
                [None, *sources],
                format_func=lambda i: "—" if i is None else sources[i],
            )
        with col3:
            currency = st.selectbox("Currency", [c.value for c in Currency])
            original_amount = st.number_input("Amount", min_value=0.0, step=10.0)
            manual_rate = st.number_input("Manual rate (optional)", min_value=0.0, step=0.01)
            memo = st.text_input("Memo")

        if st.form_submit_button("➕ Add transaction", type="primary"):
            if original_amount <= 0:
                st.error("Please enter an amount greater than zero")
                return
            if txn_type == "transfer" and (transfer_to is None or transfer_to == account_id):
                st.error("Please choose a different account to transfer to")
                return

            amount, rate, rate_source = to_base_amount(
                original_amount, currency, st.session_state.rates, manual_rate or None
            )
            session.store.add_transaction({
                "date": txn_date,
                "payee": payee,
                "type": txn_type,
                "amount": round(amount, 2),
                "account_id": account_id,
                "category_id": category_id if txn_type == "expense" else None,
                "income_source_id": source_id if txn_type == "income" else None,
                "transfer_to_account_id": transfer_to if txn_type == "transfer" else None,
                "memo": memo,
                "original_currency": currency,
                "original_amount": original_amount,
                "exchange_rate": rate,
                "rate_source": rate_source,
            })
            commit(session)
            st.rerun()


def render_edit_form(session: BudgetSession, txn: Transaction):
    """Edit one transaction; a changed amount is re-based to the base currency."""
    categories = {c.id: c.name for c in session.snapshot.iter_categories()}
    with st.form(f"edit-{txn.id}"):
        txn_date = st.date_input("Date", value=txn.date)
        payee = st.text_input("Payee", value=txn.payee)
        amount = st.number_input("Amount", min_value=0.0, value=float(txn.amount), step=10.0)
        memo = st.text_input("Memo", value=txn.memo)
        category_id = txn.category_id
        if txn.type == TransactionType.EXPENSE:
            options = [None, *categories]
            category_id = st.selectbox(
                "Category",
                options,
                index=options.index(txn.category_id) if txn.category_id in categories else 0,
                format_func=lambda i: "Uncategorized" if i is None else categories[i],
            )
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("💾 Save", type="primary")
        delete = col2.form_submit_button("🗑️ Delete")

    if delete:
        session.store.remove_transaction(txn.id)
        commit(session)
        st.rerun()
    if save:
        if amount <= 0:
            st.error("Please enter an amount greater than zero")
            return
        changes = {"date": txn_date, "payee": payee, "memo": memo, "category_id": category_id}
        if amount != txn.amount:
            changes.update({
                "amount": amount,
                "original_amount": amount,
                "original_currency": BASE_CURRENCY,
                "exchange_rate": 1.0,
                "rate_source": RateSource.MANUAL,
            })
        session.store.update_transaction(Transaction.model_validate({**txn.model_dump(), **changes}))
        commit(session)
        st.rerun()


def render_category_manager(session: BudgetSession):
    """Add, rename and remove category groups and their categories."""
    snapshot = session.snapshot
    goal_group = snapshot.investment_group
    groups = [g for g in snapshot.category_groups if goal_group is None or g.id != goal_group.id]

    with st.form("add_group", clear_on_submit=True):
        name = st.text_input("New group")
        if st.form_submit_button("➕ Add group") and name.strip():
            session.store.add_category_group(name)
            commit(session)
            st.rerun()

    for group in groups:
        st.markdown(f"**{group.name}**")
        col1, col2, col3 = st.columns([3, 1, 1])
        new_name = col1.text_input("Group name", value=group.name, key=f"group-name-{group.id}")
        if col2.button("Rename", key=f"rename-{group.id}") and new_name.strip():
            session.store.rename_category_group(group.id, new_name)
            commit(session)
            st.rerun()
        if col3.button("Remove group", key=f"remove-group-{group.id}"):
            session.store.remove_category_group(group.id)
            commit(session)
            st.rerun()

        for category in group.categories:
            col1, col2 = st.columns([4, 1])
            col1.write(category.name)
            if col2.button("Remove", key=f"remove-category-{category.id}"):
                session.store.remove_category(category.id)
                commit(session)
                st.rerun()

        with st.form(f"add-category-{group.id}", clear_on_submit=True):
            name = st.text_input("New category")
            if st.form_submit_button("➕ Add category") and name.strip():
                session.store.add_category(group.id, name)
                commit(session)
                st.rerun()

    st.caption("Removing a category or group leaves its transactions uncategorized.")


def render_budget_page(session: BudgetSession):
    """Render the monthly budget page."""
    st.title("📒 Budget")

    months = [month_key(date.today()), *last_month_keys(date.today(), 11)]
    month = st.selectbox("Month", months)
    snapshot = session.snapshot
    activity = aggregator.category_activity(snapshot, month)

    st.metric("Spent this month", money(session, -activity.total_activity, "reports"))
    for group in snapshot.category_groups:
        with st.expander(group.name, expanded=False):
            for category in group.categories:
                st.write(f"{category.name}: {money(session, activity.by_category[category.id], 'reports')}")
    if activity.unassigned_activity:
        st.caption(f"Uncategorized: {money(session, activity.unassigned_activity, 'reports')}")

    with st.expander("🗂️ Manage categories"):
        render_category_manager(session)

    st.markdown("---")
    st.subheader("Add a transaction")
    render_transaction_form(session)

    st.markdown("---")
    st.subheader("Transactions")
    txns = [t for t in snapshot.transactions if t.month_key == month]
    if not txns:
        st.info("No transactions this month yet.")
        return

    labels = {t.id: f"{t.date} · {t.payee or t.type.value} · {money(session, t.amount, txn=t)}" for t in txns}
    selected = st.multiselect("Select transactions", list(labels), format_func=labels.get)

    accounts = {a.id: a.name for a in snapshot.accounts if not a.is_archived}
    categories = {c.id: c.name for c in snapshot.iter_categories()}
    # Investment goals are not offered as a bulk target
    movable = {c.id: c.name for c in snapshot.iter_spending_categories()}
    col1, col2, col3 = st.columns(3)
    with col1:
        new_account = st.selectbox(
            "Move to account", [None, *accounts],
            format_func=lambda i: "—" if i is None else accounts[i],
        )
    with col2:
        new_category = st.selectbox(
            "Move to category", [None, *movable],
            format_func=lambda i: "—" if i is None else movable[i],
        )
    with col3:
        if st.button("✏️ Apply to selection") and selected:
            session.store.bulk_update_transactions(selected, new_account, new_category)
            commit(session)
            st.rerun()
        if st.button("🗑️ Delete selection") and selected:
            session.store.remove_transactions(selected)
            commit(session)
            st.rerun()

    with st.expander("✏️ Edit a transaction"):
        txn_id = st.selectbox("Transaction", list(labels), format_func=labels.get, key="edit_txn")
        render_edit_form(session, snapshot.find_transaction(txn_id))

    st.dataframe(
        [
            {
                "Date": t.date.isoformat(),
                "Payee": t.payee,
                "Type": t.type.value,
                "Amount": money(session, t.amount, txn=t),
                "Category": categories.get(t.category_id, ""),
                "Memo": t.memo,
            }
            for t in txns
        ],
        use_container_width=True,
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

def render_accounts_page(session: BudgetSession):
    """Render the accounts page."""
    st.title("🏦 Accounts")
    snapshot = session.snapshot

    show_archived = st.checkbox("Show archived accounts")
    for account in snapshot.accounts:
        if account.is_archived and not show_archived:
            continue
        col1, col2, col3 = st.columns([3, 2, 1])
        with col1:
            label = f"**{account.name}** ({account.type.value})"
            st.markdown(label + (" · archived" if account.is_archived else ""))
        with col2:
            st.write(money(session, account.balance))
        with col3:
            action = "Restore" if account.is_archived else "Archive"
            if st.button(action, key=f"archive-{account.id}"):
                session.store.set_account_archived(account.id, not account.is_archived)
                commit(session)
                st.rerun()

    st.markdown("---")
    st.subheader("Open an account")
    with st.form("add_account", clear_on_submit=True):
        name = st.text_input("Name")
        account_type = st.selectbox("Type", [t.value for t in AccountType])
        initial_balance = st.number_input("Starting balance", step=100.0)
        if st.form_submit_button("➕ Add account", type="primary"):
            if not name.strip():
                st.error("Please enter the account name")
            else:
                session.store.add_or_update_account(name, AccountType(account_type), None, initial_balance)
                commit(session)
                st.rerun()


# =============================================================================
# INCOME
# =============================================================================

def render_income_page(session: BudgetSession):
    """Render income sources and the monthly goal."""
    st.title("💵 Income")
    snapshot = session.snapshot
    month = month_key(date.today())

    progress = aggregator.month_goal_progress(snapshot, month)
    st.subheader(f"Goal for {month}")
    st.progress(progress.ratio, text=f"{progress.percentage:.0f}% · {progress.status.value}")
    col1, col2, col3 = st.columns(3)
    col1.metric("Received", money(session, progress.received, "reports"))
    col2.metric("Goal", money(session, progress.target, "reports"))
    col3.metric("Projection", money(session, progress.projection, "reports"))

    current_goal = snapshot.monthly_goals.get(month)
    with st.form("monthly_goal"):
        total = st.number_input(
            "Monthly income goal", min_value=0.0, step=1000.0,
            value=current_goal.total_goal if current_goal else 0.0,
        )
        motivation = st.text_input("Motivation", value=(current_goal.motivation or "") if current_goal else "")
        if st.form_submit_button("💾 Save goal"):
            session.store.set_monthly_goal(month, MonthlyGoal(
                total_goal=total,
                source_goals=current_goal.source_goals if current_goal else {},
                motivation=motivation or None,
            ))
            commit(session)
            st.rerun()

    st.markdown("---")
    st.subheader("Income sources")
    totals = aggregator.income_by_source(snapshot, month)
    for source in snapshot.income_sources:
        col1, col2, col3 = st.columns([3, 2, 1])
        col1.markdown(f"**{source.name}** ({source.category.value})")
        col2.write(
            f"{money(session, totals[source.id].month_total, 'reports')} "
            f"of {money(session, source.expected_amount, 'reports')}"
        )
        if col3.button("Remove", key=f"source-{source.id}"):
            session.store.remove_income_source(source.id)
            commit(session)
            st.rerun()

    with st.form("add_source", clear_on_submit=True):
        name = st.text_input("Source name")
        category = st.selectbox("Kind", [c.value for c in IncomeCategory])
        expected = st.number_input("Expected per month", min_value=0.0, step=1000.0)
        recurring = st.checkbox("Recurring")
        if st.form_submit_button("➕ Add source", type="primary"):
            if not name.strip():
                st.error("Please enter the source name")
            else:
                session.store.add_or_update_income_source(
                    name, IncomeCategory(category), expected, is_recurring=recurring
                )
                commit(session)
                st.rerun()


# =============================================================================
# INVESTMENTS
# =============================================================================

def render_investments_page(session: BudgetSession):
    """Render investment goals, platforms and the monthly streak."""
    st.title("📈 Investments")
    snapshot = session.snapshot
    summary = aggregator.investment_summary(snapshot)

    col1, col2, col3 = st.columns(3)
    col1.metric("Contributed", money(session, summary.total_contributed, "investments"))
    col2.metric("Current value", money(session, summary.total_current_value, "investments"))
    col3.metric("Gain / loss", money(session, summary.gain_loss, "investments"))

    target = snapshot.monthly_investment_target
    streak = aggregator.investment_streak(aggregator.monthly_investments(snapshot), target)
    st.markdown(f"🔥 Investment streak: **{streak}** month(s)")
    new_target = st.number_input("Monthly investment target", min_value=0.0, value=target, step=500.0)
    if new_target != target and st.button("💾 Save target"):
        session.store.set_monthly_investment_target(new_target)
        commit(session)
        st.rerun()

    st.markdown("---")
    st.subheader("Goals")
    group = snapshot.investment_group
    for goal in (group.categories if group else ()):
        saved = summary.contributed_by_goal.get(goal.id, 0.0)
        goal_target = goal.goal_target or 0.0
        ratio = min(saved / goal_target, 1.0) if goal_target else 0.0
        col1, col2 = st.columns([5, 1])
        col1.progress(ratio, text=f"{goal.name}: {money(session, saved, 'investments')} of {money(session, goal_target, 'investments')}")
        if col2.button("Remove", key=f"goal-{goal.id}"):
            session.store.remove_investment_goal(goal.id)
            commit(session)
            st.rerun()

    with st.form("add_goal", clear_on_submit=True):
        name = st.text_input("Goal name")
        target_amount = st.number_input("Target", min_value=0.0, step=1000.0)
        if st.form_submit_button("➕ Add goal") and name.strip():
            session.store.add_or_update_investment_goal(name, target_amount)
            commit(session)
            st.rerun()

    st.markdown("---")
    st.subheader("Platforms")
    for platform in summary.platforms:
        col1, col2, col3, col4 = st.columns([3, 2, 2, 1])
        col1.markdown(f"**{platform.name}**")
        col2.write(f"{money(session, platform.current_value, 'investments')} ({money(session, platform.gain_loss, 'investments')})")
        value = col3.number_input("Value", min_value=0.0, value=platform.current_value, key=f"value-{platform.platform_id}")
        if value != platform.current_value:
            session.store.update_platform_value(platform.platform_id, value)
            commit(session)
            st.rerun()
        if col4.button("Remove", key=f"platform-{platform.platform_id}"):
            session.store.remove_platform(platform.platform_id)
            commit(session)
            st.rerun()

    with st.form("add_platform", clear_on_submit=True):
        name = st.text_input("Platform name")
        category = st.selectbox("Kind", [c.value for c in PlatformCategory])
        if st.form_submit_button("➕ Add platform") and name.strip():
            session.store.add_or_update_platform(name, PlatformCategory(category))
            commit(session)
            st.rerun()


# =============================================================================
# ACHIEVEMENTS
# =============================================================================

def render_achievements_page(session: BudgetSession):
    """Render achievements, completed first."""
    st.title("🏆 Achievements")

    icons = {
        AchievementStatus.COMPLETED: "✅",
        AchievementStatus.IN_PROGRESS: "⏳",
        AchievementStatus.LOCKED: "🔒",
    }
    for item in session.achievements():
        definition = item.definition
        line = f"{icons[item.status]} **{definition.name}** · {definition.rarity.value}"
        if item.count:
            line += f" · ×{item.count}"
        st.markdown(line)
        st.caption(definition.description)
        if item.status != AchievementStatus.COMPLETED:
            st.progress(item.progress)


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(session: BudgetSession):
    """Render currency settings, backup and connection status."""
    st.title("⚙️ Settings")
    snapshot = session.snapshot
    current = snapshot.currency_settings
    codes = [c.value for c in Currency]

    st.markdown("### Budget")
    name = st.text_input("Budget name", value=snapshot.app_name)
    if name != snapshot.app_name and st.button("💾 Rename"):
        session.store.set_app_name(name)
        commit(session)
        st.rerun()

    st.markdown("### Currencies")
    with st.form("currency_settings"):
        default = st.selectbox("Transactions and accounts", codes, index=codes.index(current.default_currency.value))
        reports = st.selectbox("Reports", codes, index=codes.index(current.reports.value))
        investments = st.selectbox("Investments", codes, index=codes.index(current.investments.value))
        whole = st.checkbox("Round to whole numbers", value=current.round_to_whole_numbers)
        original = st.checkbox("Show original currency", value=current.show_original_currency)
        if st.form_submit_button("💾 Save currency settings"):
            session.store.update_currency_settings(CurrencySettings(
                default_currency=default,
                reports=reports,
                investments=investments,
                round_to_whole_numbers=whole,
                show_original_currency=original,
            ))
            commit(session)
            st.rerun()
    if st.button("🔄 Refresh exchange rates"):
        st.session_state.rates = session.rates(force_refresh=True)
        st.rerun()

    st.markdown("### Backup")
    st.download_button(
        "⬇️ Export budget",
        data=session.export_json(),
        file_name=export_filename(),
        mime="application/json",
    )
    uploaded = st.file_uploader("Import a backup", type=["json"])
    if uploaded is not None:
        st.warning("Importing replaces all current data.")
        if st.button("⬆️ Import", type="primary"):
            result = session.import_json(uploaded.getvalue())
            if result.is_valid:
                commit(session)
                st.success("Backup imported.")
            st.text(session.validator.get_user_friendly_summary(result))

    st.markdown("### Connection Status")
    results = validate_all_settings()
    for name in ("storage", "google_sheets", "exchange_rates", "app"):
        if results.get(name):
            st.success(f"✅ {name} - Configured")
        else:
            st.error(f"❌ {name} - {results.get(f'{name}_error', 'not configured')}")


if __name__ == "__main__":
    main()
