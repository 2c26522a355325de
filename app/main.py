"""
Streamlit Frontend for Finance Tracker

A thin consumer of the TransactionRepository: it renders repository state
and forwards user actions. All rules (filtering, balances, persistence)
live in the finance_tracker package.

DESIGN PRINCIPLES:
1. Failing to load data is blocking: only the error is shown
2. Failing to save is not blocking: a message is shown, the data stays
3. Deletes ask for confirmation
4. Retry is always "do the same thing again"
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from finance_tracker.audit import configure_logging
from finance_tracker.config import get_settings, validate_all_settings
from finance_tracker.constants import (
    DATE_DISPLAY_FORMAT,
    FILTER_PERIOD_LABELS,
    PAYMENT_METHOD_OPTIONS,
    TRANSACTION_TYPE_LABELS,
)
from finance_tracker.models import (
    Currency,
    FilterPeriod,
    PaymentMethod,
    Transaction,
    TransactionType,
)
from finance_tracker.queries import to_foreign, to_local
from finance_tracker.repository import TransactionRepository, create_repository


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💵",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


METHOD_LABELS = {option.id: option.label for option in PAYMENT_METHOD_OPTIONS}
CURRENCY_SYMBOLS = {Currency.BS: "Bs.", Currency.USD: "$"}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_repository() -> TransactionRepository:
    """Create the repository once per server process (cached)."""
    configure_logging(get_settings().app.log_level)
    return create_repository()


def format_money(amount: Decimal, currency: Currency) -> str:
    return f"{CURRENCY_SYMBOLS[currency]} {amount:,.2f}"


def show_result(result, success_message: str) -> bool:
    """Show the outcome of a repository operation."""
    if result.success:
        st.success(success_message)
        for warning in result.warnings:
            st.warning(warning)
        return True
    st.error(result.error_message)
    return False


def main():
    """Main application entry point."""
    repo = get_repository()

    if not repo.is_loaded:
        with st.spinner("Cargando datos..."):
            run_async(repo.load())

    if not repo.is_loaded:
        # Initial load failure blocks everything else
        st.markdown(f"""
        <div class="error-box">
            <h4>❌ No se pudieron cargar los datos</h4>
            <p>{repo.error}</p>
        </div>
        """, unsafe_allow_html=True)
        if st.button("🔄 Reintentar"):
            st.rerun()
        st.stop()

    st.sidebar.title("💵 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Ir a:",
        ["📊 Resumen", "➕ Nueva transacción", "💱 Tasa de cambio", "⚙️ Configuración"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_filter_sidebar(repo)

    if page == "📊 Resumen":
        render_dashboard_page(repo)
    elif page == "➕ Nueva transacción":
        render_add_page(repo)
    elif page == "💱 Tasa de cambio":
        render_exchange_rate_page(repo)
    elif page == "⚙️ Configuración":
        render_settings_page()


def render_filter_sidebar(repo: TransactionRepository):
    """Period filter controls."""
    periods = list(FilterPeriod)
    period = st.sidebar.selectbox(
        "Período",
        options=periods,
        index=periods.index(repo.filter_period),
        format_func=lambda p: FILTER_PERIOD_LABELS[p],
    )
    repo.set_filter_period(period)

    if period == FilterPeriod.CUSTOM:
        current = repo.custom_date_range
        start = st.sidebar.date_input("Desde", value=current.start_date)
        end = st.sidebar.date_input("Hasta", value=current.end_date)
        repo.set_custom_date_range(start, end)
        if start and end and start > end:
            st.sidebar.warning("La fecha inicial es posterior a la final.")


def render_summary(repo: TransactionRepository):
    summary = repo.financial_summary

    st.markdown("### Bolívares")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Ingresos del período", format_money(summary.bs.period_income, Currency.BS))
    col2.metric("Efectivo", format_money(summary.bs.cash_balance, Currency.BS))
    col3.metric("Banco", format_money(summary.bs.bank_balance, Currency.BS))
    col4.metric("Total", format_money(summary.bs.total_balance, Currency.BS))

    st.markdown("### Dólares")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Ingresos del período", format_money(summary.usd.period_income, Currency.USD))
    col2.metric("Efectivo", format_money(summary.usd.cash_balance, Currency.USD))
    col3.metric("USDT", format_money(summary.usd.usdt_balance, Currency.USD))
    col4.metric("Total", format_money(summary.usd.total_balance, Currency.USD))

    st.caption(
        f"Total en Bs. equivale a {format_money(repo.local_total_in_foreign, Currency.USD)} "
        f"a la tasa de {repo.exchange_rate} Bs./USD"
    )

    with st.expander("📈 Totales del período"):
        for currency, totals in repo.period_totals.items():
            st.markdown(
                f"**{currency.value}:** ingresos {format_money(totals.income, currency)}, "
                f"gastos {format_money(totals.expenses, currency)}, "
                f"neto {format_money(totals.net, currency)}"
            )


def render_transaction_row(repo: TransactionRepository, transaction: Transaction):
    option = repo.get_payment_method_details(transaction.payment_method)
    currency = option.currency if option else Currency.BS
    label = option.label if option else transaction.payment_method.value

    col1, col2, col3, col4, col5 = st.columns([2, 4, 2, 1, 1])
    col1.write(transaction.date.strftime(DATE_DISPLAY_FORMAT))
    col2.write(transaction.description or "(sin descripción)")
    col3.write(f"{format_money(transaction.amount, currency)} · {label}")

    if col4.button("✏️", key=f"edit-{transaction.id}"):
        st.session_state.editing_id = transaction.id
        st.rerun()
    if col5.button("🗑️", key=f"delete-{transaction.id}"):
        st.session_state.deleting_id = transaction.id
        st.rerun()

    if st.session_state.get("deleting_id") == transaction.id:
        st.warning("¿Eliminar esta transacción?")
        confirm, cancel = st.columns(2)
        if confirm.button("✅ Sí, eliminar", key=f"confirm-delete-{transaction.id}"):
            result = run_async(repo.delete(transaction.id))
            st.session_state.deleting_id = None
            if show_result(result, "Transacción eliminada"):
                st.rerun()
        if cancel.button("❌ Cancelar", key=f"cancel-delete-{transaction.id}"):
            st.session_state.deleting_id = None
            st.rerun()

    if st.session_state.get("editing_id") == transaction.id:
        render_transaction_form(repo, existing=transaction)


def render_dashboard_page(repo: TransactionRepository):
    st.title("📊 Resumen")

    if repo.error:
        st.error(repo.error)
        if st.button("Cerrar mensaje"):
            repo.clear_error()
            st.rerun()

    render_summary(repo)
    st.markdown("---")

    left, right = st.columns(2)
    with left:
        st.subheader("Ingresos y ajustes")
        inflows = repo.income_and_adjustments
        if not inflows:
            st.info("No hay ingresos en este período.")
        for transaction in inflows:
            render_transaction_row(repo, transaction)

    with right:
        st.subheader("Gastos")
        expenses = repo.expenses
        if not expenses:
            st.info("No hay gastos en este período.")
        for transaction in expenses:
            render_transaction_row(repo, transaction)


def render_transaction_form(repo: TransactionRepository, existing: Transaction = None):
    """Add form, or edit form when an existing transaction is given."""
    form_key = f"form-{existing.id}" if existing else "form-new"
    types = list(TransactionType)
    methods = list(PaymentMethod)

    with st.form(form_key, clear_on_submit=existing is None):
        description = st.text_input(
            "Descripción",
            value=existing.description if existing else "",
        )
        col1, col2 = st.columns(2)
        with col1:
            amount = st.number_input(
                "Monto *",
                value=float(existing.amount) if existing else 0.0,
                min_value=0.0,
                step=0.01,
                format="%.2f",
            )
            transaction_type = st.selectbox(
                "Tipo *",
                options=types,
                index=types.index(existing.type) if existing else 0,
                format_func=lambda t: TRANSACTION_TYPE_LABELS[t],
            )
        with col2:
            payment_method = st.selectbox(
                "Método de pago *",
                options=methods,
                index=methods.index(existing.payment_method) if existing else 0,
                format_func=lambda m: METHOD_LABELS.get(m, m.value),
            )
            transaction_date = st.date_input(
                "Fecha *",
                value=existing.date if existing else date.today(),
            )
        quantity = st.number_input(
            "Cantidad",
            value=existing.quantity if existing else 1,
            min_value=1,
            step=1,
        )

        submitted = st.form_submit_button("💾 Guardar", type="primary")

    if existing and st.button("Cancelar edición", key=f"cancel-edit-{existing.id}"):
        st.session_state.editing_id = None
        st.rerun()

    if not submitted:
        return

    payload = {
        "description": description,
        "amount": Decimal(str(amount)),
        "type": transaction_type,
        "payment_method": payment_method,
        "date": transaction_date,
        "quantity": int(quantity),
    }

    if existing:
        updated = existing.model_copy(update=payload)
        result = run_async(repo.update(updated))
        if show_result(result, "Transacción actualizada"):
            st.session_state.editing_id = None
            st.rerun()
    else:
        result = run_async(repo.add(payload))
        show_result(result, "Transacción guardada")


def render_add_page(repo: TransactionRepository):
    st.title("➕ Nueva transacción")
    render_transaction_form(repo)


def render_exchange_rate_page(repo: TransactionRepository):
    st.title("💱 Tasa de cambio")
    st.markdown(f"**Tasa actual:** {repo.exchange_rate} Bs. por USD")

    new_rate = st.number_input(
        "Nueva tasa (Bs. por USD)",
        value=float(repo.exchange_rate),
        min_value=0.0001,
        step=0.01,
        format="%.4f",
    )
    if st.button("💾 Guardar tasa", type="primary"):
        result = run_async(repo.set_exchange_rate(str(new_rate)))
        show_result(result, "Tasa actualizada")

    st.markdown("---")
    st.subheader("Conversor")
    col1, col2 = st.columns(2)
    with col1:
        bs_amount = st.number_input("Monto en Bs.", min_value=0.0, step=0.01, format="%.2f")
        st.write(format_money(to_foreign(Decimal(str(bs_amount)), repo.exchange_rate), Currency.USD))
    with col2:
        usd_amount = st.number_input("Monto en USD", min_value=0.0, step=0.01, format="%.2f")
        st.write(format_money(to_local(Decimal(str(usd_amount)), repo.exchange_rate), Currency.BS))


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Configuración")

    st.markdown("### Estado")

    status = validate_all_settings()
    app = get_settings().app

    st.markdown(f"**Almacenamiento:** `{app.storage_backend}`")

    for name, key in [("Aplicación", "app"), ("Google Sheets", "google_sheets")]:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuración")
    st.markdown(
        "Create a `.env` file to configure the application. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
