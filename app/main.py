"""
Streamlit Frontend for Pension Ledger

This is the screen retirees and pensioners use day to day.

DESIGN PRINCIPLES:
1. Simple, clear interface with large numbers
2. Clear error messages in simple language
3. Visual feedback for every save (including local-only saves)
4. No hidden actions

The ledger store lives in the Streamlit session and is loaded once.
Every widget action goes through the store API; balances are
recomputed from the store on every rerun.
"""

import asyncio
from datetime import date

import streamlit as st

from pension_ledger.audit import create_correlation_id
from pension_ledger.config import get_settings, validate_all_settings
from pension_ledger.formatting import (
    advice_box_html,
    format_currency,
    format_date,
    format_signed,
)
from pension_ledger.ledger import LedgerStore, NotFoundError
from pension_ledger.models.entry import EntryKind
from pension_ledger.orchestrator import AdviceFlow, create_app_components
from pension_ledger.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="Controle INSS",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .advice-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #4f46e5;
        margin: 10px 0;
        font-style: italic;
    }
    .balance-box {
        padding: 20px;
        background-color: #4f46e5;
        color: white;
        border-radius: 10px;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
    }
    .negative {
        color: #e11d48;
    }
</style>
""", unsafe_allow_html=True)


KIND_LABELS = {
    EntryKind.INCOME: "Entrada (+)",
    EntryKind.EXPENSE: "Saída (-)",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> tuple[LedgerStore, AdviceFlow]:
    """Get or create this session's store (loaded once per session)."""
    if "ledger_store" not in st.session_state:
        store, advice_flow = create_app_components(use_storage=True)
        run_async(store.load_initial())
        st.session_state.ledger_store = store
        st.session_state.advice_flow = advice_flow
    return st.session_state.ledger_store, st.session_state.advice_flow


def show_notices(store: LedgerStore):
    """Non-blocking warnings about sync problems."""
    for notice in store.drain_notices():
        st.warning(f"☁️ {notice}")


def show_validation_error(error: ValidationError):
    for issue in error.issues:
        st.error(f"❌ {issue.message}")


def show_validation_warnings(store: LedgerStore):
    for issue in store.last_warnings:
        st.warning(f"⚠️ {issue.message}")


def main():
    """Main application entry point."""
    store, advice_flow = get_components()

    st.sidebar.title("💰 Controle INSS")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navegar para:",
        ["📒 Extrato", "⚙️ Configurações"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Como usar:**
        1. Informe o saldo inicial
        2. Registre entradas e saídas
        3. Acompanhe o saldo parcial no extrato
        """
    )

    if page == "📒 Extrato":
        render_ledger_page(store, advice_flow)
    elif page == "⚙️ Configurações":
        render_settings_page(store)


def render_ledger_page(store: LedgerStore, advice_flow: AdviceFlow):
    """Render the statement page."""
    currency = get_settings().app.currency_symbol

    st.title("📒 Controle INSS")

    starting = st.number_input(
        f"Saldo Inicial ({currency})",
        value=float(store.starting_balance),
        step=0.01,
        format="%.2f",
    )
    if abs(starting - float(store.starting_balance)) >= 0.005:
        try:
            run_async(store.set_starting_balance(
                str(starting),
                correlation_id=create_correlation_id(),
            ))
            st.rerun()
        except ValidationError as e:
            show_validation_error(e)

    show_notices(store)

    left, right = st.columns([1, 2])

    with left:
        render_summary(store, currency)
        render_new_entry_form(store, currency)
        render_advice_card(store, advice_flow)

    with right:
        render_statement(store, currency)


def render_summary(store: LedgerStore, currency: str):
    summary = store.summary()

    st.metric("Entradas Totais", format_currency(summary.total_income, currency))
    st.metric("Saídas Totais", format_currency(summary.total_expenses, currency))

    css_class = "big-number negative" if summary.final_balance < 0 else "big-number"
    st.markdown(f"""
    <div class="balance-box">
        <div>SALDO FINAL DISPONÍVEL</div>
        <div class="{css_class}">{format_currency(summary.final_balance, currency)}</div>
    </div>
    """, unsafe_allow_html=True)


def render_new_entry_form(store: LedgerStore, currency: str):
    st.subheader("Novo Lançamento")

    with st.form("new_entry", clear_on_submit=True):
        entry_date = st.date_input("Data", value=date.today(), format="DD/MM/YYYY")
        description = st.text_input("Descrição", placeholder="Ex: Auxílio Doença")
        amount = st.number_input(
            f"Valor ({currency})",
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        kind = st.selectbox(
            "Tipo",
            options=list(EntryKind),
            format_func=lambda k: KIND_LABELS[k],
        )
        submitted = st.form_submit_button("Confirmar Registro", type="primary")

    if submitted:
        try:
            run_async(store.add_entry(
                description=description,
                amount=str(amount),
                entry_date=entry_date,
                kind=kind,
                correlation_id=create_correlation_id(),
            ))
            show_validation_warnings(store)
            st.success("✅ Lançamento registrado")
            show_notices(store)
        except ValidationError as e:
            show_validation_error(e)


def render_advice_card(store: LedgerStore, advice_flow: AdviceFlow):
    st.subheader("🤖 IA Financeira")

    latest = advice_flow.latest
    text = latest.text if latest else (
        "Analise seus lançamentos para obter dicas personalizadas de economia."
    )
    st.markdown(
        advice_box_html(text),
        unsafe_allow_html=True,
    )

    if st.button("Gerar Insights", disabled=not store.entries):
        with st.spinner("Analisando..."):
            run_async(advice_flow.request_advice())
        st.rerun()


def render_statement(store: LedgerStore, currency: str):
    view = store.view()

    st.subheader("Extrato de Movimentações")
    st.caption(f"{len(view)} registros")

    if not view:
        st.info("Nenhum lançamento registrado até o momento.")
        return

    header = st.columns([2, 4, 3, 3, 1, 1])
    for col, label in zip(header, ["Data", "Descrição", "Valor", "Saldo Parcial", "", ""]):
        col.markdown(f"**{label}**")

    for entry in view:
        cols = st.columns([2, 4, 3, 3, 1, 1])
        cols[0].write(format_date(entry.date))
        cols[1].write(entry.description)
        income = entry.kind is EntryKind.INCOME
        color = "green" if income else "red"
        cols[2].markdown(f":{color}[{format_signed(entry.amount, income, currency)}]")
        cols[3].write(format_currency(entry.running_balance, currency))

        if cols[4].button("✏️", key=f"edit_{entry.id}", help="Editar Registro"):
            st.session_state.editing_id = entry.id
            st.rerun()

        if cols[5].button("🗑️", key=f"delete_{entry.id}", help="Remover Registro"):
            run_async(store.remove_entry(
                entry.id,
                correlation_id=create_correlation_id(),
            ))
            if st.session_state.get("editing_id") == entry.id:
                st.session_state.editing_id = None
            st.rerun()

    editing_id = st.session_state.get("editing_id")
    if editing_id:
        render_edit_form(store, editing_id, currency)

    summary = store.summary()
    st.markdown("---")
    st.markdown(f"### Saldo Líquido: {format_currency(summary.final_balance, currency)}")
    if store.remote_enabled:
        st.caption("* Os dados são sincronizados com a nuvem e salvos neste dispositivo.")
    else:
        st.caption("* Todos os dados são salvos localmente neste dispositivo.")


def render_edit_form(store: LedgerStore, entry_id: str, currency: str):
    try:
        entry = store.get_entry(entry_id)
    except NotFoundError:
        st.session_state.editing_id = None
        return

    st.markdown("---")
    st.subheader("✏️ Editar Lançamento")

    with st.form(f"edit_{entry_id}"):
        entry_date = st.date_input("Data", value=entry.date, format="DD/MM/YYYY")
        description = st.text_input("Descrição", value=entry.description)
        amount = st.number_input(
            f"Valor ({currency})",
            value=float(entry.amount),
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        kind = st.selectbox(
            "Tipo",
            options=list(EntryKind),
            index=list(EntryKind).index(entry.kind),
            format_func=lambda k: KIND_LABELS[k],
        )
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("Salvar", type="primary")
        cancel = col2.form_submit_button("Cancelar")

    if cancel:
        st.session_state.editing_id = None
        st.rerun()

    if save:
        try:
            run_async(store.update_entry(
                entry_id,
                {
                    "date": entry_date,
                    "description": description,
                    "amount": str(amount),
                    "kind": kind,
                },
                correlation_id=create_correlation_id(),
            ))
            st.session_state.editing_id = None
            show_validation_warnings(store)
            st.rerun()
        except NotFoundError:
            st.session_state.editing_id = None
            st.error("Este lançamento não existe mais.")
        except ValidationError as e:
            show_validation_error(e)


def render_settings_page(store: LedgerStore):
    """Render the settings page."""
    st.title("⚙️ Configurações")

    st.markdown("### Status das Conexões")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Nuvem)", "google_sheets"),
        ("Gemini (IA)", "gemini"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configurado")
        else:
            error = status.get(f"{key}_error", "Não configurado")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Armazenamento")
    st.markdown(f"**Dados carregados de:** {store.loaded_from or 'desconhecido'}")
    st.markdown(f"**Arquivo local:** `{get_settings().app.snapshot_path}`")
    if store.last_sync is not None:
        st.markdown(
            f"**Última gravação:** {'sincronizada' if store.last_sync.synced else 'apenas local'}"
        )

    st.markdown("---")
    st.markdown("### Configuração")
    st.markdown(
        "Para configurar o aplicativo, crie um arquivo `.env` com suas chaves. "
        "Veja `.env.example` para as variáveis disponíveis."
    )


if __name__ == "__main__":
    main()
