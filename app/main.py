"""
Streamlit Frontend for Agency Books

This is the interface the agency owner uses every day.

DESIGN PRINCIPLES:
1. Recording an operation takes a few clicks
2. Numbers on the dashboard always come from the full history
3. The AI analysis never blocks or interrupts recording
4. Clear messages in simple French

The UI is only a caller of the core:
- Forms build Transaction values
- BookkeepingFlow stores them and refreshes the analysis
- Notifications are shown as toasts
"""

from decimal import Decimal

import streamlit as st

from agency_books.background import BackgroundLoop, NotificationQueue
from agency_books.config import get_settings, validate_all_settings
from agency_books.models import (
    EXPENSE_CATEGORIES,
    SERVICES,
    RefreshState,
    Severity,
    Transaction,
    TransactionKind,
)
from agency_books.orchestrator import BookkeepingFlow, create_app_components
from agency_books.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Agency Books",
    page_icon="👁️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    [data-testid="stMetricValue"] {
        font-size: 1.6rem;
    }
</style>
""", unsafe_allow_html=True)


TOAST_ICONS = {
    Severity.SUCCESS: "✅",
    Severity.ERROR: "❌",
    Severity.INFO: "✨",
}

KIND_LABELS = {
    TransactionKind.INCOME: "Revenu",
    TransactionKind.EXPENSE: "Dépense",
}


def show_notifications(notices: NotificationQueue) -> None:
    """Streamlit toasts dismiss themselves."""
    for message, severity in notices.drain():
        st.toast(message, icon=TOAST_ICONS[severity])


def format_money(value: Decimal) -> str:
    currency = get_settings().app.currency_label
    return f"{value:,.0f} {currency}".replace(",", " ")


@st.cache_resource
def get_runtime() -> tuple[BookkeepingFlow, BackgroundLoop, NotificationQueue]:
    """
    Get or create application components (cached).

    The initial analysis load is handed to the background loop so the
    first page renders without waiting for Gemini.
    """
    notices = NotificationQueue()
    flow = create_app_components(notifier=notices)
    runner = BackgroundLoop()
    runner.submit(flow.controller.initial_load(flow.load()))
    return flow, runner, notices


def is_busy(flow: BookkeepingFlow, runner: BackgroundLoop) -> bool:
    return runner.pending > 0 or flow.controller.state == RefreshState.REFRESHING


@st.fragment(run_every="2s")
def render_live_status(flow: BookkeepingFlow, runner: BackgroundLoop, notices: NotificationQueue):
    """Polls background work: shows queued toasts and the refresh status."""
    show_notifications(notices)
    if is_busy(flow, runner):
        st.caption("✨ Analyse IA en cours...")


def main():
    """Main application entry point."""
    flow, runner, notices = get_runtime()
    agency = get_settings().app.agency_name

    # Sidebar navigation
    st.sidebar.title(f"👁️ {agency.upper()} Books")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Menu Principal",
        ["➕ Nouvelle Opération", "📊 Tableau de Bord", "🕘 Historique", "⚙️ Paramètres"],
        index=0,
    )

    with st.sidebar:
        render_live_status(flow, runner, notices)

    if page == "➕ Nouvelle Opération":
        render_new_transaction_page(flow, runner)
    elif page == "📊 Tableau de Bord":
        render_dashboard_page(flow, runner)
    elif page == "🕘 Historique":
        render_history_page(flow, runner)
    elif page == "⚙️ Paramètres":
        render_settings_page(flow)

    show_notifications(notices)


def render_new_transaction_page(flow: BookkeepingFlow, runner: BackgroundLoop):
    """Render the entry form."""
    st.title("Paiement")
    st.markdown("Enregistrez une nouvelle transaction pour l'agence.")

    kind = st.radio(
        "Type d'opération",
        options=list(TransactionKind),
        format_func=lambda k: KIND_LABELS[k],
        horizontal=True,
    )

    client_name = None
    if kind == TransactionKind.INCOME:
        service = st.selectbox(
            "Service",
            options=list(SERVICES),
            format_func=lambda s: f"{s.name} ({format_money(s.price)})",
        )
        category = service.name
        default_amount = float(service.price)
        client_name = st.text_input("Nom du client", placeholder="Ex: Boutique Amina")
    else:
        expense = st.selectbox(
            "Catégorie",
            options=list(EXPENSE_CATEGORIES),
            format_func=lambda c: c.name,
        )
        category = expense.name
        default_amount = 0.0

    amount = st.number_input(
        f"Montant ({get_settings().app.currency_label})",
        min_value=0.0,
        value=default_amount,
        step=1000.0,
        format="%.0f",
    )
    description = st.text_input(
        "Détails (optionnel)",
        placeholder="Laissez vide pour une description automatique",
    )

    if st.button("✅ Enregistrer", type="primary"):
        if amount <= 0:
            st.error("Veuillez saisir un montant valide.")
            return

        transaction = Transaction.create(
            kind=kind,
            amount=Decimal(str(amount)),
            category=category,
            client_name=client_name,
            description=description,
        )
        try:
            updated = flow.store_transaction(transaction)
        except StorageError as e:
            st.error(f"Échec de l'enregistrement : {e}")
            return

        runner.submit(flow.controller.on_transaction_added(updated))


def render_dashboard_page(flow: BookkeepingFlow, runner: BackgroundLoop):
    """Render totals, charts and the AI analysis."""
    st.title("Tableau de Bord")
    st.markdown("Vue d'ensemble de la santé financière.")

    view = flow.dashboard()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Solde", format_money(view.totals.balance))
    col2.metric("Revenus", format_money(view.totals.income))
    col3.metric("Dépenses", format_money(view.totals.expense))
    col4.metric("Opérations", view.totals.count)

    st.markdown("---")
    chart_col, pie_col = st.columns([3, 2])

    with chart_col:
        st.subheader("Évolution mensuelle")
        if view.has_trend:
            st.area_chart(
                [
                    {
                        "Mois": p.label,
                        "Revenus": float(p.income),
                        "Dépenses": float(p.expense),
                    }
                    for p in view.monthly
                ],
                x="Mois",
                y=["Revenus", "Dépenses"],
            )
        else:
            st.info("Pas assez de données pour afficher la tendance.")

    with pie_col:
        st.subheader("Dépenses par catégorie")
        if view.categories:
            st.bar_chart(
                [{"Catégorie": c.name, "Montant": float(c.value)} for c in view.categories],
                x="Catégorie",
                y="Montant",
            )
        else:
            st.info("Aucune dépense enregistrée.")

    render_analysis_panel(flow, runner)

    st.markdown("---")
    st.subheader("Opérations Récentes")
    render_transaction_rows(flow, runner, view.recent, allow_delete=False)


@st.fragment(run_every="2s")
def render_analysis_panel(flow: BookkeepingFlow, runner: BackgroundLoop):
    """AI analysis with a manual refresh button, re-read every few seconds."""
    st.markdown("---")
    header, button_col = st.columns([4, 1])
    header.subheader("✨ Analyse IA")

    controller = flow.controller

    with button_col:
        if st.button(
            "🔄 Actualiser",
            disabled=is_busy(flow, runner) or not flow.transactions,
        ):
            runner.submit(flow.refresh_analysis())

    if is_busy(flow, runner):
        st.caption("Analyse en cours...")

    if controller.summary:
        if controller.is_stale:
            st.caption("Cette analyse date d'avant les dernières opérations.")
        st.info(controller.summary)
    else:
        st.caption("Ajoutez des opérations pour obtenir une analyse.")

    outcome = controller.last_outcome
    if get_settings().app.debug_mode and outcome is not None:
        with st.expander("Debug: dernier appel IA"):
            st.json(outcome.model_dump(mode="json"))


def render_transaction_rows(
    flow: BookkeepingFlow,
    runner: BackgroundLoop,
    transactions,
    allow_delete: bool,
):
    if not transactions:
        st.info("Aucune opération pour le moment.")
        return

    zone = get_settings().app.zone
    for t in transactions:
        cols = st.columns([1, 3, 2, 2, 1] if allow_delete else [1, 3, 2, 2])
        sign = "+" if t.is_income else "−"
        cols[0].markdown("🟢" if t.is_income else "🔴")
        cols[1].markdown(f"**{t.description}**  \n{t.category}")
        cols[2].markdown(t.occurred_at.astimezone(zone).strftime("%d/%m/%Y"))
        cols[3].markdown(f"**{sign} {format_money(t.amount)}**")
        if allow_delete and cols[4].button("🗑️", key=f"delete-{t.id}"):
            if flow.discard_transaction(t.id):
                runner.submit(flow.controller.on_transaction_deleted(flow.transactions))
            st.rerun()


def render_history_page(flow: BookkeepingFlow, runner: BackgroundLoop):
    """Render the searchable history."""
    st.title("Historique")
    st.markdown("Toutes les transactions passées.")

    term = st.text_input("🔍 Rechercher une transaction...", value="")
    render_transaction_rows(flow, runner, flow.search(term), allow_delete=True)


def render_settings_page(flow: BookkeepingFlow):
    """Render the settings page."""
    st.title("⚙️ Paramètres")

    st.markdown("### Connection Status")
    status = validate_all_settings()

    services = [
        ("Gemini (Analyse IA)", "gemini"),
        ("Stockage local", "storage"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Non configuré")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Données")
    confirm = st.checkbox("Je comprends que toutes les opérations seront supprimées.")
    if st.button("🗑️ Tout effacer", disabled=not confirm):
        removed = flow.clear_all()
        st.success(f"{removed} opération(s) supprimée(s). L'analyse IA a été réinitialisée.")


if __name__ == "__main__":
    main()
