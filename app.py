"""
Keyword Cluster Processor

A Streamlit app that turns keyword research exports into page clusters:
- Groups keywords by page and page type with aggregate metrics
- Inline cluster editing and deletion
- JSON / CSV / TSV / Excel exports
- Supabase project storage and webhook delivery
"""
import logging
import streamlit as st

# Page config must be first
st.set_page_config(
    page_title="Keyword Cluster Processor",
    page_icon="🔑",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Imports
from config.settings import get_settings
from core.exceptions import (
    BoundaryError,
    ConfigurationError,
    InputError,
    KeywordProcessorError,
    MutationError,
    ValidationError,
)
from core.processor import KeywordProcessor
from core.session import ProcessingSession
from storage.supabase_client import get_project_store
from notification.webhook_client import WebhookTarget, get_webhook_client
from export.csv_exporter import (
    PayloadExporter,
    build_filename,
    create_download_link,
    format_cluster_text,
)
from export.excel_exporter import ExcelExporter
from visualization.charts import (
    create_volume_bar,
    create_page_type_breakdown,
    create_difficulty_distribution,
)
from visualization.metrics_display import (
    display_summary_metrics,
    display_cluster_table,
    page_count,
    page_slice,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def init_session_state():
    """Initialize session state variables."""
    settings = get_settings()
    defaults = {
        "session": ProcessingSession(),
        "cluster_page": 1,
        "show_all_clusters": False,
        "project_page": 1,
        "project_search": "",
        "webhook_url": settings.webhook_url,
        "webhook_username": settings.webhook_username,
        "webhook_password": settings.webhook_password,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def flash(message: str):
    """Keep a success message for the next rerun."""
    st.session_state.flash_message = message


def show_flash():
    """Show and clear the message left before a rerun."""
    message = st.session_state.pop("flash_message", None)
    if message:
        st.success(message)


def get_processor() -> KeywordProcessor:
    """Processor wired to the configured collaborators."""
    return KeywordProcessor(
        store=get_project_store(),
        webhook=get_webhook_client(),
        settings=get_settings()
    )


def current_target() -> WebhookTarget:
    """Webhook target from the settings form."""
    return WebhookTarget(
        url=st.session_state.webhook_url,
        username=st.session_state.webhook_username,
        password=st.session_state.webhook_password
    )


def render_sidebar():
    """Render sidebar with service status and webhook settings."""
    settings = get_settings()
    st.sidebar.title("🔑 Keyword Cluster Processor")

    st.sidebar.markdown("### Service Status")
    for service, configured in settings.validate_secrets().items():
        icon = "✅" if configured else "❌"
        st.sidebar.markdown(f"{icon} {service}")

    if settings.get_missing_secrets():
        st.sidebar.warning(
            "Some services not configured. Add keys in Streamlit Secrets."
        )

    st.sidebar.markdown("---")
    st.sidebar.markdown("### Webhook Settings")

    st.sidebar.text_input("Webhook URL", key="webhook_url")
    st.sidebar.text_input("Username (optional)", key="webhook_username")
    st.sidebar.text_input(
        "Password (optional)",
        key="webhook_password",
        type="password"
    )

    if st.sidebar.button("🔌 Test Connection"):
        try:
            response = get_webhook_client().test_connection_sync(
                current_target(),
                message=settings.notification.test_message
            )
            st.sidebar.success(f"Connection OK (HTTP {response.status})")
        except (BoundaryError, ConfigurationError) as e:
            st.sidebar.error(f"Connection failed: {e.message}")


def render_upload_section(processor: KeywordProcessor):
    """Render file upload and processing controls."""
    session: ProcessingSession = st.session_state.session
    settings = get_settings()

    st.markdown("## 📤 Upload Keyword Research")

    col1, col2 = st.columns([2, 1])

    with col1:
        uploaded_file = st.file_uploader(
            "Upload CSV export",
            type=["csv"],
            help="Needs Keyword and Page columns"
        )
        seed_keyword = st.text_input(
            "Seed Keyword",
            placeholder="e.g. running shoes"
        )

    with col2:
        st.markdown("**Recognized Columns:**")
        st.markdown(
            "- Keyword, Page (required)\n"
            "- Page type\n"
            "- Volume, Keyword Difficulty, CPC (USD)\n"
            "- Topic, Intent, Seed keyword"
        )
        st.caption(
            f"Max file size: {settings.processing.max_file_size // (1024 * 1024)} MB"
        )

    if st.button("⚙️ Process", type="primary", disabled=uploaded_file is None):
        try:
            payload = processor.process(
                session,
                uploaded_file.getvalue(),
                filename=uploaded_file.name,
                seed_keyword=seed_keyword
            )
            st.session_state.cluster_page = 1
            st.success(
                f"✅ Processed {payload.metadata.total_keywords:,} keywords "
                f"into {payload.metadata.total_clusters:,} clusters"
            )
            for warning in session.last_warnings:
                st.warning(warning)
        except (InputError, ValidationError) as e:
            st.error(f"❌ {e.message}")


def render_actions(processor: KeywordProcessor):
    """Render save and notify buttons."""
    session: ProcessingSession = st.session_state.session

    col1, col2, col3 = st.columns(3)

    with col1:
        label = "💾 Update Project" if session.project_id else "💾 Save to Database"
        if st.button(label):
            try:
                result = processor.save(session)
                st.success(
                    f"✅ Saved project {result.project_id} "
                    f"({result.clusters_saved} clusters)"
                )
            except (BoundaryError, ConfigurationError) as e:
                st.error(f"❌ Save failed: {e.message}")

    with col2:
        if st.button("📤 Send to Webhook"):
            try:
                response = processor.notify(session, current_target())
                st.success(f"✅ Webhook delivered (HTTP {response.status})")
            except (BoundaryError, ConfigurationError) as e:
                st.error(f"❌ Webhook failed: {e.message}")

    with col3:
        if st.button("🔄 Start Over"):
            session.reset()
            st.session_state.cluster_page = 1
            st.rerun()

    with st.expander("Progress", expanded=session.progress.is_failed):
        session.progress.render_streamlit_progress()


def render_clusters(processor: KeywordProcessor):
    """Render the cluster table with pagination and the cluster editor."""
    session: ProcessingSession = st.session_state.session
    payload = session.payload
    per_page = get_settings().processing.clusters_per_page

    st.markdown("## 🎯 Clusters")

    st.checkbox("Show all clusters", key="show_all_clusters")

    if st.session_state.show_all_clusters:
        start = 0
        visible = payload.clusters
    else:
        total_pages = page_count(len(payload.clusters), per_page)
        st.session_state.cluster_page = min(
            st.session_state.cluster_page, total_pages
        )

        col1, col2, col3 = st.columns([1, 2, 1])
        with col1:
            if st.button("⬅️ Previous", disabled=st.session_state.cluster_page <= 1):
                st.session_state.cluster_page -= 1
                st.rerun()
        with col2:
            st.markdown(
                f"Page **{st.session_state.cluster_page}** of **{total_pages}**"
            )
        with col3:
            if st.button(
                "Next ➡️",
                disabled=st.session_state.cluster_page >= total_pages
            ):
                st.session_state.cluster_page += 1
                st.rerun()

        window = page_slice(st.session_state.cluster_page, per_page)
        start = window.start
        visible = payload.clusters[window]

    display_cluster_table(visible, start_index=start)

    if payload.clusters:
        render_cluster_editor(processor)


def render_cluster_editor(processor: KeywordProcessor):
    """Render the edit / delete / copy form for one cluster."""
    session: ProcessingSession = st.session_state.session
    payload = session.payload

    st.markdown("### ✏️ Cluster Details")

    index = st.selectbox(
        "Cluster",
        options=list(range(len(payload.clusters))),
        format_func=lambda i: f"#{i} {payload.clusters[i].cluster_name}"
    )
    cluster = payload.clusters[index]

    with st.form(f"edit_cluster_{index}"):
        col1, col2 = st.columns(2)
        with col1:
            cluster_name = st.text_input("Cluster Name", value=cluster.cluster_name)
            keyword_count = st.text_input("Keyword Count", value=str(cluster.keyword_count))
            total_volume = st.text_input("Total Volume", value=str(cluster.total_volume))
            avg_difficulty = st.text_input("Average Difficulty", value=str(cluster.avg_difficulty))
            difficulty_range = st.text_input("Difficulty Range", value=cluster.difficulty_range)
        with col2:
            avg_cpc = st.text_input("Average CPC", value=str(cluster.avg_cpc))
            topics = st.text_input("Topics", value=cluster.topics)
            intent = st.text_input("Intent", value=cluster.intent)
            seed_keywords = st.text_input("Seed Keywords", value=cluster.seed_keywords)
        supporting = st.text_area("Supporting Keywords", value=cluster.supporting_keywords)

        saved = st.form_submit_button("💾 Save Changes")

    if saved:
        try:
            processor.edit_cluster(session, index, {
                "cluster_name": cluster_name,
                "keyword_count": keyword_count,
                "total_volume": total_volume,
                "avg_difficulty": avg_difficulty,
                "min_max_difficulty": difficulty_range,
                "avg_cpc": avg_cpc,
                "supporting_keywords": supporting,
                "topics": topics,
                "intent": intent,
                "seed_keywords": seed_keywords,
            })
            flash("✅ Cluster updated successfully!")
            st.rerun()
        except MutationError as e:
            st.error(f"❌ {e.message}")

    col1, col2 = st.columns(2)
    with col1:
        with st.expander("📋 Copy Cluster Data"):
            st.code(format_cluster_text(cluster), language=None)
    with col2:
        confirm = st.checkbox(f"Confirm delete of \"{cluster.cluster_name}\"")
        if st.button("🗑️ Delete Cluster", disabled=not confirm):
            try:
                processor.delete_cluster(session, index)
                flash("✅ Cluster deleted successfully!")
                st.rerun()
            except MutationError as e:
                st.error(f"❌ {e.message}")


def render_exports(payload):
    """Render export downloads for a payload."""
    exporter = PayloadExporter()

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.download_button(
            label="🧾 JSON",
            data=create_download_link(exporter.to_json(payload)),
            file_name=build_filename(payload, "json"),
            mime="application/json"
        )
    with col2:
        st.download_button(
            label="📄 CSV",
            data=create_download_link(exporter.to_csv(payload)),
            file_name=build_filename(payload, "csv"),
            mime="text/csv"
        )
    with col3:
        st.download_button(
            label="📋 Tab-separated",
            data=create_download_link(exporter.to_tsv(payload)),
            file_name=build_filename(payload, "tsv"),
            mime="text/tab-separated-values"
        )
    with col4:
        st.download_button(
            label="📊 Excel",
            data=ExcelExporter().export(payload),
            file_name=build_filename(payload, "xlsx"),
            mime=XLSX_MIME
        )


def render_results(processor: KeywordProcessor):
    """Render metrics, charts, clusters and exports of the current payload."""
    session: ProcessingSession = st.session_state.session
    payload = session.payload

    st.markdown(f"## 📊 Results: {payload.seed_keyword}")
    if session.project_id:
        st.caption(f"Stored as project {session.project_id}")

    display_summary_metrics(payload.metadata)
    render_actions(processor)

    tab_clusters, tab_charts, tab_export = st.tabs(
        ["🎯 Clusters", "📈 Charts", "📥 Export"]
    )

    with tab_clusters:
        render_clusters(processor)

    with tab_charts:
        if payload.clusters:
            st.plotly_chart(create_volume_bar(payload.clusters), use_container_width=True)
            col1, col2 = st.columns(2)
            with col1:
                st.plotly_chart(
                    create_page_type_breakdown(
                        payload.metadata.pillar_pages,
                        payload.metadata.sub_pages
                    ),
                    use_container_width=True
                )
            with col2:
                st.plotly_chart(
                    create_difficulty_distribution(payload.clusters),
                    use_container_width=True
                )
        else:
            st.info("No clusters to chart.")

    with tab_export:
        render_exports(payload)


def render_project_export(store, project):
    """Offer a stored project as a JSON download without loading it."""
    prepared_key = f"export_{project.id}"

    if st.button("📥 Export", key=f"prepare_{project.id}"):
        try:
            payload = store.get_project(project.id)
            st.session_state[prepared_key] = (
                PayloadExporter().to_json(payload),
                build_filename(payload, "json")
            )
        except BoundaryError as e:
            st.error(f"❌ {e.message}")

    if prepared_key in st.session_state:
        content, filename = st.session_state[prepared_key]
        st.download_button(
            label="🧾 Download JSON",
            data=create_download_link(content),
            file_name=filename,
            mime="application/json",
            key=f"download_{project.id}"
        )


def render_projects(processor: KeywordProcessor):
    """Render the saved-projects browser."""
    store = processor.store

    st.markdown("## 🗂️ Saved Projects")

    if store is None:
        st.info("Configure Supabase in Streamlit Secrets to browse saved projects.")
        return

    search = st.text_input("Search projects", key="project_search")
    if search != st.session_state.get("last_project_search", ""):
        st.session_state.project_page = 1
        st.session_state.last_project_search = search

    try:
        listing = store.list_projects(
            page=st.session_state.project_page,
            limit=get_settings().storage.projects_per_page,
            search=search
        )
    except BoundaryError as e:
        st.error(f"❌ Could not load projects: {e.message}")
        return

    if not listing.projects:
        if st.session_state.project_page > 1:
            st.session_state.project_page = 1
            st.rerun()
        st.info("No projects found.")
        return

    for project in listing.projects:
        with st.expander(
            f"{project.seed_keyword} · {project.original_filename} · "
            f"{project.total_clusters} clusters"
        ):
            st.caption(f"Created {project.created_at}")
            st.markdown(
                f"**Keywords:** {project.total_keywords:,} · "
                f"**Volume:** {project.total_volume:,} · "
                f"**Avg. Difficulty:** {project.avg_difficulty} · "
                f"**Pillar/Sub:** {project.pillar_pages}/{project.sub_pages}"
            )

            col1, col2, col3 = st.columns(3)
            with col1:
                if st.button("📂 Load", key=f"load_{project.id}"):
                    try:
                        processor.load_project(st.session_state.session, project.id)
                        st.session_state.cluster_page = 1
                        st.rerun()
                    except KeywordProcessorError as e:
                        st.error(f"❌ {e.message}")
            with col2:
                render_project_export(store, project)
            with col3:
                if st.button("🗑️ Delete", key=f"delete_{project.id}"):
                    try:
                        deleted = store.delete_project(project.id)
                        session = st.session_state.session
                        if session.project_id == project.id:
                            session.project_id = None
                        flash(
                            f"✅ Deleted project {project.id} "
                            f"({deleted['deleted_counts']['clusters']} clusters)"
                        )
                        st.rerun()
                    except BoundaryError as e:
                        st.error(f"❌ {e.message}")

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if st.button("⬅️ Newer", disabled=not listing.has_previous):
            st.session_state.project_page -= 1
            st.rerun()
    with col2:
        st.markdown(
            f"Page **{listing.current_page}** of **{listing.total_pages}** "
            f"({listing.total_items} projects)"
        )
    with col3:
        if st.button("Older ➡️", disabled=not listing.has_next):
            st.session_state.project_page += 1
            st.rerun()


def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    st.title("🔑 Keyword Cluster Processor")
    st.markdown(
        "Group keyword research by page and page type, review the clusters, "
        "then save, export or send them on."
    )
    show_flash()

    processor = get_processor()
    session: ProcessingSession = st.session_state.session

    tab_process, tab_projects = st.tabs(["⚙️ Process", "🗂️ Projects"])

    with tab_process:
        render_upload_section(processor)
        if session.has_payload:
            render_results(processor)

    with tab_projects:
        render_projects(processor)

    if session.last_error:
        st.error(f"Last error: {session.last_error}")


if __name__ == "__main__":
    main()
