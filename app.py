"""
UI Generator - Streamlit host

Paste generated React/TypeScript component code to see the npm packages it
needs and a live preview rendered in a sandbox.
"""

import json

import streamlit as st
import streamlit.components.v1 as components

from uigen.config import ConfigError, get_config
from uigen.logging import setup_logging
from uigen.packages import build_package_manifest, detect_packages, get_installer, load_registry
from uigen.sandbox import default_component_library, render, to_html
from uigen.utils import guess_language_from_filename, make_zip_bytes, package_row_html, safe_project_name


# Page configuration
st.set_page_config(
    page_title="UI Generator Preview",
    page_icon="🧩",
    layout="wide",
)

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: 700;
        color: #1E88E5;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }
    .package-row {
        font-family: 'Fira Code', 'Consolas', monospace;
    }
</style>
""", unsafe_allow_html=True)

# Static stylesheet for the preview iframe; Tailwind classes are not compiled
PREVIEW_CSS = """
<style>
  body { font-family: system-ui, sans-serif; margin: 0; padding: 1rem; color: #111; }
  [data-component] { border: 1px dashed #c7d2fe; border-radius: 6px; padding: 4px 8px; margin: 2px; }
  [data-component]::before { content: attr(data-component); font-size: 10px; color: #6366f1; display: block; }
  [data-icon]::before { content: attr(data-icon); font-size: 11px; color: #555; }
</style>
"""


def init_session_state():
    """Initialize session state variables."""
    if "code" not in st.session_state:
        st.session_state.code = ""
    if "last_success" not in st.session_state:
        st.session_state.last_success = None
    if "last_failure" not in st.session_state:
        st.session_state.last_failure = None
    if "install_report" not in st.session_state:
        st.session_state.install_report = None
    if "installer" not in st.session_state:
        st.session_state.installer = get_installer()


def validate_config() -> bool:
    """Validate configuration and show error if invalid."""
    try:
        get_config()
        return True
    except ConfigError as e:
        st.error(f"⚠️ Configuration Error\n\n{str(e)}")
        st.info("Fix the UIGEN_* variables in your environment or `.env` file.")
        return False


def display_packages(code: str):
    """Show detected packages and the install button."""
    packages = detect_packages(code, load_registry())

    st.subheader("📦 Detected Packages")
    col1, col2 = st.columns(2)
    with col1:
        st.metric("Dependencies", sum(1 for p in packages if not p.dev))
    with col2:
        st.metric("Dev dependencies", sum(1 for p in packages if p.dev))

    if not packages:
        st.info("No third-party packages detected.")
        return packages

    installer = st.session_state.installer
    for pkg in packages:
        row = package_row_html(
            pkg.name, pkg.version, "dev" if pkg.dev else "dep", pkg.source, pkg.description,
            installed=installer.is_installed(pkg.name),
        )
        st.markdown(row, unsafe_allow_html=True)

    if st.button("📥 Install Packages", type="primary", use_container_width=True):
        with st.spinner("Installing packages..."):
            st.session_state.install_report = installer.install(packages)

    report = st.session_state.install_report
    if report is not None:
        if report.success:
            st.success(f"{report.message} ({report.mode})")
        else:
            st.error(report.message)
            for error in report.errors[:10]:
                st.caption(error)

    return packages


def display_preview(code: str):
    """Render the code; on failure keep the previous successful preview."""
    st.subheader("🌐 Preview")

    result = render(code, default_component_library())
    if result.ok:
        st.session_state.last_success = result
        st.session_state.last_failure = None
    else:
        st.session_state.last_failure = result

    failure = st.session_state.last_failure
    if failure is not None:
        label = failure.error_type.replace("_", " ")
        st.error(f"❌ Render failed ({label}): {failure.message}")
        if failure.missing_capability:
            st.caption(f"`{failure.missing_capability}` is not available in the preview library.")

    success = st.session_state.last_success
    if success is None:
        st.info("Nothing rendered yet.")
        return

    components.html(PREVIEW_CSS + to_html(success.rendered), height=480, scrolling=True)

    logs = failure.logs if failure is not None else success.logs
    if logs:
        with st.expander(f"🖥️ Console ({len(logs)})"):
            st.code("\n".join(logs), language="text")

    with st.expander("🔍 View Rendered Tree"):
        st.json(success.rendered.model_dump())


def create_download_button(code: str, packages, name: str):
    """Download the component and its package.json as a ZIP file."""
    project_name = safe_project_name(name)
    files = {
        "component.tsx": code,
        "package.json": json.dumps(build_package_manifest(packages, project_name), indent=2),
    }
    st.download_button(
        label="📥 Download as ZIP",
        data=make_zip_bytes(files),
        file_name=f"{project_name}.zip",
        mime="application/zip",
        use_container_width=True,
    )


# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application entry point."""
    st.markdown('<p class="main-header">🧩 UI Generator Preview</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Detect packages and preview generated React components in a sandbox</p>',
        unsafe_allow_html=True,
    )

    if not validate_config():
        return
    setup_logging()
    init_session_state()

    with st.sidebar:
        st.header("Settings")
        config = get_config()
        st.write(f"🧪 Render backend: `{config.render_backend}`")
        st.write(f"⏱️ Timeout: {config.render_timeout_ms} ms")
        st.write(f"📦 Install mode: `{config.install_mode}`")

        st.divider()

        if st.button("🗑️ Clear Session", use_container_width=True):
            for key in ["code", "last_success", "last_failure", "install_report", "installer"]:
                if key in st.session_state:
                    del st.session_state[key]
            st.rerun()

    name = st.text_input("Component name", value="My Component")
    code = st.text_area(
        "Generated code",
        key="code",
        height=320,
        placeholder="export default function Card() { return <Button>Hi</Button> }",
    )

    if not code.strip():
        st.info("💡 Paste component code to get started.")
        return

    code_col, result_col = st.columns([1, 1])
    with code_col:
        st.code(code, language=guess_language_from_filename("component.tsx"), line_numbers=True)
        packages = display_packages(code)
        create_download_button(code, packages, name)
    with result_col:
        display_preview(code)


if __name__ == "__main__":
    main()
