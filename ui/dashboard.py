# ui/dashboard.py
import sys, os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import streamlit as st
import pandas as pd
from config import load_settings, setup_logging
from matching.llm_gemini import AnalysisClient
from workflow.controller import WorkflowController, WorkflowState

# -------------------- CONFIG --------------------
setup_logging()
st.set_page_config(page_title="TalentLens AI", page_icon="🧠", layout="wide")
st.title("🧠 TalentLens AI")

st.markdown("Paste your resume, then the job description, and get a structured fit analysis.")

# -------------------- SESSION STATE --------------------
# One controller per browser session; reruns reuse it
if "workflow" not in st.session_state:
    settings = load_settings()
    client = AnalysisClient.from_settings(settings)
    st.session_state.workflow = WorkflowController(client, min_resume_length=settings.min_resume_length)
if "pending" not in st.session_state:
    st.session_state.pending = None

wf: WorkflowController = st.session_state.workflow

steps = ["1. Resume", "2. Job Description", "3. Results"]
current = [WorkflowState.INPUT, WorkflowState.TARGET, WorkflowState.RESULT].index(wf.state)
st.caption("  →  ".join(f"**{s}**" if i == current else s for i, s in enumerate(steps)))

if wf.error_message:
    st.error(wf.error_message)

# ==================== STEP 1: Resume ====================
if wf.state is WorkflowState.INPUT:
    st.subheader("Step 1: Paste Your Resume")
    with st.form("resume_form"):
        resume = st.text_area(
            "Resume text",
            value=wf.draft.resume_text,
            height=320,
            placeholder="E.g. Professional Summary, Experience, Skills...",
        )
        if st.form_submit_button("Next Step"):
            wf.submit_resume(resume)
            st.rerun()

# ==================== STEP 2: Job Description ====================
elif wf.state is WorkflowState.TARGET:
    st.subheader("Step 2: Job Description")
    jd = st.text_area(
        "Job description",
        value=wf.draft.job_description_text,
        height=320,
        placeholder="Paste the job title, responsibilities, and requirements here...",
        disabled=wf.is_analyzing,
    )
    col_back, col_run = st.columns([1, 2])
    if col_back.button("Back"):
        wf.submit_job_description(jd)
        wf.go_back()
        st.session_state.pending = None
        st.rerun()
    if col_run.button("Start Analysis", disabled=wf.is_analyzing):
        wf.submit_job_description(jd)
        st.session_state.pending = wf.run_analysis()
        st.rerun()

    pending = st.session_state.pending
    if wf.is_analyzing and pending is not None:
        with st.spinner("⏳ Analyzing..."):
            pending.result()
        st.session_state.pending = None
        st.rerun()

# ==================== STEP 3: Results ====================
else:
    res = wf.result
    st.subheader("Step 3: Results")
    st.metric("Match Score", f"{res.match_score}%")
    st.markdown(f"> {res.executive_summary}")

    col_a, col_b = st.columns(2)
    with col_a:
        st.markdown("### ✅ Strengths")
        for s in res.strengths or ["—"]:
            st.markdown(f"- {s}")
    with col_b:
        st.markdown("### ⚠️ Gaps")
        for g in res.gaps or ["—"]:
            st.markdown(f"- {g}")

    st.markdown("### 🔑 Keywords")
    rows = max(len(res.keywords_found), len(res.keywords_missing))
    if rows:
        table = pd.DataFrame({
            "Found": res.keywords_found + [""] * (rows - len(res.keywords_found)),
            "Missing": res.keywords_missing + [""] * (rows - len(res.keywords_missing)),
        })
        st.table(table)
    else:
        st.caption("No keywords reported.")

    st.markdown("### 📝 Suggestions")
    for s in res.suggestions or ["—"]:
        st.markdown(f"- {s}")

    st.markdown("### 🎤 Interview Prep")
    for q in res.interview_prep or ["—"]:
        st.markdown(f"- {q}")

    with st.expander("📋 Copy report"):
        st.code(res.as_report(), language="markdown")

    if st.button("Start Over"):
        wf.reset()
        st.rerun()
