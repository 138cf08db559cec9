import base64
import os
from pathlib import Path

import requests
import streamlit as st

API_URL = os.environ.get("NOTEBOOK_API_URL", "http://localhost:8000").rstrip("/")
REQUEST_TIMEOUT = 300
MAX_FILE_SIZE_MB = 50
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

st.set_page_config(page_title="Notebook RAG", page_icon="📚")

st.title("📚 Notebook RAG")


def post(path: str, payload: dict) -> tuple[bool, dict]:
    """POST to the API; returns (ok, body) with errors as a body too."""
    try:
        response = requests.post(f"{API_URL}{path}", json=payload, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        return False, {"error": f"API unreachable: {e}", "stage": "network"}

    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text or f"HTTP {response.status_code}", "stage": "internal"}
    return response.ok and body.get("success", False), body


def show_error(body: dict) -> None:
    st.error(f"❌ {body.get('error', 'Unknown error')} (stage: {body.get('stage', 'unknown')})")
    if body.get("details"):
        with st.expander("Details"):
            st.json(body["details"])


tab_ingest, tab_query = st.tabs(["Ingest Documents", "Query"])

with tab_ingest:
    st.header("Ingest Documents")

    source = st.radio("Source", ["File", "URL", "Text"], horizontal=True)
    payload = None

    if source == "File":
        uploaded_file = st.file_uploader("Upload a file", type=["pdf", "csv", "txt"])
        if uploaded_file is not None:
            if uploaded_file.size > MAX_FILE_SIZE_BYTES:
                st.error(f"❌ File exceeds maximum size of {MAX_FILE_SIZE_MB}MB")
            else:
                payload = {
                    "fileContent": base64.b64encode(uploaded_file.getvalue()).decode("ascii"),
                    "fileType": Path(uploaded_file.name).suffix.lstrip(".").lower(),
                    "fileName": uploaded_file.name,
                }
    elif source == "URL":
        url = st.text_input("Web page URL")
        if url:
            payload = {"url": url}
    else:
        text = st.text_area("Text", height=200)
        if text:
            payload = {"text": text}

    if st.button("Ingest", disabled=payload is None):
        with st.spinner("Processing..."):
            ok, body = post("/ingest", payload)
        if ok:
            stats = body["stats"]
            st.success(f"✅ {body.get('message', 'Stored')}")
            cols = st.columns(4)
            cols[0].metric("Documents", stats["originalDocuments"])
            cols[1].metric("Chunks created", stats["chunksCreated"])
            cols[2].metric("Chunks stored", stats["chunksStored"])
            cols[3].metric("Avg chunk size", stats["averageChunkSize"])
        else:
            show_error(body)

with tab_query:
    st.header("Query")

    if "history" not in st.session_state:
        st.session_state.history = []

    for turn in st.session_state.history:
        with st.chat_message(turn["role"]):
            st.write(turn["content"])

    question = st.chat_input("Ask a question about your documents")
    if question:
        with st.chat_message("user"):
            st.write(question)

        with st.spinner("Searching and generating..."):
            ok, body = post("/query", {"query": question})

        if ok:
            st.session_state.history.append({"role": "user", "content": question})
            st.session_state.history.append({"role": "assistant", "content": body["answer"]})
            with st.chat_message("assistant"):
                st.write(body["answer"])
                if body.get("chunksRetrieved"):
                    with st.expander(f"Sources ({body['chunksRetrieved']} chunks)"):
                        for source_name in body.get("sources", []):
                            st.write(f"- {source_name}")
                        st.json(body.get("debug", {}))
        else:
            show_error(body)
