# common/data_access.py

import logging

import streamlit as st

import config
from document_store import DocumentStore
from workflow_service import WorkflowService

logger = logging.getLogger(__name__)

SERVICE_KEY = "workflow_service"


@st.cache_resource
def _open_store(db_file: str) -> DocumentStore:
    """One document store per database file, shared by every session."""
    logger.info("Opening document store at %s", db_file)
    return DocumentStore(db_file)


def get_workflow_service() -> WorkflowService:
    """
    The service every page uses. Each browser session gets its own service
    (and so its own snapshot and error signal) on top of the shared store.
    Snapshots are re-read on each call so the page always renders the latest
    data, including other sessions' writes.
    """
    store = _open_store(config.DB_FILE)
    service = st.session_state.get(SERVICE_KEY)
    if service is None or service.store is not store:
        if service is not None:
            service.close()
        service = WorkflowService(store)
        st.session_state[SERVICE_KEY] = service
    service.refresh()
    return service
