"""Tests for the FastAPI endpoints."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from helpers import grounded_reply, tool_call_reply
from langchain_core.messages import AIMessage

from simrs.prompts import CONNECTION_ERROR_REPLY, MISSING_API_KEY_MESSAGE, WELCOME_MESSAGE
from simrs.server import app
from simrs.session import SessionBusyError, open_session


@pytest.fixture
def install_session(store, scripted_llm):
    """Attach the store and a session scripted with *replies* to app state (mirrors the lifespan)."""

    def _install(*replies, api_key=None):
        llm = scripted_llm(*replies) if api_key is None else None
        session = open_session(store, api_key=api_key, llm=llm)
        app.state.store = store
        app.state.session = session
        return session, llm

    yield _install
    app.state.session = None


@pytest.fixture
def client():
    return TestClient(app)


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "simrs-agent"


class TestChatEndpoint:
    def test_chat_returns_turn(self, client, install_session):
        session, _ = install_session(
            tool_call_reply(("getPatientInfo", {"query": "Budi Santoso"})),
            AIMessage(content="Budi Santoso memiliki riwayat Hipertensi."),
        )

        response = client.post("/api/chat", json={"message": "Informasi pasien Budi Santoso"})

        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == "Budi Santoso memiliki riwayat Hipertensi."
        assert data["agent_used"] == "PatientInfo"
        assert data["agent_display_name"] == "Agen Informasi Pasien"
        assert data["generated_document"] is None
        assert data["session_id"] == session.session_id

    def test_chat_returns_generated_document(self, client, install_session):
        install_session(
            tool_call_reply(("generateDocument", {"patientId": "P001", "docType": "medical_record"})),
            AIMessage(content="Dokumen telah dibuat."),
        )

        data = client.post("/api/chat", json={"message": "Buatkan dokumen rekam medis untuk P001"}).json()

        assert data["agent_used"] == "MedicalRecords"
        assert data["generated_document"]["title"] == "Rekam_Medis_P001.pdf"
        assert "Budi Santoso" in data["generated_document"]["content"]

    def test_chat_returns_grounding_sources(self, client, install_session):
        install_session(grounded_reply("Gejala flu meliputi demam.", "https://www.who.int/flu"))

        data = client.post("/api/chat", json={"message": "Apa gejala flu?"}).json()

        assert data["agent_used"] == "SearchGrounded"
        assert data["grounding_urls"] == ["https://www.who.int/flu"]
        assert data["grounding_sources"] == [{"url": "https://www.who.int/flu", "hostname": "www.who.int"}]

    def test_chat_validates_empty_message(self, client, install_session):
        install_session()
        response = client.post("/api/chat", json={"message": ""})
        assert response.status_code == 422

    def test_chat_rejects_whitespace_message(self, client, install_session):
        _, llm = install_session()
        response = client.post("/api/chat", json={"message": "   "})
        assert response.status_code == 422
        llm.invoke.assert_not_called()

    def test_chat_rejects_while_busy(self, client, install_session):
        session, llm = install_session()
        session._busy.acquire()
        try:
            response = client.post("/api/chat", json={"message": "Halo"})
        finally:
            session._busy.release()
        assert response.status_code == 409
        llm.invoke.assert_not_called()

    def test_chat_backend_failure_returns_apology(self, client, install_session):
        install_session(RuntimeError("LLM exploded"))

        response = client.post("/api/chat", json={"message": "Halo"})

        assert response.status_code == 200
        data = response.json()
        assert data["reply"] == CONNECTION_ERROR_REPLY
        assert "LLM exploded" not in data["reply"]
        assert data["agent_used"] == "Coordinator"

    def test_chat_without_api_key_returns_503(self, client, install_session):
        install_session(api_key="")
        response = client.post("/api/chat", json={"message": "Halo"})
        assert response.status_code == 503
        assert response.json()["detail"] == MISSING_API_KEY_MESSAGE

    def test_response_includes_request_id_header(self, client, install_session):
        install_session(AIMessage(content="Halo!"))
        response = client.post("/api/chat", json={"message": "Halo"})
        assert "X-Request-ID" in response.headers

    def test_client_supplied_request_id_is_echoed(self, client, install_session):
        install_session(AIMessage(content="Halo!"))
        response = client.post(
            "/api/chat",
            json={"message": "Halo"},
            headers={"X-Request-ID": "my-trace-id-123"},
        )
        assert response.headers["X-Request-ID"] == "my-trace-id-123"


class TestTranscriptEndpoints:
    def test_messages_start_with_welcome(self, client, install_session):
        install_session()
        data = client.get("/api/messages").json()
        assert data["configured"] is True
        assert [m["text"] for m in data["messages"]] == [WELCOME_MESSAGE]

    def test_messages_show_missing_key_notice(self, client, install_session):
        install_session(api_key="")
        data = client.get("/api/messages").json()
        assert data["configured"] is False
        assert data["messages"][0]["text"] == MISSING_API_KEY_MESSAGE

    def test_messages_include_turns(self, client, install_session):
        install_session(AIMessage(content="Halo!"))
        client.post("/api/chat", json={"message": "Halo"})

        messages = client.get("/api/messages").json()["messages"]
        assert [(m["role"], m["text"]) for m in messages[1:]] == [("user", "Halo"), ("model", "Halo!")]
        assert messages[2]["agent"] == "Coordinator"

    def test_reset_replaces_session(self, client, install_session, scripted_llm):
        old, _ = install_session(AIMessage(content="Halo!"))
        client.post("/api/chat", json={"message": "Halo"})

        with patch("simrs.api.routes.open_session") as mock_open:
            mock_open.side_effect = lambda store: open_session(store, llm=scripted_llm())
            data = client.post("/api/session/reset").json()

        assert data["session_id"] != old.session_id
        assert [m["text"] for m in data["messages"]] == [WELCOME_MESSAGE]
        assert app.state.session.session_id == data["session_id"]
        assert app.state.session.store is old.store

    def test_reset_rejected_while_busy(self, client, install_session):
        session, _ = install_session()
        session._busy.acquire()
        try:
            response = client.post("/api/session/reset")
        finally:
            session._busy.release()
        assert response.status_code == 409
        assert app.state.session is session

    def test_reset_holds_old_session_during_swap(self, client, install_session, scripted_llm):
        old, llm = install_session()
        seen = {}

        def replace(store):
            seen["busy"] = old.busy
            with pytest.raises(SessionBusyError):
                old.submit("Halo")
            return open_session(store, llm=scripted_llm())

        with patch("simrs.api.routes.open_session", side_effect=replace):
            response = client.post("/api/session/reset")

        assert response.status_code == 200
        assert seen["busy"] is True
        assert not old.busy
        assert app.state.session is not old
        llm.invoke.assert_not_called()


class TestAgentNotReady:
    def test_returns_503_when_session_not_initialised(self, client):
        app.state.session = None
        response = client.post("/api/chat", json={"message": "Halo"})
        assert response.status_code == 503
        assert "starting up" in response.json()["detail"].lower()


class TestRootEndpoint:
    def test_root_returns_service_info(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "SIMRS AI Agent"
        assert "docs" in data
