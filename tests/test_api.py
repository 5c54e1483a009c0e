from contextlib import asynccontextmanager
from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from conftest import FakeLLMClient, add_user, assistant_message, tool_call
from src.backend.api import agent_router, customer_router, websocket_router
from src.backend.chat.service_container import ServiceContainer
from src.backend.models.chat import UserRole


def build_app(cfg, db, llm_client) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = ServiceContainer(cfg)
        await services.initialize(db=db, llm_client=llm_client)
        customer = await add_user(db, cfg, "carol", UserRole.CUSTOMER)
        agent = await add_user(db, cfg, "alice", UserRole.AGENT)
        await db[cfg.mongodb.customers_collection].insert_one({
            "customer_id": "123456",
            "first_name": "Carol",
            "last_name": "Jones",
            "email": customer.email,
            "phone": "555-0100",
        })
        await db[cfg.mongodb.bookings_collection].insert_many([
            {
                "customer_id": "123456", "flight_number": "BA2490",
                "departure": "LHR", "arrival": "JFK",
                "departure_date": datetime(2026, 11, 2),
                "arrival_date": datetime(2026, 11, 2),
                "seat_number": "14A", "class": "Economy", "status": "Booked",
            },
            {
                "customer_id": "123456", "flight_number": "AI101",
                "departure": "DEL", "arrival": "BOM",
                "departure_date": datetime(2026, 12, 24),
                "arrival_date": datetime(2026, 12, 24),
                "seat_number": "2C", "class": "Business", "status": "Booked",
            },
        ])
        app.state.users = {"customer": customer, "agent": agent}
        app.state.sids = {
            "customer": await services.session_store.create(customer.id),
            "agent": await services.session_store.create(agent.id),
        }
        app.state.service_container = services
        app.state.startup_complete = True
        yield
        await services.cleanup()

    app = FastAPI(lifespan=lifespan)
    app.include_router(customer_router.router, prefix="/api")
    app.include_router(agent_router.router, prefix="/api")
    app.include_router(websocket_router.router, prefix="/ws")
    return app


@pytest.fixture
def api(cfg, db):
    llm_client = FakeLLMClient()
    app = build_app(cfg, db, llm_client)
    with TestClient(app) as client:
        client.llm = llm_client
        yield client


def auth(client, who: str) -> dict:
    return {"cookie": f"sid={client.app.state.sids[who]}"}


def test_chatbot_requires_login(api):
    response = api.post("/api/chatbot", json={"message": "hi"})
    assert response.status_code == 401


def test_chatbot_replies(api):
    api.llm.script(assistant_message("Hi Carol!"))

    response = api.post(
        "/api/chatbot", json={"message": "hi"}, headers=auth(api, "customer")
    )

    assert response.status_code == 200
    assert response.json() == {"reply": "Hi Carol!"}
    system_prompt = api.llm.completions.calls[0]["messages"][0]["content"]
    assert "123456" in system_prompt


def test_chatbot_failure_returns_apology(api):
    api.llm.script(RuntimeError("model down"))

    response = api.post(
        "/api/chatbot", json={"message": "hi"}, headers=auth(api, "customer")
    )

    assert response.status_code == 500
    assert response.json() == {"reply": "Sorry, I encountered an error."}


def test_chatbot_unknown_action_returns_apology(api):
    api.llm.script(assistant_message(tool_calls=[tool_call("refund_everything", {})]))

    response = api.post(
        "/api/chatbot", json={"message": "refund"}, headers=auth(api, "customer")
    )

    assert response.status_code == 500
    assert response.json()["reply"] == "Sorry, I encountered an error."


@pytest.mark.parametrize("path", [
    "/api/agent/sessions",
    "/api/chat-history/0123456789abcdef01234567",
    "/api/customer-from-session/0123456789abcdef01234567",
    "/api/bookings-for-customer/123456",
])
def test_agent_endpoints_reject_customers(api, path):
    response = api.get(path, headers=auth(api, "customer"))

    assert response.status_code == 403
    assert response.json() == {"detail": "Access Denied"}


def test_agent_endpoints_require_login(api):
    assert api.get("/api/agent/sessions").status_code == 401


def test_bookings_for_customer_newest_departure_first(api):
    response = api.get(
        "/api/bookings-for-customer/123456", headers=auth(api, "agent")
    )

    assert response.status_code == 200
    assert [b["flight_number"] for b in response.json()] == ["AI101", "BA2490"]
    assert response.json()[0]["class"] == "Business"


def test_bookings_for_unknown_customer(api):
    response = api.get(
        "/api/bookings-for-customer/999999", headers=auth(api, "agent")
    )
    assert response.status_code == 404


def test_customer_from_unknown_session(api):
    response = api.get(
        "/api/customer-from-session/0123456789abcdef01234567",
        headers=auth(api, "agent"),
    )
    assert response.status_code == 404


def test_unauthenticated_socket_is_inert(api):
    with api.websocket_connect("/ws/chat") as ws:
        ws.send_json({"event": "customer:startChat"})
        ws.send_json({"event": "chat:message", "data": {"sessionId": "x", "message": "hi"}})
    services = api.app.state.service_container
    assert services.rooms.rooms == {}


def test_malformed_frame_gets_error(api):
    with api.websocket_connect("/ws/chat", headers=auth(api, "customer")) as ws:
        assert ws.receive_json()["event"] == "connected"
        ws.send_text("not json")
        assert ws.receive_json() == {
            "event": "chat:error", "data": {"error": "Malformed frame"}
        }


def test_live_chat_scenario(api):
    customer = api.app.state.users["customer"]
    agent = api.app.state.users["agent"]

    with api.websocket_connect("/ws/chat", headers=auth(api, "agent")) as agent_ws, \
            api.websocket_connect("/ws/chat", headers=auth(api, "customer")) as customer_ws:
        assert agent_ws.receive_json()["event"] == "connected"
        assert customer_ws.receive_json()["event"] == "connected"

        customer_ws.send_json({"event": "customer:startChat"})
        created = customer_ws.receive_json()
        assert created["event"] == "chat:sessionCreated"
        session_id = created["data"]

        notice = agent_ws.receive_json()
        assert notice["event"] == "agent:newSession"
        assert notice["data"]["id"] == session_id
        assert notice["data"]["customer"]["username"] == "carol"

        agent_ws.send_json({"event": "agent:joinSession", "data": session_id})
        expected_join = {"event": "agent:joined", "data": {"agentId": agent.id}}
        assert agent_ws.receive_json() == expected_join
        assert customer_ws.receive_json() == expected_join

        customer_ws.send_json({
            "event": "chat:message",
            "data": {"sessionId": session_id, "message": "hello"},
        })
        for ws in (customer_ws, agent_ws):
            frame = ws.receive_json()
            assert frame["event"] == "chat:message"
            assert frame["data"]["sender"] == customer.id
            assert frame["data"]["message"] == "hello"

    history = api.get(f"/api/chat-history/{session_id}", headers=auth(api, "agent"))
    assert history.status_code == 200
    assert [(m["sender"], m["message"]) for m in history.json()] == [
        (customer.id, "hello")
    ]

    sessions = api.get("/api/agent/sessions", headers=auth(api, "agent")).json()
    assert [(s["id"], s["status"], s["agent_id"]) for s in sessions] == [
        (session_id, "active", agent.id)
    ]

    who = api.get(f"/api/customer-from-session/{session_id}", headers=auth(api, "agent"))
    assert who.json()["customer_id"] == "123456"
    assert who.json()["profile"]["first_name"] == "Carol"


def test_database_failure_keeps_socket_open(api, monkeypatch):
    services = api.app.state.service_container

    async def failing_start(*args, **kwargs):
        raise PyMongoError("db down")

    monkeypatch.setattr(services.session_manager, "start_chat", failing_start)

    with api.websocket_connect("/ws/chat", headers=auth(api, "customer")) as ws:
        assert ws.receive_json()["event"] == "connected"
        ws.send_json({"event": "customer:startChat"})
        assert ws.receive_json() == {
            "event": "chat:error", "data": {"error": "Could not start chat"}
        }
        ws.send_json({"event": "chat:message",
                      "data": {"sessionId": "nope", "message": "hi"}})
        assert ws.receive_json()["event"] == "chat:error"
