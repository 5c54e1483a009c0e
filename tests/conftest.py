import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from mongomock_motor import AsyncMongoMockClient
from omegaconf import OmegaConf

from src.backend.chat.service_container import ServiceContainer
from src.backend.models.chat import User, UserRole
from src.backend.websocket.manager import Connection

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "config.yaml"


class RecordingConnection(Connection):
    """Connection that keeps every frame it is sent"""

    def __init__(self, user: User, fail: bool = False):
        super().__init__(user)
        self.frames: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, payload: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(payload)

    def events(self, name: str) -> List[Any]:
        return [f["data"] for f in self.frames if f["event"] == name]


def tool_call(name: str, arguments: Dict[str, Any], call_id: str = "call_1"):
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=json.dumps(arguments)),
    )


def assistant_message(content=None, tool_calls=None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)


class FakeCompletions:
    def __init__(self):
        self.responses: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.responses:
            raise RuntimeError("no scripted model response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(choices=[SimpleNamespace(message=response)])


class FakeLLMClient:
    """Stands in for the OpenAI client; responses are scripted per test"""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def script(self, *responses) -> None:
        self.completions.responses.extend(responses)


@pytest.fixture
def cfg():
    return OmegaConf.load(CONFIG_PATH)


@pytest.fixture
def db():
    return AsyncMongoMockClient()["flight_desk_test"]


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
async def services(cfg, db, llm_client):
    container = ServiceContainer(cfg)
    await container.initialize(db=db, llm_client=llm_client)
    yield container
    await container.cleanup()


async def add_user(db, cfg, username: str, role: UserRole, email: str = None) -> User:
    doc = {
        "username": username,
        "email": email or f"{username}@example.com",
        "role": role.value,
    }
    result = await db[cfg.mongodb.users_collection].insert_one(doc)
    doc["_id"] = result.inserted_id
    return User.from_mongo(doc)


@pytest.fixture
async def customer(db, cfg):
    return await add_user(db, cfg, "carol", UserRole.CUSTOMER)


@pytest.fixture
async def other_customer(db, cfg):
    return await add_user(db, cfg, "dave", UserRole.CUSTOMER)


@pytest.fixture
async def agent(db, cfg):
    return await add_user(db, cfg, "alice", UserRole.AGENT)


@pytest.fixture
async def second_agent(db, cfg):
    return await add_user(db, cfg, "bob", UserRole.AGENT)
