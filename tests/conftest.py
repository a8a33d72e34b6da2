from __future__ import annotations

from typing import Any

import pytest
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey

from flows import FlowSet
from flows.states import EveningFillFSM
from services.kv import MemoryKVStore
from services.models import ROLE_ADMIN, ROLE_SUPERADMIN
from services.repository import Repository
from services.session_storage import KVSessionStorage

TODAY = "2025-12-03"


class FakeChat:
    """Records everything a flow sends."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Any]] = []
        self.edited: list[tuple[str, Any]] = []
        self.documents: list[tuple[bytes, str, str | None]] = []

    async def answer(self, text: str, reply_markup: Any = None) -> None:
        self.sent.append((text, reply_markup))

    async def edit(self, text: str, reply_markup: Any = None) -> None:
        self.edited.append((text, reply_markup))

    async def answer_document(self, data: bytes, filename: str, caption: str | None = None) -> None:
        self.documents.append((data, filename, caption))

    @property
    def last_text(self) -> str:
        return self.sent[-1][0]

    @property
    def last_markup(self) -> Any:
        return self.sent[-1][1]

    def all_text(self) -> str:
        return "\n".join(text for text, _ in self.sent + self.edited)

    def reset(self) -> None:
        self.sent.clear()
        self.edited.clear()
        self.documents.clear()


def buttons(markup: Any) -> list[tuple[str, str | None]]:
    rows = getattr(markup, "inline_keyboard", None) or getattr(markup, "keyboard", None) or []
    return [(btn.text, getattr(btn, "callback_data", None)) for row in rows for btn in row]


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def repo(kv) -> Repository:
    return Repository(kv)


@pytest.fixture
def storage(kv) -> KVSessionStorage:
    return KVSessionStorage(kv)


@pytest.fixture
def flows(repo) -> FlowSet:
    return FlowSet.create(repo, today=lambda: TODAY)


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def make_state(storage):
    def factory(user) -> FSMContext:
        key = StorageKey(bot_id=1, chat_id=user.telegram_id, user_id=user.telegram_id)
        return FSMContext(storage=storage, key=key)

    return factory


@pytest.fixture
async def user(repo):
    return await repo.create_user(1001, "resp")


@pytest.fixture
async def other_user(repo):
    return await repo.create_user(1002, "other")


@pytest.fixture
async def admin(repo):
    return await repo.create_user(2001, "boss", ROLE_ADMIN)


@pytest.fixture
async def superadmin(repo):
    return await repo.create_user(3001, "owner", ROLE_SUPERADMIN)


@pytest.fixture
def state(make_state, user) -> FSMContext:
    return make_state(user)


@pytest.fixture
def make_site(repo):
    async def factory(owner, name: str = "Парк Горького", targets=(1000, 2000, 3000)):
        return await repo.create_site(
            name=name,
            responsible_user_id=owner.id,
            responsible_lastname="Иванова",
            responsible_firstname="Анна",
            bonus_targets=list(targets),
            phone="+79001234567",
            date=TODAY,
            status="morning_filled",
        )

    return factory


@pytest.fixture
def fill_evening(flows, make_state):
    """Runs the evening flow to the saved report; returns the chat used."""

    async def runner(owner, qr: str, cash: str, terminal: str | None = None, name: tuple[str, str] | None = None):
        chat = FakeChat()
        state = make_state(owner)
        await flows.evening.start(chat, state, owner)
        current = await state.get_state()
        if current == EveningFillFSM.select_site.state:
            raise AssertionError("more than one site available, pick one explicitly")
        if current == EveningFillFSM.lastname.state:
            lastname, firstname = name or ("Петров", "Пётр")
            await flows.evening.lastname(chat, state, owner, lastname)
            await flows.evening.firstname(chat, state, owner, firstname)
        await flows.evening.qr_number(chat, state, owner, "QR-1")
        await flows.evening.qr_amount(chat, state, owner, qr)
        await flows.evening.cash_amount(chat, state, owner, cash)
        if terminal is None:
            await flows.evening.skip_terminal_amount(chat, state, owner)
        else:
            await flows.evening.terminal_amount(chat, state, owner, terminal)
        await flows.evening.skip_comment(chat, state, owner)
        await flows.evening.confirm(chat, state, owner)
        return chat

    return runner


@pytest.fixture
def today() -> str:
    return TODAY
