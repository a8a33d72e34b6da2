from types import SimpleNamespace

import pytest

from handlers.menu import contact_shared


class _Message:
    def __init__(self, from_id: int, contact_user_id: int | None, phone: str = "+7 900 765-43-21") -> None:
        self.from_user = SimpleNamespace(id=from_id, first_name="Анна")
        self.contact = SimpleNamespace(user_id=contact_user_id, phone_number=phone)
        self.answers: list[str] = []

    async def answer(self, text: str, reply_markup=None, **kwargs) -> None:
        self.answers.append(text)


@pytest.mark.asyncio
async def test_own_contact_is_saved(repo, flows, state, user):
    msg = _Message(user.telegram_id, user.telegram_id)
    await contact_shared(msg, state, user, repo, flows)
    assert (await repo.get_user(user.id)).phone == "+79007654321"
    assert msg.answers[-1].startswith("✅ Номер +79007654321")


@pytest.mark.asyncio
@pytest.mark.parametrize("contact_user_id", [None, 999])
async def test_foreign_or_unlinked_contact_is_rejected(repo, flows, state, user, contact_user_id):
    msg = _Message(user.telegram_id, contact_user_id)
    await contact_shared(msg, state, user, repo, flows)
    assert msg.answers == ["❌ Пожалуйста, отправьте свой собственный контакт."]
    assert (await repo.get_user(user.id)).phone is None
