from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from flows.admin import AdminFlow
from flows.bonus import BonusPenaltyFlow
from flows.chat import CallbackChat, Chat, MessageChat
from flows.edit import EditFlow
from flows.evening import EveningFillFlow
from flows.morning import MorningFillFlow
from flows.navigation import Navigation
from services.repository import Repository
from utils.dates import moscow_today


@dataclass(slots=True)
class FlowSet:
    morning: MorningFillFlow
    evening: EveningFillFlow
    edit: EditFlow
    bonus: BonusPenaltyFlow
    admin: AdminFlow
    navigation: Navigation

    @classmethod
    def create(
        cls,
        repo: Repository,
        *,
        today: Callable[[], str] = moscow_today,
        font_path: str | None = None,
    ) -> "FlowSet":
        morning = MorningFillFlow(repo, today)
        evening = EveningFillFlow(repo, today)
        edit = EditFlow(repo, today)
        return cls(
            morning=morning,
            evening=evening,
            edit=edit,
            bonus=BonusPenaltyFlow(repo, today),
            admin=AdminFlow(repo, today, font_path),
            navigation=Navigation(morning, evening, edit),
        )


__all__ = [
    "FlowSet",
    "Chat",
    "MessageChat",
    "CallbackChat",
    "MorningFillFlow",
    "EveningFillFlow",
    "EditFlow",
    "BonusPenaltyFlow",
    "AdminFlow",
    "Navigation",
]
