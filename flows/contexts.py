"""Typed per-flow session contexts.

The FSM data of a session is one of these dataclasses serialized to a dict;
the ``flow`` field tells which one.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar, Mapping, TypeVar, Union

from aiogram.fsm.context import FSMContext

from errors import NotFoundError


@dataclass(slots=True)
class MorningFillContext:
    FLOW: ClassVar[str] = "morning"

    site_name: str | None = None
    bonus_targets: list[int] = field(default_factory=list)
    responsible_lastname: str | None = None
    responsible_firstname: str | None = None


@dataclass(slots=True)
class EveningFillContext:
    FLOW: ClassVar[str] = "evening"

    site_id: str | None = None
    lastname: str | None = None
    firstname: str | None = None
    is_responsible: bool = False
    qr_number: str | None = None
    qr_amount: int | None = None
    cash_amount: int | None = None
    terminal_amount: int | None = None
    comment: str | None = None


@dataclass(slots=True)
class EditContext:
    FLOW: ClassVar[str] = "edit"

    mode: str | None = None
    names: list[str] = field(default_factory=list)
    report_id: str | None = None
    current_field: str | None = None
    # field key -> staged value, committed on "finish"
    pending: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BonusContext:
    FLOW: ClassVar[str] = "bonus"

    site_id: str | None = None
    report_id: str | None = None
    bonus_type: str | None = None


@dataclass(slots=True)
class AdminContext:
    FLOW: ClassVar[str] = "admin"

    site_id: str | None = None


FlowContext = Union[MorningFillContext, EveningFillContext, EditContext, BonusContext, AdminContext]
CONTEXT_TYPES: dict[str, type] = {
    cls.FLOW: cls
    for cls in (MorningFillContext, EveningFillContext, EditContext, BonusContext, AdminContext)
}

C = TypeVar("C", MorningFillContext, EveningFillContext, EditContext, BonusContext, AdminContext)


def context_to_data(ctx: FlowContext) -> dict[str, Any]:
    data = asdict(ctx)
    data["flow"] = ctx.FLOW
    return data


def context_from_data(data: Mapping[str, Any]) -> FlowContext | None:
    cls = CONTEXT_TYPES.get(str(data.get("flow") or ""))
    if cls is None:
        return None
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


async def start_context(state: FSMContext, ctx: FlowContext, new_state) -> None:
    """Replace whatever session the user had with a fresh flow."""
    await state.set_state(new_state)
    await state.set_data(context_to_data(ctx))


async def load_context(state: FSMContext, cls: type[C]) -> C:
    ctx = context_from_data(await state.get_data())
    if not isinstance(ctx, cls):
        raise NotFoundError("session")
    return ctx


async def save_context(state: FSMContext, ctx: FlowContext, new_state=None) -> None:
    await state.update_data(**context_to_data(ctx))
    if new_state is not None:
        await state.set_state(new_state)
