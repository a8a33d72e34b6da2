"""Entities persisted in the key-value store."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Mapping

from services.calculation import CalculationResult, calculate_cash_in_envelope
from utils.bonus_targets import bonus_targets_to_string, parse_bonus_targets

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"

SITE_MORNING_FILLED = "morning_filled"
SITE_EVENING_FILLED = "evening_filled"
SITE_COMPLETED = "completed"

SITE_STATUS_LABELS = {
    SITE_MORNING_FILLED: "Утреннее заполнение",
    SITE_EVENING_FILLED: "Вечерний отчёт",
    SITE_COMPLETED: "Завершено",
}


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def id_sequence(entity_id: str) -> int:
    """``"report_12"`` -> ``12``."""
    try:
        return int(str(entity_id).rsplit("_", 1)[1])
    except (IndexError, ValueError):
        return 0


def _known(cls, record: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in record.items() if k in names}


@dataclass(slots=True)
class User:
    id: str
    telegram_id: int
    username: str | None = None
    phone: str | None = None
    role: str = ROLE_USER
    created_at: str = field(default_factory=utcnow_iso)

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_SUPERADMIN)

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN

    @property
    def display_name(self) -> str:
        return f"@{self.username}" if self.username else f"ID: {self.telegram_id}"

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "User":
        return cls(**_known(cls, record))


@dataclass(slots=True)
class Site:
    id: str
    name: str
    responsible_user_id: str
    responsible_lastname: str
    responsible_firstname: str
    bonus_targets: list[int]
    phone: str
    date: str
    status: str = SITE_MORNING_FILLED
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @property
    def responsible_name(self) -> str:
        return f"{self.responsible_lastname} {self.responsible_firstname}".strip()

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)
        record["bonus_target"] = bonus_targets_to_string(record.pop("bonus_targets"))
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Site":
        data = dict(record)
        raw_targets = data.pop("bonus_target", "")
        data["bonus_targets"] = parse_bonus_targets(str(raw_targets or "")) or []
        data.setdefault("responsible_lastname", "")
        data.setdefault("responsible_firstname", "")
        return cls(**_known(cls, data))


@dataclass(slots=True)
class DailyReport:
    site_id: str
    date: str
    lastname: str
    firstname: str
    qr_number: str
    qr_amount: int
    cash_amount: int
    terminal_amount: int | None = None
    comment: str | None = None
    signature: str | None = None
    responsible_signature: str | None = None
    is_responsible: bool = False
    total_revenue: int = 0
    salary: int = 0
    bonus_by_targets: int = 0
    bonus_penalty: int = 0
    best_revenue_bonus: int = 0
    responsible_salary: int = 0
    responsible_salary_bonus: int = 0
    total_daily: int = 0
    total_cash: int = 0
    total_qr: int = 0
    cash_in_envelope: int = 0
    id: str = ""
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @property
    def full_name(self) -> str:
        return f"{self.lastname} {self.firstname}".strip()

    def apply_calculation(self, result: CalculationResult) -> None:
        self.total_revenue = result.total_revenue
        self.salary = result.salary
        self.responsible_salary = result.responsible_salary
        self.total_daily = result.total_daily
        self.total_cash = result.total_cash
        self.total_qr = result.total_qr

    def recompute_envelope(self) -> int:
        self.cash_in_envelope = calculate_cash_in_envelope(
            self.cash_amount,
            self.bonus_by_targets,
            self.bonus_penalty,
            self.responsible_salary_bonus,
            self.best_revenue_bonus,
        )
        return self.cash_in_envelope

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DailyReport":
        data = _known(cls, record)
        for name in ("bonus_penalty", "best_revenue_bonus", "responsible_salary_bonus", "bonus_by_targets"):
            if data.get(name) is None:
                data[name] = 0
        return cls(**data)


@dataclass(slots=True)
class LogEntry:
    id: str
    user_id: str
    action_type: str
    payload_before: Any = None
    payload_after: Any = None
    timestamp: str = field(default_factory=utcnow_iso)

    def to_record(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LogEntry":
        return cls(**_known(cls, record))
