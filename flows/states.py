from aiogram.fsm.state import State, StatesGroup


class MorningFillFSM(StatesGroup):
    site_name = State()
    bonus_target = State()
    responsible_lastname = State()
    responsible_firstname = State()
    phone = State()


class EveningFillFSM(StatesGroup):
    select_site = State()
    lastname = State()
    firstname = State()
    qr_number = State()
    qr_amount = State()
    cash_amount = State()
    terminal_amount = State()
    comment = State()
    confirm = State()
    # report saved, site kept for the next employee
    idle = State()


class EditFSM(StatesGroup):
    select_mode = State()
    select_name = State()
    select_site = State()
    select_report = State()
    menu = State()
    value = State()


class BonusFSM(StatesGroup):
    select_site = State()
    select_employee = State()
    select_type = State()
    input_amount = State()


class AdminFSM(StatesGroup):
    history_site = State()
    history_report = State()
    add_admin = State()
    remove_admin = State()


# Order used by "Назад" in the evening flow
EVENING_ORDER = [
    EveningFillFSM.lastname,
    EveningFillFSM.firstname,
    EveningFillFSM.qr_number,
    EveningFillFSM.qr_amount,
    EveningFillFSM.cash_amount,
    EveningFillFSM.terminal_amount,
    EveningFillFSM.comment,
    EveningFillFSM.confirm,
]
