"""Reply keyboards for the voice bot."""

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove

# Menu labels are matched literally by the dispatcher
MENU_ADD = "Add"
MENU_EDIT = "Edit"
MENU_DELETE = "Delete"
MENU_LIST = "List"


def main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Add / Edit / Delete on top, List below."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [
                KeyboardButton(text=MENU_ADD),
                KeyboardButton(text=MENU_EDIT),
                KeyboardButton(text=MENU_DELETE),
            ],
            [
                KeyboardButton(text=MENU_LIST),
            ],
        ],
        resize_keyboard=True,
    )


def remove_keyboard() -> ReplyKeyboardRemove:
    return ReplyKeyboardRemove(remove_keyboard=True)


def edit_field_keyboard() -> ReplyKeyboardMarkup:
    """Choice of the field to edit."""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text="name"), KeyboardButton(text="description")]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def confirm_keyboard() -> ReplyKeyboardMarkup:
    """Yes / No for delete confirmation."""
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text="Yes"), KeyboardButton(text="No")]],
        resize_keyboard=True,
        one_time_keyboard=True,
    )
