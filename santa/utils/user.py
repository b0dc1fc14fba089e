# santa/utils/user.py

from typing import Optional

def get_display_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    username: Optional[str] = None,
    telegram_id: Optional[int] = None,
) -> str:
    """
    Отображаемое имя пользователя (оно же имя участника при вступлении в событие):
    1. first_name + last_name через пробел (или что из них есть).
    2. Если имени нет - username с @.
    3. Если и username нет - Telegram ID.
    """
    name = " ".join(filter(None, [first_name, last_name])).strip()
    if name:
        return name
    if username:
        return f"@{username}"
    if telegram_id is not None:
        return str(telegram_id)
    return ""
