# santa/services/invite_code.py
# Инвайт-коды событий и deep-link'и вида t.me/<bot>?startapp=invite_<CODE>[_<uid>_<sig>].
# Хвост _<uid>_<sig> - кто поделился ссылкой (для графа друзей), подписан HMAC.

from __future__ import annotations

import os
import hmac
import base64
import hashlib
import secrets
from typing import Optional, Tuple
from urllib.parse import quote

_PREFIX = "invite"
CODE_LEN = 12
_SIG_LEN = 16
_HEX = set("0123456789ABCDEF")

def _secret() -> bytes:
    s = os.environ.get("INVITE_SECRET") or os.environ.get("TELEGRAM_BOT_TOKEN")
    if not s:
        raise RuntimeError("INVITE_SECRET or TELEGRAM_BOT_TOKEN is not set")
    return s.encode("utf-8")

def _b64url_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("ascii").rstrip("=")

def _sign(code: str, inviter_id: int) -> str:
    payload = f"{code}:{inviter_id}".encode("utf-8")
    mac = hmac.new(_secret(), payload, hashlib.sha256).digest()
    return _b64url_encode(mac)[:_SIG_LEN]

def generate_invite_code() -> str:
    """12 hex-символов в верхнем регистре."""
    return secrets.token_hex(CODE_LEN // 2).upper()

def is_valid_code(code: str) -> bool:
    return len(code) == CODE_LEN and set(code) <= _HEX

def build_start_param(code: str, inviter_id: Optional[int] = None) -> str:
    if inviter_id is None:
        return f"{_PREFIX}_{code}"
    return f"{_PREFIX}_{code}_{inviter_id}_{_sign(code, inviter_id)}"

def build_invite_link(code: str, inviter_id: Optional[int] = None) -> Optional[str]:
    """
    Готовая ссылка для шаринга:
      1) t.me/<bot>?startapp=... если задан TELEGRAM_BOT_USERNAME;
      2) иначе MINI_APP_URL?startapp=...;
      3) иначе None (фронт соберёт сам из start_param).
    """
    param = quote(build_start_param(code, inviter_id))
    bot = (os.environ.get("TELEGRAM_BOT_USERNAME") or "").strip().lstrip("@")
    if bot:
        return f"https://t.me/{bot}?startapp={param}"
    app_url = (os.environ.get("MINI_APP_URL") or "").strip().rstrip("/")
    if app_url:
        return f"{app_url}?startapp={param}"
    return None

def parse_start_param(raw: str) -> Tuple[str, Optional[int]]:
    """
    Разбирает start_param или голый код. Возвращает (code, inviter_id|None).
    Неверная подпись inviter'а - ValueError("bad_signature"), чтобы нельзя было
    подделать дружбу.
    """
    if not raw:
        raise ValueError("bad_code")

    t = raw.strip()
    low = t.lower()
    for pref in ("startapp=", "start=", "code="):
        if low.startswith(pref):
            t = t[len(pref):]
            low = t.lower()

    if low.startswith(_PREFIX + "_"):
        t = t[len(_PREFIX) + 1:]

    parts = t.split("_", 2)
    code = parts[0].upper()
    if not is_valid_code(code):
        raise ValueError("bad_code")

    if len(parts) == 1:
        return code, None
    if len(parts) != 3:
        raise ValueError("bad_format")

    _, uid_str, sig = parts
    try:
        uid = int(uid_str)
    except ValueError:
        raise ValueError("bad_format")

    if not hmac.compare_digest(_sign(code, uid), sig):
        raise ValueError("bad_signature")

    return code, uid
