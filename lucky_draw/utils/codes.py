"""Invite codes and participant session ids."""

from __future__ import annotations

import secrets
import string
import time

# No 0/O or 1/I: codes are read aloud and typed from projector screens.
INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6

_SESSION_ALPHABET = string.ascii_lowercase + string.digits


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


def generate_session_id() -> str:
    """``session_<epoch ms>_<13 random chars>``."""

    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(13))
    return f"session_{int(time.time() * 1000)}_{suffix}"
