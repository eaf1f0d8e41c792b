from __future__ import annotations

import os
from datetime import datetime, timezone
from uuid import uuid4


def _date_path(dt: datetime | None) -> str:
    # 폴더는 YYYY/MM/DD (UTC 기준)
    base = dt or datetime.now(timezone.utc)
    return base.strftime("%Y/%m/%d")


def _ext_from_filename(filename: str) -> str:
    _, ext = os.path.splitext((filename or "").lower())
    return ext


def sanitize_filename(filename: str) -> str:
    """Strip directory components and replace anything outside [A-Za-z0-9.-] with '_'."""
    # Both separators: browsers on Windows still send "C:\\fakepath\\x.png".
    basename = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    return "".join(ch if (ch.isascii() and ch.isalnum()) or ch in ".-" else "_" for ch in basename)


def folder_object_key(*, folder: str, filename: str, now: datetime | None = None) -> str:
    # folder 예: repairs -> repairs/YYYY/MM/DD/{uuid}.png
    ext = _ext_from_filename(filename)
    return f"{folder.strip('/')}/{_date_path(now)}/{uuid4().hex}{ext}"
