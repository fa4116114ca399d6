import re
from datetime import date, datetime, timezone

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def month_tag(value: date) -> str:
    return value.strftime("%Y-%m")


def is_month_tag(value) -> bool:
    return isinstance(value, str) and bool(_MONTH_RE.match(value.strip()))
