import re
from datetime import date, datetime, timedelta, timezone
try:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
except ImportError:
    ZoneInfo = None
    ZoneInfoNotFoundError = KeyError

from app.config import APP_TIMEZONE

def _tz():
    if ZoneInfo is None:
        return None
    try:
        return ZoneInfo(APP_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return None

_TZ = _tz()

def agora():
    now_utc = datetime.now(timezone.utc)
    if _TZ is not None:
        return now_utc.astimezone(_TZ)
    # sem base de fusos: horário de Brasília fixo
    return now_utc.astimezone(timezone(timedelta(hours=-3)))

def hoje():
    return agora().date()

def parse_data_iso(s):
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    t = str(s or "").strip()
    m = re.match(r'^(\d{4})-(\d{2})-(\d{2})', t)
    if m:
        y, m_, d = m.groups()
    else:
        m = re.match(r'^(\d{2})[./-](\d{2})[./-](\d{4})$', t)
        if not m:
            return None
        d, m_, y = m.groups()
    try:
        return date(int(y), int(m_), int(d))
    except ValueError:
        return None
