"""Helpers shared across the portal."""

from typing import Iterable, List, Optional, Union
from datetime import datetime

from pytz import UTC


def now() -> datetime:
    """Get the current time, in UTC."""
    return datetime.now(tz=UTC)


def normalize_email(email: Optional[str]) -> str:
    """E-mail addresses are compared trimmed and lower-cased."""
    if email is None:
        return ''
    return str(email).strip().lower()


def normalize_keywords(keywords: Union[str, Iterable[str], None]) -> List[str]:
    """
    Coerce keywords to an ordered list.

    Keywords may arrive as a single comma-delimited string, as a list of
    strings, or as a list whose items are themselves comma-delimited (e.g.
    repeated form fields). Blank entries are dropped; order is preserved.

    Parameters
    ----------
    keywords : str or iterable of str

    Returns
    -------
    list

    """
    if keywords is None:
        return []
    if isinstance(keywords, str):
        keywords = [keywords]
    return [keyword.strip()
            for item in keywords for keyword in str(item).split(',')
            if keyword.strip()]
