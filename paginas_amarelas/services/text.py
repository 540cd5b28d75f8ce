"""Locale-insensitive text matching helpers."""

import re
import unicodedata
from datetime import datetime, timezone

# Combining diacritical marks block (U+0300..U+036F)
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_TOKEN_SEPARATORS = re.compile(r"[\s\-.,:;!?'\"/]+")


def normalize(text: str) -> str:
    """
    Normalize text for accent- and case-insensitive comparison.

    Applies canonical decomposition, strips combining marks and lower-cases
    the result, so ``normalize("Ficção") == "ficcao"``.

    Args:
        text: Arbitrary human text

    Returns:
        The normalized string
    """
    decomposed = unicodedata.normalize("NFD", text)
    return _COMBINING_MARKS.sub("", decomposed).lower()


def tokenize(text: str) -> list[str]:
    """Split normalized text into words on whitespace and punctuation."""
    return [word for word in _TOKEN_SEPARATORS.split(normalize(text)) if word]


def contains_substring(text: str, query: str) -> bool:
    """Whether ``text`` contains ``query``; a blank query always matches."""
    if not query.strip():
        return True
    return normalize(query) in normalize(text)


def starts_with_text(text: str, query: str) -> bool:
    """Whether ``text`` starts with ``query``; a blank query always matches."""
    if not query.strip():
        return True
    return normalize(text).startswith(normalize(query))


def _plural(count: int, singular: str, plural: str) -> str:
    return f"há {count} {singular if count == 1 else plural}"


def format_time_ago(moment: datetime, now: datetime | None = None) -> str:
    """
    Format a timestamp as Portuguese relative time ("há 2 horas").

    Naive datetimes are treated as UTC.

    Args:
        moment: The past timestamp
        now: Reference time, defaults to the current UTC time

    Returns:
        Relative time description
    """
    if now is None:
        now = datetime.now(tz=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "agora"

    minutes = seconds // 60
    if minutes < 60:
        return _plural(minutes, "minuto", "minutos")

    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hora", "horas")

    days = hours // 24
    if days < 7:
        return _plural(days, "dia", "dias")

    if days < 30:
        return _plural(days // 7, "semana", "semanas")

    months = days // 30
    if months < 12:
        return _plural(months, "mês", "meses")

    years = months // 12
    return _plural(years, "ano", "anos")
