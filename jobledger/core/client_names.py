from __future__ import annotations

from jobledger.core.schema import UNKNOWN_CLIENT

TITLE_MARKER = "for "
NOTES_MARKER = "Client: "


def _from_title(title: str | None) -> str | None:
    if not title or TITLE_MARKER not in title:
        return None
    candidate = title.split(TITLE_MARKER)[1].strip(" \t")
    return candidate or None


def _from_notes(notes: str | None) -> str | None:
    if not notes or NOTES_MARKER not in notes:
        return None
    candidate = notes.split(NOTES_MARKER)[1].split("\n")[0].strip(" \t")
    return candidate or None


def extract_client_name(title: str | None, notes: str | None = None) -> str:
    """Best-effort client name from ``"<job> for <client>"`` titles or ``Client:`` notes."""

    return _from_title(title) or _from_notes(notes) or UNKNOWN_CLIENT
