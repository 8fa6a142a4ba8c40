import logging
from typing import List

import polib

from po_validator.models import TranslationEntry

logger = logging.getLogger(__name__)


def _first_translation(entry: polib.POEntry) -> str:
    """Returns msgstr, or the first plural form for entries with msgid_plural."""
    if entry.msgid_plural:
        return entry.msgstr_plural.get(0, '') or ''
    return entry.msgstr or ''


def load_translation_entries(file_path: str) -> List[TranslationEntry]:
    """
    Reads a PO file and returns its translated entries in file order.

    Untranslated entries (empty first translation string) and obsolete
    entries are skipped.

    Args:
        file_path: The path to the .po file.

    Returns:
        A list of TranslationEntry objects.

    Raises:
        OSError: If the file cannot be read or is not valid PO syntax.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()

    # polib reports syntax errors as OSError.
    po = polib.pofile(content)

    entries = []
    skipped = 0
    for entry in po:
        if entry.obsolete:
            continue
        msgstr = _first_translation(entry)
        if not msgstr:
            skipped += 1
            continue
        entries.append(TranslationEntry(msgid=entry.msgid, msgstr=msgstr))

    logger.debug("Loaded %d translated entries from '%s' (%d untranslated skipped).",
                 len(entries), file_path, skipped)
    return entries
