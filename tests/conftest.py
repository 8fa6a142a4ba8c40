import json
import logging
import os
import textwrap
from unittest.mock import AsyncMock, MagicMock

import pytest

from po_validator.logging_config import PROVIDER_LOGGERS
from po_validator.model_gateway import ChatModel


SAMPLE_PO_CONTENT = textwrap.dedent('''\
    msgid ""
    msgstr ""
    "Content-Type: text/plain; charset=UTF-8\\n"
    "Language: lv\\n"

    msgid "You have %d courses"
    msgstr "Tu esi pabeidzis kursus"

    msgid "Hello, world!"
    msgstr "Sveika, pasaule!"

    msgid "Untranslated %s"
    msgstr ""
''')


def review_response(*verdicts):
    """Builds a model response text containing the given per-translation verdicts."""
    return json.dumps({"translations": list(verdicts)})


def verdict(index, has_issues=False, issues=None, suggested_fix=""):
    return {
        "index": index,
        "has_issues": has_issues,
        "issues": issues or [],
        "suggested_fix": suggested_fix,
    }


def make_model(*responses):
    """
    Creates a ChatModel double whose generate() returns the given responses in order.
    Exceptions in ``responses`` are raised instead.
    """
    model = MagicMock(spec=ChatModel)
    model.generate = AsyncMock(side_effect=list(responses))
    return model


@pytest.fixture
def write_po_file(tmp_path):
    """Factory fixture writing PO content to a temporary file and returning its path."""
    def _write(content=SAMPLE_PO_CONTENT, name='messages.po'):
        path = os.path.join(tmp_path, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path
    return _write


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler, level and propagation changes made by setup_logger."""
    logger = logging.getLogger("po_validator")
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    provider_levels = {name: logging.getLogger(name).level for name in PROVIDER_LOGGERS}
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)
    for name, provider_level in provider_levels.items():
        logging.getLogger(name).setLevel(provider_level)
