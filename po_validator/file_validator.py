import logging
from typing import List, Optional

from tqdm import tqdm

from po_validator.batch_validator import validate_batch
from po_validator.model_gateway import ChatModel, create_chat_model
from po_validator.models import (
    GENERIC_PLACEHOLDER_FIX,
    PLACEHOLDER_MISMATCH,
    TranslationEntry,
    TranslationIssue,
    ValidatorConfig
)
from po_validator.placeholder_checker import check_placeholder_consistency
from po_validator.po_loader import load_translation_entries
from po_validator.reporting import LoggingObserver, ValidationObserver

DEFAULT_BATCH_SIZE = 10

logger = logging.getLogger(__name__)


def chunk_entries(entries: List[TranslationEntry], batch_size: int) -> List[List[TranslationEntry]]:
    """
    Splits entries into contiguous batches of at most ``batch_size``, preserving order.

    Raises:
        ValueError: If batch_size is smaller than 1.
    """
    if batch_size < 1:
        raise ValueError(f"Batch size must be at least 1, got {batch_size}")
    return [entries[i:i + batch_size] for i in range(0, len(entries), batch_size)]


def run_technical_pass(entries: List[TranslationEntry]) -> List[TranslationIssue]:
    """Checks the placeholders of every entry and returns one issue per mismatching entry."""
    issues = []
    for entry in entries:
        problems = check_placeholder_consistency(entry.msgid, entry.msgstr)
        if problems:
            issues.append(TranslationIssue(
                msgid=entry.msgid,
                msgstr=entry.msgstr,
                problems=problems,
                suggested_fix=GENERIC_PLACEHOLDER_FIX
            ))
    return issues


def merge_batch_issues(all_issues: List[TranslationIssue], batch_issues: List[TranslationIssue]) -> None:
    """
    Merges issues returned for one batch into the accumulated issue list, in place.

    An issue for an already known (msgid, msgstr) pair extends that issue's
    problems and replaces its suggested fix, unless the new fix is the generic
    placeholder advice. Unknown pairs are appended.

    Placeholder problems are derived deterministically from the entry, so one
    already recorded on the issue is not added again. Other problems are
    always appended.
    """
    for batch_issue in batch_issues:
        existing_issue = next((issue for issue in all_issues if issue.key == batch_issue.key), None)
        if existing_issue is None:
            all_issues.append(batch_issue)
            continue

        for problem in batch_issue.problems:
            if problem.kind == PLACEHOLDER_MISMATCH and problem in existing_issue.problems:
                continue
            existing_issue.problems.append(problem)
        if batch_issue.suggested_fix != GENERIC_PLACEHOLDER_FIX:
            existing_issue.suggested_fix = batch_issue.suggested_fix


class TranslationValidator:
    """
    Validates the translations of PO files.

    Every translated entry gets a placeholder check; the entries are then sent
    to the configured model in batches for a linguistic review, and both
    result sets are merged per (msgid, msgstr) pair.
    """

    def __init__(self, config: ValidatorConfig, observer: Optional[ValidationObserver] = None,
                 model: Optional[ChatModel] = None, show_progress: bool = True):
        """
        Args:
            config: Selects the model provider. Validated immediately.
            observer: Receives progress events. Defaults to a LoggingObserver.
            model: A pre-built chat model, used instead of building one from config.
            show_progress: Whether to display a progress bar over batches.

        Raises:
            ConfigurationError: If the provider is unknown or a required API key is missing.
        """
        self.config = config
        self.model = model if model is not None else create_chat_model(config)
        self.observer = observer if observer is not None else LoggingObserver()
        self.show_progress = show_progress

    async def validate_po_file(self, file_path: str, target_language: str,
                               batch_size: int = DEFAULT_BATCH_SIZE) -> List[TranslationIssue]:
        """
        Validates all translated entries of a PO file.

        Args:
            file_path: The path to the .po file.
            target_language: The language name of the translations (e.g., "Latvian").
            batch_size: The number of entries sent to the model per request.

        Returns:
            The merged list of issues, technical issues first in file order,
            followed by issues only the model reported.

        Raises:
            OSError: If the file cannot be read or parsed.
            ValueError: If batch_size is smaller than 1.
        """
        # Reject a bad batch size before touching the file.
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")

        try:
            entries = load_translation_entries(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error processing PO file '{file_path}': {e}")
            raise

        self.observer.on_entries_loaded(file_path, len(entries))

        all_issues = run_technical_pass(entries)
        self.observer.on_technical_pass_complete(len(all_issues))

        batches = chunk_entries(entries, batch_size)
        ai_validation_successful = True
        try:
            for index, batch in enumerate(
                    tqdm(batches, desc=f"Reviewing {file_path}", unit="batch", disable=not self.show_progress), 1):
                self.observer.on_batch_started(index, len(batches))
                batch_issues = await validate_batch(self.model, batch, target_language)
                merge_batch_issues(all_issues, batch_issues)
        except Exception as ai_exc:
            ai_validation_successful = False
            self.observer.on_ai_validation_failed(ai_exc)

        self.observer.on_validation_complete(all_issues, ai_validation_successful)
        return all_issues
