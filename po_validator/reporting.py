"""Progress events emitted during validation, and rendering of the final report."""
import logging
from typing import Dict, List

from po_validator.models import TranslationIssue

logger = logging.getLogger(__name__)


class ValidationObserver:
    """
    Receives progress events from TranslationValidator.

    All methods are no-ops; subclasses override the events they care about.
    """

    def on_entries_loaded(self, file_path: str, count: int) -> None:
        pass

    def on_technical_pass_complete(self, issue_count: int) -> None:
        pass

    def on_batch_started(self, index: int, total: int) -> None:
        pass

    def on_ai_validation_failed(self, error: BaseException) -> None:
        pass

    def on_validation_complete(self, issues: List[TranslationIssue], ai_validation_successful: bool) -> None:
        pass


class LoggingObserver(ValidationObserver):
    """Writes the progress and summary trace of a validation run to the log."""

    def on_entries_loaded(self, file_path: str, count: int) -> None:
        logger.info(f"Processing {count} translations from '{file_path}'...")
        logger.info("=== Technical Validation ===")

    def on_technical_pass_complete(self, issue_count: int) -> None:
        logger.info(f"Found {issue_count} technical issues.")
        logger.info("=== AI Validation ===")

    def on_batch_started(self, index: int, total: int) -> None:
        logger.debug(f"Processing batch {index}/{total}...")

    def on_ai_validation_failed(self, error: BaseException) -> None:
        logger.error(f"AI validation failed: {error}")
        logger.warning("Only technical validation results are available.")

    def on_validation_complete(self, issues: List[TranslationIssue], ai_validation_successful: bool) -> None:
        if ai_validation_successful:
            logger.info("AI validation completed successfully.")
        logger.info("=== Summary ===")
        logger.info("Technical Validation: Complete")
        logger.info(f"AI Validation: {'Complete' if ai_validation_successful else 'Failed'}")
        logger.info(f"Total issues found: {len(issues)}")

        for number, issue in enumerate(issues, 1):
            lines = [
                f"Issue {number}:",
                f"Original: {issue.msgid}",
                f"Translation: {issue.msgstr}",
            ]
            if issue.problems:
                lines.append("Problems:")
                lines.extend(f"- [{problem.kind}] {problem.description}" for problem in issue.problems)
            lines.append(f"Suggested Fix: {issue.suggested_fix}")
            logger.info('\n'.join(lines))


def format_issue_report(results: Dict[str, List[TranslationIssue]]) -> str:
    """
    Renders validation results as a Markdown report.

    Args:
        results: Issues per validated file path, in the order the files were validated.

    Returns:
        The report text. Files without issues are listed as passing.
    """
    total = sum(len(issues) for issues in results.values())
    parts = ["## Translation Validation Report\n\n"]
    if total == 0:
        parts.append("No translation issues found.\n")
        return ''.join(parts)

    parts.append(f"Found {total} issue(s) in {sum(1 for i in results.values() if i)} file(s).\n\n")
    for file_path, issues in results.items():
        if not issues:
            parts.append(f"### ✅ `{file_path}`\n\n")
            continue
        parts.append(f"### 📄 `{file_path}`\n")
        for issue in issues:
            parts.append(f"- **Original:** `{issue.msgid}`\n")
            parts.append(f"  **Translation:** `{issue.msgstr}`\n")
            for problem in issue.problems:
                description = problem.description.replace('\n', ' ')
                parts.append(f"  - [{problem.kind}] {description}\n")
            parts.append(f"  **Suggested fix:** {issue.suggested_fix}\n")
        parts.append("\n")
    return ''.join(parts)
