"""
Command-line entry point: validates the translations of one or more PO files.

Files and settings come from the command line, falling back to config.yaml.
Exits with status 1 if any issue was found or a file could not be validated,
and with status 2 on configuration errors.
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Dict, List, Optional

from po_validator.app_config import AppConfig, load_app_config
from po_validator.errors import ConfigurationError
from po_validator.file_validator import TranslationValidator
from po_validator.models import TranslationIssue
from po_validator.reporting import format_issue_report

logger = logging.getLogger("po_validator")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate translations in gettext PO files.")
    parser.add_argument('po_files', nargs='*', help="PO files to validate (default: po_files from config)")
    parser.add_argument('--language', help="Target language name, e.g. 'Latvian' (default: target_language from config)")
    parser.add_argument('--batch-size', type=int, help="Translations per model request (default: batch_size from config)")
    parser.add_argument('--report', help="Write a Markdown (or, for .json paths, JSON) report to this path (default: report_path from config)")
    return parser.parse_args(argv)


async def validate_files(
        validator: TranslationValidator,
        po_files: List[str],
        target_language: str,
        batch_size: int
) -> Dict[str, Optional[List[TranslationIssue]]]:
    """
    Validates files one after another.

    Returns:
        Issues per file path. A file that could not be loaded maps to None.
    """
    results: Dict[str, Optional[List[TranslationIssue]]] = {}
    for po_file in po_files:
        try:
            results[po_file] = await validator.validate_po_file(po_file, target_language, batch_size)
        except (OSError, UnicodeDecodeError):
            logger.exception("Skipping '%s': the file could not be loaded", po_file)
            results[po_file] = None
    return results


def write_report(report_path: str, results: Dict[str, Optional[List[TranslationIssue]]]) -> None:
    """
    Writes the results to ``report_path``: JSON if the path ends in .json, Markdown otherwise.
    Files that could not be loaded are listed separately (as null in JSON).
    """
    report_dir = os.path.dirname(report_path)
    if report_dir:
        os.makedirs(report_dir, exist_ok=True)

    if report_path.endswith('.json'):
        serialisable = {
            path: None if issues is None else [issue.to_dict() for issue in issues]
            for path, issues in results.items()
        }
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(serialisable, f, ensure_ascii=False, indent=2)
        logger.info(f"Report written to {report_path}")
        return

    loaded = {path: issues for path, issues in results.items() if issues is not None}
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write(format_issue_report(loaded))
        failed = [path for path, issues in results.items() if issues is None]
        if failed:
            f.write("\n## ⚠️ Files that could not be validated\n\n")
            for path in failed:
                f.write(f"- `{path}`\n")
    logger.info(f"Report written to {report_path}")


def main(argv: Optional[List[str]] = None, app_config: Optional[AppConfig] = None) -> int:
    """
    Runs the validation and returns the process exit status.
    """
    args = parse_args(argv)
    if app_config is None:
        app_config = load_app_config()

    po_files = args.po_files or app_config.po_files
    target_language = args.language or app_config.target_language
    batch_size = args.batch_size if args.batch_size is not None else app_config.batch_size
    report_path = args.report or app_config.report_path

    if not po_files:
        logger.error("No PO files given on the command line or in the configuration.")
        return 2
    if not target_language:
        logger.error("No target language given. Use --language or set target_language in the configuration.")
        return 2
    if batch_size < 1:
        logger.error(f"Batch size must be at least 1, got {batch_size}.")
        return 2

    try:
        validator = TranslationValidator(app_config.validator_config)
    except ConfigurationError as config_exc:
        logger.critical(f"Invalid validator configuration: {config_exc}")
        return 2

    results = asyncio.run(validate_files(validator, po_files, target_language, batch_size))

    if report_path:
        write_report(report_path, results)

    failed_files = sum(1 for issues in results.values() if issues is None)
    total_issues = sum(len(issues) for issues in results.values() if issues)
    logger.info(f"Validated {len(results) - failed_files} file(s): {total_issues} issue(s) found, "
                f"{failed_files} file(s) could not be loaded.")
    return 1 if total_issues or failed_files else 0


if __name__ == "__main__":
    sys.exit(main())
