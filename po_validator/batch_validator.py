import json
import logging
from typing import Dict, List, Tuple

import jsonschema

from po_validator.errors import ResponseFormatError, is_model_not_found_error
from po_validator.model_gateway import ChatModel, Message
from po_validator.models import (
    GENERIC_PLACEHOLDER_FIX,
    LINGUISTIC_REVIEW,
    TranslationEntry,
    TranslationIssue,
    ValidationProblem
)
from po_validator.placeholder_checker import check_placeholder_consistency

logger = logging.getLogger(__name__)

# Expected shape of the model's review response. Individual items may be null;
# those are skipped rather than failing the whole batch.
REVIEW_RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["translations"],
    "properties": {
        "translations": {
            "type": "array",
            "items": {
                "type": ["object", "null"],
                "required": ["index"],
                "properties": {
                    "index": {"type": "integer"},
                    "has_issues": {"type": "boolean"},
                    "issues": {"type": "array", "items": {"type": "string"}},
                    "suggested_fix": {"type": ["string", "null"]}
                }
            }
        }
    }
}


def format_batch(batch: List[TranslationEntry]) -> str:
    """Renders a batch as a 1-indexed list of original/translation pairs separated by blank lines."""
    return '\n\n'.join(
        f"{i}. Original: {entry.msgid}\nTranslation: {entry.msgstr}"
        for i, entry in enumerate(batch, 1)
    )


def build_review_messages(batch: List[TranslationEntry], target_language: str) -> List[Message]:
    """Builds the system instruction and user prompt for reviewing one batch."""
    system_prompt = f"""You are a professional {target_language} translation validator. You MUST:
1. Evaluate each translation independently.
2. Only flag translations that are actually incorrect. Do not flag correct translations for stylistic preference
   (for example, "Sveika, pasaule!" is a correct Latvian translation of "Hello, world!").
3. Keep the exact original meaning in any suggested fix.
4. Respond with a single valid JSON object and nothing else.
"""

    user_prompt = f"""Review each translation independently and respond in this JSON format:
{{
  "translations": [
    {{
      "index": number,
      "has_issues": boolean,
      "issues": string[],
      "suggested_fix": string
    }}
  ]
}}

Translations to analyze:
{format_batch(batch)}
"""

    return [
        {'role': 'system', 'content': system_prompt},
        {'role': 'user', 'content': user_prompt},
    ]


def parse_review_response(response_text: str) -> List[Dict]:
    """
    Parses and validates the model's review response.

    Args:
        response_text: The trimmed completion text.

    Returns:
        The list of per-translation verdicts. Null items are dropped.

    Raises:
        ResponseFormatError: If the text does not start with a JSON object.
        json.JSONDecodeError: If the text is not valid JSON.
        jsonschema.ValidationError: If the JSON does not match REVIEW_RESPONSE_SCHEMA.
    """
    if not response_text.startswith('{'):
        raise ResponseFormatError("Response is not in JSON format")

    parsed_json = json.loads(response_text)
    jsonschema.validate(instance=parsed_json, schema=REVIEW_RESPONSE_SCHEMA)
    return [item for item in parsed_json['translations'] if item]


def _dedupe_problems(problems: List[ValidationProblem]) -> List[ValidationProblem]:
    return list(dict.fromkeys(problems))


def build_batch_issues(batch: List[TranslationEntry], verdicts: List[Dict]) -> List[TranslationIssue]:
    """
    Combines the model's verdicts with a placeholder check of each reviewed entry.

    Verdicts whose index does not point into the batch are ignored. A
    linguistic problem is recorded only when the model flagged the entry and
    proposed a fix that differs from the current translation. Several verdicts
    for the same entry produce a single issue.
    """
    issues: Dict[Tuple[str, str], TranslationIssue] = {}
    for verdict in verdicts:
        # The schema accepts integral floats such as 1.0.
        index = int(verdict['index'])
        if not 1 <= index <= len(batch):
            logger.debug("Ignoring verdict with out-of-range index %d.", index)
            continue

        entry = batch[index - 1]
        problems = check_placeholder_consistency(entry.msgid, entry.msgstr)

        suggested_fix = verdict.get('suggested_fix')
        if verdict.get('has_issues') and suggested_fix and suggested_fix != entry.msgstr:
            problems.append(ValidationProblem(
                kind=LINGUISTIC_REVIEW,
                description='\n'.join(verdict.get('issues') or [])
            ))

        if not problems:
            continue

        key = (entry.msgid, entry.msgstr)
        issue = issues.get(key)
        if issue is None:
            issues[key] = TranslationIssue(
                msgid=entry.msgid,
                msgstr=entry.msgstr,
                problems=_dedupe_problems(problems),
                suggested_fix=suggested_fix or GENERIC_PLACEHOLDER_FIX
            )
        else:
            issue.problems = _dedupe_problems(issue.problems + problems)
            if suggested_fix:
                issue.suggested_fix = suggested_fix
    return list(issues.values())


async def validate_batch(
        model: ChatModel,
        batch: List[TranslationEntry],
        target_language: str
) -> List[TranslationIssue]:
    """
    Asks the model to review a batch of translations.

    Args:
        model: The chat model to query.
        batch: The entries to review.
        target_language: The language name of the translations (e.g., "Latvian").

    Returns:
        The issues found in the batch. An empty list if the model call or the
        response parsing failed for any reason other than a missing model.

    Raises:
        Exception: The provider error, if it reports that the model does not exist.
    """
    messages = build_review_messages(batch, target_language)
    try:
        response_text = (await model.generate(messages)).strip()
        verdicts = parse_review_response(response_text)
        return build_batch_issues(batch, verdicts)
    except json.JSONDecodeError as json_exc:
        logger.warning(f"Failed AI validation: model did not return valid JSON. Error: {json_exc}")
    except jsonschema.ValidationError as schema_exc:
        logger.warning(f"Failed AI validation: response did not match the required JSON schema. Error: {schema_exc.message}")
    except Exception as e:
        if is_model_not_found_error(e):
            raise
        logger.warning(f"Failed AI validation: {e}")
    return []
