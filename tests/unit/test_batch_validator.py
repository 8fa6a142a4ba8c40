import json
import unittest

import jsonschema
import pytest

from conftest import make_model, review_response, verdict
from po_validator.batch_validator import (
    build_batch_issues,
    build_review_messages,
    format_batch,
    parse_review_response,
    validate_batch
)
from po_validator.errors import ResponseFormatError
from po_validator.models import (
    GENERIC_PLACEHOLDER_FIX,
    LINGUISTIC_REVIEW,
    PLACEHOLDER_MISMATCH,
    TranslationEntry,
    ValidationProblem
)

BATCH = [
    TranslationEntry(msgid="You have %d courses", msgstr="Tu esi pabeidzis kursus"),
    TranslationEntry(msgid="Hello, world!", msgstr="Sveika, pasaule!"),
    TranslationEntry(msgid="Save", msgstr="Dzēst"),
]


class TestPromptBuilding:

    def test_format_batch_numbers_entries_from_one(self):
        formatted = format_batch(BATCH[:2])

        assert formatted == (
            "1. Original: You have %d courses\nTranslation: Tu esi pabeidzis kursus"
            "\n\n"
            "2. Original: Hello, world!\nTranslation: Sveika, pasaule!"
        )

    def test_review_messages(self):
        messages = build_review_messages(BATCH, "Latvian")

        assert [m['role'] for m in messages] == ['system', 'user']
        assert "Latvian" in messages[0]['content']
        assert "JSON" in messages[0]['content']
        assert '"suggested_fix": string' in messages[1]['content']
        assert messages[1]['content'].rstrip().endswith(format_batch(BATCH))


class TestParseReviewResponse:

    def test_valid_response(self):
        verdicts = parse_review_response(review_response(verdict(1), verdict(2, True, ["Wrong word"], "Fix")))

        assert [v['index'] for v in verdicts] == [1, 2]

    def test_null_items_are_dropped(self):
        verdicts = parse_review_response('{"translations": [null, {"index": 1, "has_issues": false}]}')

        assert verdicts == [{"index": 1, "has_issues": False}]

    def test_rejects_text_that_is_not_a_json_object(self):
        with pytest.raises(ResponseFormatError, match="not in JSON format"):
            parse_review_response("Here is my review: {}")

    def test_rejects_malformed_json(self):
        with pytest.raises(json.JSONDecodeError):
            parse_review_response('{"translations": [')

    def test_rejects_schema_violations(self):
        with pytest.raises(jsonschema.ValidationError):
            parse_review_response('{"results": []}')
        with pytest.raises(jsonschema.ValidationError):
            parse_review_response('{"translations": [{"index": "one"}]}')


class TestBuildBatchIssues:

    def test_placeholder_problem_is_rederived(self):
        issues = build_batch_issues(BATCH, [verdict(1)])

        assert len(issues) == 1
        assert issues[0].msgid == "You have %d courses"
        assert [p.kind for p in issues[0].problems] == [PLACEHOLDER_MISMATCH]
        assert issues[0].suggested_fix == GENERIC_PLACEHOLDER_FIX

    def test_linguistic_problem_requires_a_different_fix(self):
        issues = build_batch_issues(BATCH, [
            verdict(2, True, ["Looks odd"], "Sveika, pasaule!"),
            verdict(3, True, ["'Dzēst' means delete", "Use 'Saglabāt'"], "Saglabāt"),
        ])

        assert len(issues) == 1
        assert issues[0].msgid == "Save"
        assert issues[0].problems == [ValidationProblem(
            kind=LINGUISTIC_REVIEW, description="'Dzēst' means delete\nUse 'Saglabāt'")]
        assert issues[0].suggested_fix == "Saglabāt"

    def test_flag_without_fix_is_ignored(self):
        assert build_batch_issues(BATCH, [verdict(3, True, ["Wrong"], "")]) == []

    def test_combined_problems_keep_order(self):
        issues = build_batch_issues(BATCH, [verdict(1, True, ["Missing count"], "Tev ir %d kursi")])

        assert [p.kind for p in issues[0].problems] == [PLACEHOLDER_MISMATCH, LINGUISTIC_REVIEW]
        assert issues[0].suggested_fix == "Tev ir %d kursi"

    def test_duplicate_verdicts_produce_one_issue(self):
        issues = build_batch_issues(BATCH, [
            verdict(1),
            verdict(1),
            verdict(3, True, ["Means delete"], "Saglabāt"),
            verdict(3, True, ["Means delete"], "Saglabāt"),
        ])

        assert [issue.msgid for issue in issues] == ["You have %d courses", "Save"]
        assert all(len(issue.problems) == 1 for issue in issues)
        assert issues[1].suggested_fix == "Saglabāt"

    def test_integral_float_index_is_accepted(self):
        issues = build_batch_issues(BATCH, [verdict(3.0, True, ["Means delete"], "Saglabāt")])

        assert [issue.msgid for issue in issues] == ["Save"]

    def test_out_of_range_indices_are_ignored(self):
        assert build_batch_issues(BATCH, [verdict(0, True, ["x"], "y"), verdict(4, True, ["x"], "y")]) == []


class TestValidateBatch(unittest.IsolatedAsyncioTestCase):

    async def test_returns_issues_from_model_response(self):
        model = make_model("  " + review_response(verdict(1), verdict(2), verdict(3, True, ["Wrong"], "Saglabāt")) + "\n")

        issues = await validate_batch(model, BATCH, "Latvian")

        self.assertEqual([issue.msgid for issue in issues], ["You have %d courses", "Save"])
        model.generate.assert_awaited_once()
        messages = model.generate.call_args.args[0]
        self.assertIn("Latvian", messages[0]['content'])

    async def test_float_index_keeps_the_other_verdicts(self):
        model = make_model('{"translations": ['
                           '{"index": 1.0, "has_issues": false},'
                           '{"index": 3, "has_issues": true, "issues": ["Means delete"], "suggested_fix": "Saglabāt"}]}')

        issues = await validate_batch(model, BATCH, "Latvian")

        self.assertEqual([issue.msgid for issue in issues], ["You have %d courses", "Save"])

    async def test_non_json_response_yields_no_issues(self):
        model = make_model("I think all translations are fine.")

        with self.assertLogs('po_validator.batch_validator', level='WARNING') as logs:
            issues = await validate_batch(model, BATCH, "Latvian")

        self.assertEqual(issues, [])
        self.assertIn("not in JSON format", logs.output[0])

    async def test_schema_violation_yields_no_issues(self):
        model = make_model('{"translations": "none"}')

        with self.assertLogs('po_validator.batch_validator', level='WARNING'):
            issues = await validate_batch(model, BATCH, "Latvian")

        self.assertEqual(issues, [])

    async def test_network_error_yields_no_issues(self):
        model = make_model(ConnectionError("Connection reset by peer"))

        with self.assertLogs('po_validator.batch_validator', level='WARNING'):
            issues = await validate_batch(model, BATCH, "Latvian")

        self.assertEqual(issues, [])

    async def test_model_not_found_is_raised(self):
        model = make_model(RuntimeError("model 'llama9' not found, try pulling it first"))

        with self.assertRaises(RuntimeError):
            await validate_batch(model, BATCH, "Latvian")


if __name__ == '__main__':
    unittest.main()
