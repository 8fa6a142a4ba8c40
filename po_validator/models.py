"""Data types shared by the checker, the batch validator and the file validator."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Problem kinds
PLACEHOLDER_MISMATCH = 'placeholder_mismatch'
LINGUISTIC_REVIEW = 'linguistic_review'
GRAMMAR_ISSUE = 'grammar_issue'
PROBLEM_KINDS = (PLACEHOLDER_MISMATCH, LINGUISTIC_REVIEW, GRAMMAR_ISSUE)

# Providers
PROVIDER_OLLAMA = 'ollama'
PROVIDER_OPENAI = 'openai'
PROVIDER_ANTHROPIC = 'anthropic'
SUPPORTED_PROVIDERS = (PROVIDER_OLLAMA, PROVIDER_OPENAI, PROVIDER_ANTHROPIC)

# Suggested fix attached to issues found by the technical pass alone.
GENERIC_PLACEHOLDER_FIX = 'Ensure all placeholders are present in translation'


@dataclass(frozen=True)
class TranslationEntry:
    """An original string and its (non-empty) translation."""
    msgid: str
    msgstr: str


@dataclass(frozen=True)
class ValidationProblem:
    """A single finding about a translation."""
    kind: str
    description: str

    def __post_init__(self):
        if self.kind not in PROBLEM_KINDS:
            raise ValueError(f"Unknown problem kind: {self.kind}")

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.kind, 'description': self.description}


@dataclass
class TranslationIssue:
    """All problems found for one (msgid, msgstr) pair, plus a suggested fix."""
    msgid: str
    msgstr: str
    problems: List[ValidationProblem] = field(default_factory=list)
    suggested_fix: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return self.msgid, self.msgstr

    def to_dict(self) -> Dict:
        return {
            'msgid': self.msgid,
            'msgstr': self.msgstr,
            'problems': [problem.to_dict() for problem in self.problems],
            'suggested_fix': self.suggested_fix,
        }


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Selects and parameterises the model provider.

    ``model_name``, ``api_key`` and ``base_url`` fall back to provider defaults
    when omitted. ``requests_per_minute`` enables client-side rate limiting.
    """
    provider: str
    model_name: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    requests_per_minute: Optional[int] = None
