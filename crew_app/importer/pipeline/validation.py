"""
Row validation rules for crew uploads.

Each rule has a stable ``code`` and yields structured issues. Required-field
rules report ``missing`` issues; format rules only run once the field is
present and report ``format`` issues.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Sequence

from crew_app.importer.contracts import PASSWORD_MIN_LENGTH
from crew_app.importer.errors import ValidationError

IssueKind = Literal["missing", "format"]

_PIN_REGEX = re.compile(r"[0-9]{4}")


@dataclass(frozen=True)
class ValidationIssue:
    """
    Single validation finding for a row.

    Attributes:
        code: Stable rule identifier (e.g., ``CREW_PIN_FORMAT``).
        field: Logical field the issue applies to.
        message: Operator-facing text including the upload line number.
        kind: ``missing`` for absent required values, ``format`` otherwise.
    """

    code: str
    field: str
    message: str
    kind: IssueKind


@dataclass(frozen=True)
class RowRule:
    """Declarative rule evaluated against resolved row fields."""

    code: str
    field: str
    description: str

    def evaluate(self, fields: object, line_number: int) -> Iterable[ValidationIssue]:
        raise NotImplementedError


def _value(fields: object, name: str) -> str:
    if isinstance(fields, Mapping):
        raw = fields.get(name)
    else:
        raw = getattr(fields, name, None)
    if raw is None:
        return ""
    return str(raw).strip()


@dataclass(frozen=True)
class RequiredFieldRule(RowRule):
    label: str = ""

    def evaluate(self, fields: object, line_number: int) -> Iterable[ValidationIssue]:
        if _value(fields, self.field):
            return []
        label = self.label or self.field
        return [
            ValidationIssue(
                code=self.code,
                field=self.field,
                message=f"Missing required field: {label} on line {line_number}",
                kind="missing",
            )
        ]


@dataclass(frozen=True)
class PinFormatRule(RowRule):
    """PIN must be exactly four ASCII digits."""

    code: str = "CREW_PIN_FORMAT"
    field: str = "pin"
    description: str = "Time clock PIN must be exactly 4 digits."

    def evaluate(self, fields: object, line_number: int) -> Iterable[ValidationIssue]:
        pin = _value(fields, self.field)
        if not pin or _PIN_REGEX.fullmatch(pin):
            return []
        return [
            ValidationIssue(
                code=self.code,
                field=self.field,
                message=f"Invalid PIN on line {line_number}: must be exactly 4 digits (0-9)",
                kind="format",
            )
        ]


@dataclass(frozen=True)
class PasswordLengthRule(RowRule):
    """Password must reach the minimum length once trimmed."""

    code: str = "CREW_PASSWORD_LENGTH"
    field: str = "password"
    description: str = f"Password must be at least {PASSWORD_MIN_LENGTH} characters."
    min_length: int = PASSWORD_MIN_LENGTH

    def evaluate(self, fields: object, line_number: int) -> Iterable[ValidationIssue]:
        password = _value(fields, self.field)
        if not password or len(password) >= self.min_length:
            return []
        return [
            ValidationIssue(
                code=self.code,
                field=self.field,
                message=f"Password must be at least {self.min_length} characters on line {line_number}",
                kind="format",
            )
        ]


CUSTOMER_RULES: Sequence[RowRule] = (
    RequiredFieldRule(
        code="CREW_NAME_REQUIRED",
        field="name",
        description="Customer name is required.",
        label="Name First and Last",
    ),
)

EMPLOYEE_RULES: Sequence[RowRule] = (
    RequiredFieldRule(
        code="CREW_NAME_REQUIRED",
        field="name",
        description="Employee name is required.",
        label="Name First and Last",
    ),
    RequiredFieldRule(
        code="CREW_PIN_REQUIRED",
        field="pin",
        description="Employee PIN is required.",
        label="Pin (4 digits or more)",
    ),
    PinFormatRule(),
)

STAFF_RULES: Sequence[RowRule] = (
    RequiredFieldRule(
        code="CREW_NAME_REQUIRED",
        field="name",
        description="Staff name is required.",
        label="Name First and Last",
    ),
    RequiredFieldRule(
        code="CREW_EMAIL_REQUIRED",
        field="email",
        description="Staff login email is required.",
        label="Email",
    ),
    RequiredFieldRule(
        code="CREW_PASSWORD_REQUIRED",
        field="password",
        description="Staff initial password is required.",
        label="Password (6 Characters minimum)",
    ),
    PasswordLengthRule(),
)

RULES_BY_KIND: Mapping[str, Sequence[RowRule]] = {
    "customer": CUSTOMER_RULES,
    "employee": EMPLOYEE_RULES,
    "staff": STAFF_RULES,
}


def evaluate_rules(fields: object, rules: Sequence[RowRule], line_number: int) -> list[ValidationIssue]:
    """Run every rule and collect the issues in rule order."""

    issues: list[ValidationIssue] = []
    for rule in rules:
        issues.extend(rule.evaluate(fields, line_number))
    return issues


def validate(fields: object, kind: str, *, line_number: int) -> ValidationError | None:
    """
    Validate resolved fields for ``kind``.

    Returns ``None`` when the row is acceptable, otherwise a
    :class:`ValidationError` listing missing fields and format problems.
    Missing fields take precedence in the message.
    """

    try:
        rules = RULES_BY_KIND[kind]
    except KeyError:
        raise ValueError(f"Unknown record kind '{kind}'.") from None

    issues = evaluate_rules(fields, rules, line_number)
    if not issues:
        return None

    missing = [issue for issue in issues if issue.kind == "missing"]
    formats = [issue for issue in issues if issue.kind == "format"]
    labels = tuple(_label_for(rules, issue) for issue in missing)
    if missing:
        message = f"Missing required field(s): {', '.join(labels)} on line {line_number}"
    else:
        message = formats[0].message

    return ValidationError(
        message,
        line_number=line_number,
        missing_fields=labels,
        format_errors=tuple(issue.message for issue in formats),
        issues=issues,
    )


def _label_for(rules: Sequence[RowRule], issue: ValidationIssue) -> str:
    for rule in rules:
        if rule.code == issue.code and isinstance(rule, RequiredFieldRule):
            return rule.label or rule.field
    return issue.field
