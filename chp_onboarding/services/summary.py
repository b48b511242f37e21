from __future__ import annotations

from ..models.candidate import ValidationResult
from ..models.registration_result import RegistrationSummary

"""SUMMARY line rendering.

Formats (one line each, fixed key order):
    SUMMARY validation total=<n> valid=<n> invalid=<n> conflicts=<n>
    SUMMARY registration attempted=<n> success=<n> failed=<n> skipped=<n> outcome=<all_succeeded|partial> elapsed_sec=<num>
"""


def _format_seconds(value: float) -> str:
    """Render seconds without scientific notation or a useless fractional part."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_validation_summary(result: ValidationResult) -> str:
    """Render the SUMMARY line for a validation pass.

    >>> from chp_onboarding.models.candidate import ValidationResult
    >>> render_validation_summary(ValidationResult())
    'SUMMARY validation total=0 valid=0 invalid=0 conflicts=0'
    """
    return (
        f"SUMMARY validation total={result.total_count} "
        f"valid={result.valid_count} "
        f"invalid={result.invalid_count} "
        f"conflicts={result.username_conflicts}"
    )


def render_registration_summary(summary: RegistrationSummary) -> str:
    return (
        f"SUMMARY registration attempted={summary.attempted} "
        f"success={summary.success_count} "
        f"failed={summary.failure_count} "
        f"skipped={summary.skipped_already_registered} "
        f"outcome={summary.outcome.value} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )
