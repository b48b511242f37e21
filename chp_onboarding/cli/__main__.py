from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..api.client import DirectoryClient
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..excel.reader import FileFormatError
from ..excel.template import TEMPLATE_FILE_NAME, write_template
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.registration_result import RegistrationOutcome
from ..services.conflicts import ConflictAction
from ..services.progress import ProgressTracker
from ..services.session import SessionStateError, UploadSession
from ..services.summary import render_registration_summary, render_validation_summary

"""CLI entrypoint.

Sub-commands:
- template  write an example roster spreadsheet
- validate  parse + validate a roster, report per-row errors
- register  validate, resolve username conflicts, register valid rows

Exit codes:
    0  everything valid / every attempted registration succeeded
    2  some rows invalid or some registrations failed
    1  fatal: bad config, rejected file, aborted conflict decision, unexpected error
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

_SUMMARY_PREFIX = "SUMMARY "

_CONFLICT_CHOICES = {
    "s": ConflictAction.SKIP,
    "skip": ConflictAction.SKIP,
    "r": ConflictAction.AUTO_RENAME,
    "rename": ConflictAction.AUTO_RENAME,
    "u": ConflictAction.REUPLOAD,
    "reupload": ConflictAction.REUPLOAD,
}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so CHP_API_* values take precedence over the YAML config."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="chp-onboard", description="CHP bulk registration from an Excel roster")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write an example roster spreadsheet")
    t.add_argument("--output", type=Path, default=Path(TEMPLATE_FILE_NAME))

    v = sub.add_parser("validate", help="Validate a roster without registering anyone")
    v.add_argument("file", type=Path)

    r = sub.add_parser("register", help="Validate a roster and register its valid rows")
    r.add_argument("file", type=Path)
    r.add_argument(
        "--on-conflict",
        choices=[a.value for a in ConflictAction],
        default=None,
        help="What to do with rows whose username is already taken (prompted when omitted on a TTY)",
    )
    return p.parse_args(argv)


def _prompt_conflict_action(conflicts: int) -> ConflictAction | None:
    if not sys.stdin.isatty():
        return None
    while True:
        answer = input(
            f"{conflicts} usernames already exist. [s]kip them, [r]ename automatically, or re-[u]pload? "
        ).strip().lower()
        if answer in _CONFLICT_CHOICES:
            return _CONFLICT_CHOICES[answer]


def _report_invalid_rows(logger, session: UploadSession) -> None:
    if session.result is None:
        raise SessionStateError("no validation result to report")
    for rec in session.result.data:
        if not rec.is_valid:
            logger.warning(f"row {rec.row_number} ({rec.full_name or '-'}): {', '.join(rec.errors)}")


def _flush_error_log(logger, session: UploadSession) -> None:
    try:
        path = session.error_log.flush()
    except OSError as e:
        logger.warning(f"failed to write error log: {e}")
        return
    if path is not None:
        logger.info(f"error log written to {path}")


def _run_upload(args: argparse.Namespace, logger, session: UploadSession) -> int:
    try:
        with ProgressTracker("Validating") as bar:
            result = session.load_file(args.file, bar)
    except FileFormatError as e:
        logger.error(f"file: {e}")
        _flush_error_log(logger, session)
        return EXIT_FATAL

    _report_invalid_rows(logger, session)
    log_summary(render_validation_summary(result)[len(_SUMMARY_PREFIX):])

    if args.command == "validate":
        _flush_error_log(logger, session)
        return EXIT_SUCCESS_ALL if result.invalid_count == 0 else EXIT_PARTIAL_FAILURE

    if session.needs_conflict_decision:
        action = (
            ConflictAction(args.on_conflict)
            if args.on_conflict
            else _prompt_conflict_action(result.username_conflicts)
        )
        if action is None:
            logger.error("username conflicts found; re-run with --on-conflict skip|rename|reupload")
            _flush_error_log(logger, session)
            return EXIT_FATAL
        with ProgressTracker("Renaming") as bar:
            resolved = session.resolve_conflicts(action, bar)
        if resolved is None:
            logger.info("upload discarded; fix the roster and upload it again")
            _flush_error_log(logger, session)
            return EXIT_FATAL
        result = resolved
        log_summary(render_validation_summary(result)[len(_SUMMARY_PREFIX):])

    if result.valid_count == 0:
        logger.error("no valid records to register")
        _flush_error_log(logger, session)
        return EXIT_PARTIAL_FAILURE

    logger.info(f"registering {result.valid_count} CHPs")
    with ProgressTracker("Registering") as bar:
        summary = session.register(bar)
        bar.set_postfix(success=summary.success_count, failed=summary.failure_count)

    for outcome in summary.outcomes:
        if outcome.error_message:
            logger.error(f"row {outcome.record.row_number} ({outcome.record.final_username}): {outcome.error_message}")
    log_summary(render_registration_summary(summary)[len(_SUMMARY_PREFIX):])
    _flush_error_log(logger, session)

    if summary.outcome is RegistrationOutcome.ALL_SUCCEEDED:
        logger.info(f"successfully registered {summary.success_count} CHPs")
        return EXIT_SUCCESS_ALL
    logger.warning(f"registration partially completed: {summary.success_count} successful, {summary.failure_count} failed")
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when argv is None; [] from tests must stay empty
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)

    if args.command == "template":
        path = write_template(args.output)
        logger.info(f"template written to {path}")
        return EXIT_SUCCESS_ALL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.debug(f"api base url: {cfg.api.base_url}")
    try:
        with DirectoryClient(cfg.api) as client:
            session = UploadSession(cfg, client, client)
            return _run_upload(args, logger, session)
    except Exception as e:
        logger.error(f"unexpected error: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
