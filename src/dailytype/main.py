"""CLI entrypoint for the daily typing challenge."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable
from datetime import date
from pathlib import Path

from .content_loader import language_name
from .records import Record, RecordSaveError, RecordStore
from .service import DailyTypeService, Session
from .skill import DomainError

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
MENU_QUIT_COMMANDS = {"q"}
MENU_BACK_COMMANDS = {"b"}
ROUND_RESTART_COMMANDS = {":restart", ":r"}
ROUND_QUIT_COMMANDS = {":quit", ":exit", ":q"}
DB_ENV_VAR = "DAILYTYPE_DB"


def _service(db_path: Path | str | None = None) -> DailyTypeService:
    """Create app service with local database path."""
    if db_path is None:
        db_path = os.environ.get(DB_ENV_VAR) or Path(".dailytype") / "progress.db"
    if isinstance(db_path, str) and db_path != ":memory:":
        db_path = Path(db_path)
    return DailyTypeService(db_path=db_path)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="dailytype", description="Three passages a day, same for everyone")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "today", "stats", "reset"])
    parser.add_argument("--lang", help="language code (ko, en, ja, es, fr)")
    parser.add_argument("--date", type=date.fromisoformat, help="YYYY-MM-DD for the 'today' command")
    parser.add_argument("--all", action="store_true", help="with 'reset', clear every language")
    parser.add_argument("--db", help=f"database path (default: ${DB_ENV_VAR} or .dailytype/progress.db)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug details")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "play":
        return play_shell(language=args.lang, db_path=args.db)

    service = _service(args.db)
    try:
        language = args.lang or service.preferred_language()
        if language not in service.pools:
            print(f"Unknown language: {language}")
            return 2
        if args.command == "today":
            _today_flow(service, language, args.date, print)
        elif args.command == "stats":
            _print_leaderboard(language, service.records(language), print)
        elif args.all:
            _reset_all_flow(service, input, print)
        else:
            _reset_flow(service, language, input, print)
        return 0
    finally:
        service.close()


def play_shell(
    input_fn: InputFn = input,
    print_fn: PrintFn = print,
    *,
    language: str | None = None,
    db_path: Path | str | None = None,
) -> int:
    """Run persistent menu-driven shell."""
    service = _service(db_path)
    try:
        if language is not None:
            if language not in service.pools:
                print_fn(f"Unknown language: {language}")
                return 2
            service.set_preferred_language(language)
        current = language or service.preferred_language()
        while True:
            print_fn("\n=== DailyType ===")
            print_fn(f"Language: {language_name(current)}")
            print_fn("1) Play today's challenge")
            print_fn("2) Records")
            print_fn("3) Change language")
            print_fn("4) Reset records (this language)")
            print_fn("5) Reset records (all languages)")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice == "1":
                _play_flow(service, current, input_fn, print_fn)
            elif choice == "2":
                _print_leaderboard(current, service.records(current), print_fn)
            elif choice == "3":
                current = _change_language_flow(service, current, input_fn, print_fn)
            elif choice == "4":
                _reset_flow(service, current, input_fn, print_fn)
            elif choice == "5":
                _reset_all_flow(service, input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Invalid choice.")
    finally:
        service.close()


def _play_flow(service: DailyTypeService, language: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Play today's passages, restarting on request."""
    while True:
        result = _play_round(service, service.start_session(language), input_fn, print_fn)
        if result != "restart":
            return
        print_fn("Restarting. The timer has been reset.")


def _play_round(service: DailyTypeService, session: Session, input_fn: InputFn, print_fn: PrintFn) -> str:
    """Run one session; return 'done', 'restart', or 'quit'."""
    print_fn(f"\n=== Today's Challenge: {language_name(session.language)} ({session.selection.day.isoformat()}) ===")
    print_fn("Type each passage exactly and press Enter. :restart starts over, :quit leaves.")
    while not session.finished:
        print_fn(f"\nStage {session.stage + 1}/{session.total_stages}")
        print_fn(session.current_passage or "")
        service.start_timer(session)
        text = input_fn("> ")
        command = text.strip().lower()
        if command in ROUND_RESTART_COMMANDS:
            return "restart"
        if command in ROUND_QUIT_COMMANDS:
            print_fn("Left without finishing. Nothing was recorded.")
            return "quit"

        try:
            result = service.submit(session, text)
        except RecordSaveError as exc:
            print_fn(f"Warning: your result could not be saved ({exc}).")
            if session.attempt is not None:
                _print_attempt(session, print_fn)
            _print_leaderboard(session.language, exc.store, print_fn)
            return "done"
        except DomainError as exc:
            print_fn(f"Could not score this attempt: {exc}")
            return "done"

        if not result.correct:
            print_fn("Mismatch. Check the passage and try again.")
            continue
        if result.outcome is not None:
            _print_attempt(session, print_fn)
            _print_leaderboard(session.language, result.outcome.store, print_fn)
    return "done"


def _print_attempt(session: Session, print_fn: PrintFn) -> None:
    """Print the score of a finished session."""
    attempt = session.attempt
    if attempt is None:
        return
    print_fn("\nDone!")
    print_fn(f"Time: {format_duration(attempt.elapsed_seconds)}")
    print_fn(f"Speed: {attempt.wpm:.1f} WPM")
    print_fn(f"Rank: Top {format_percentile(attempt.percentile)}%")


def _print_leaderboard(language: str, store: RecordStore, print_fn: PrintFn) -> None:
    """Print best rank, play count, and the ranked records."""
    print_fn(f"\n=== Records: {language_name(language)} ===")
    best = store.best_percentile
    print_fn(f"Your best rank: {'Top ' + format_percentile(best) + '%' if best is not None else '-'}")
    print_fn("(Based on global WPM stats)")
    print_fn(f"Plays: {store.play_count}")
    if not store.records:
        print_fn("No records yet.")
        return
    for idx, record in enumerate(store.records, start=1):
        print_fn(f"{idx}) {format_record_time(record):<12} Top {format_percentile(record.percentile)}%")


def _today_flow(service: DailyTypeService, language: str, day: date | None, print_fn: PrintFn) -> None:
    """Print the passages scheduled for one day."""
    selection = service.selection_for(language, day)
    print_fn(f"=== {language_name(language)} passages for {selection.day.isoformat()} ===")
    for idx, passage in enumerate(selection.passages, start=1):
        print_fn(f"{idx}) {passage}")


def _change_language_flow(service: DailyTypeService, current: str, input_fn: InputFn, print_fn: PrintFn) -> str:
    """Pick and save a new language; return the active language."""
    languages = service.list_languages()
    print_fn("\nChoose language")
    for idx, code in enumerate(languages, start=1):
        marker = " (current)" if code == current else ""
        print_fn(f"{idx}) {language_name(code)} [{code}]{marker}")
    print_fn("b) Back")
    choice = input_fn("Language: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return current
    selected: str | None = None
    if choice.isdigit():
        index = int(choice) - 1
        if 0 <= index < len(languages):
            selected = languages[index]
    elif choice in languages:
        selected = choice
    if selected is None:
        print_fn("Invalid choice.")
        return current
    service.set_preferred_language(selected)
    print_fn(f"Language set to {language_name(selected)}.")
    return selected


def _reset_flow(service: DailyTypeService, language: str, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete one language's records after confirmation."""
    print_fn(f"WARNING: This permanently deletes your {language_name(language)} records.")
    confirm = input_fn("Type YES to confirm: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    service.reset_records(language)
    print_fn(f"Records for {language_name(language)} deleted.")


def _reset_all_flow(service: DailyTypeService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete every language's records after confirmation."""
    print_fn("WARNING: This permanently deletes your records for every language.")
    confirm = input_fn("Type YES to confirm: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    removed = service.reset_all_records()
    print_fn(f"Deleted records for {len(removed)} language(s).")


def format_percentile(percentile: float) -> str:
    """Render a percentile as shown in rankings ("<0.1", "12.3", "50")."""
    if percentile < 0.1:
        return "<0.1"
    text = f"{percentile:.1f}"
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_duration(seconds: float) -> str:
    """Render a duration as M:SS.ss, or S.SSs under a minute."""
    whole_minutes, rest_seconds = divmod(round(seconds, 2), 60)
    minutes = int(whole_minutes)
    rest = f"{rest_seconds:.2f}"
    if minutes > 0:
        return f"{minutes}:{rest.zfill(5)}"
    return f"{rest}s"


def format_record_time(record: Record) -> str:
    """Render a record's duration, or its play number when unknown."""
    if record.duration_seconds is None:
        return f"Clear #{record.play_index}"
    return format_duration(record.duration_seconds)


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
