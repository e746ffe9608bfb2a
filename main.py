"""Command-line interface for the intake portal."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from datetime import date
from getpass import getpass
from pathlib import Path
from typing import Sequence

from intake.accounts import hash_password
from intake.client import ClientError, IntakeClient
from intake.views import csv_filename, format_date

logger = logging.getLogger("intake.main")

_DEFAULT_SERVICE_URL = "http://localhost:5000"


def _resolve_port(port: int | None) -> int:
    if port is not None:
        return port
    raw = os.getenv("PORT", "5000")
    try:
        return int(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid PORT value: {raw!r}") from exc


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Business registration intake portal")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the service")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP service (default: $PORT or 5000)",
    )
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration file (default: $INTAKE_CONFIG or config/intake.yaml)",
    )
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    hash_parser = subparsers.add_parser(
        "hash-password", help="Print a bcrypt hash suitable for an admin entry in the config file"
    )
    hash_parser.add_argument(
        "--password",
        default=None,
        help="Password to hash (prompted for when omitted)",
    )

    admin_parser = subparsers.add_parser(
        "admin", help="Launch the interactive administration console"
    )
    admin_parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of a running intake service (default: {_DEFAULT_SERVICE_URL})",
    )
    admin_parser.add_argument(
        "--email",
        default=None,
        help="Admin email. Defaults to the INTAKE_ADMIN_EMAIL environment variable when unset.",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin", "hash-password"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(
    *,
    host: str,
    port: int | None,
    config_path: str | None,
    ssl_certfile: str | None,
    ssl_keyfile: str | None,
) -> None:
    from intake.application import create_application
    from intake.config import load_settings, resolve_config_path
    import uvicorn

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    port = _resolve_port(port)

    resolved = resolve_config_path(config_path or os.getenv("INTAKE_CONFIG"))
    if resolved.exists():
        logger.info("Loading configuration from %s", resolved)
    else:
        logger.info("No configuration file at %s; using defaults", resolved)

    try:
        settings = load_settings(resolved)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info("Starting intake service on %s://%s:%s", protocol, host, port)

    app = create_application(settings=settings)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _hash_password(password: str | None) -> int:
    if password is None:
        password = _prompt_for_password()
        if password is None:
            print("Aborted hashing password.")
            return 1
    try:
        print(hash_password(password))
    except ValueError as exc:
        print(f"Failed to hash password: {exc}")
        return 1
    return 0


def _run_admin_cli(client: IntakeClient, *, email: str | None = None) -> None:
    """Provide an interactive console over a running intake service."""

    print("Intake Portal Administration Console")
    print("Press Ctrl+C at any time to exit.\n")

    try:
        if not _login(client, email):
            return

        while True:
            print("Select an option:")
            print("  1) List applications")
            print("  2) Show an application")
            print("  3) Approve an application")
            print("  4) Reject an application")
            print("  5) Show statistics")
            print("  6) Export applications to CSV")
            print("  7) Exit")

            choice = input("Enter choice [1-7]: ").strip()

            try:
                if choice == "1":
                    _list_applications(client)
                elif choice == "2":
                    _show_application(client)
                elif choice == "3":
                    _decide(client, "approved")
                elif choice == "4":
                    _decide(client, "rejected")
                elif choice == "5":
                    _show_stats(client)
                elif choice == "6":
                    _export(client)
                elif choice == "7":
                    print("Goodbye!")
                    return
                else:
                    print("Invalid selection. Please choose a number from the menu.\n")
            except ClientError as exc:
                print(f"Request failed: {exc}")

            print()
    except KeyboardInterrupt:
        print("\nExiting administration console.")


def _login(client: IntakeClient, email: str | None) -> bool:
    email = email or os.getenv("INTAKE_ADMIN_EMAIL") or input("Admin email: ").strip()
    password = os.getenv("INTAKE_ADMIN_PASSWORD") or getpass("Password: ")
    try:
        user = client.login(email, password)
    except ClientError as exc:
        print(f"Login failed: {exc}")
        return False
    print(f"Signed in as {user.get('name') or email}.\n")
    return True


def _prompt_id() -> int | None:
    raw = input("Application ID: ").strip()
    try:
        return int(raw)
    except ValueError:
        print("Application ID must be a number.")
        return None


def _list_applications(client: IntakeClient) -> None:
    search = input("Search (blank for all): ").strip()
    status = input("Status [all/pending/approved/rejected]: ").strip() or "all"
    applications = client.list_applications(search=search, status=status)
    if not applications:
        print("No applications found.")
        return

    print(f"{len(applications)} application(s) found:")
    print(f"{'ID':>4}  {'Company':<28}  {'Contact':<20}  {'Status':<9}  Applied")
    print("-" * 84)
    for application in applications:
        print(
            f"{application.id:>4}  {application.company_name[:28]:<28}  "
            f"{application.contact_person[:20]:<20}  {application.status.value:<9}  "
            f"{format_date(application.created_at)}"
        )


def _show_application(client: IntakeClient) -> None:
    application_id = _prompt_id()
    if application_id is None:
        return
    application = client.get_application(application_id)
    print(f"{application.reference}  {application.company_name}")
    print(f"  Contact:  {application.contact_person} <{application.email}>, {application.phone}")
    print(f"  Type:     {application.company_type.label}")
    print(f"  Plan:     {application.payment_plan.value}")
    print(f"  Services: {', '.join(application.services)}")
    print(f"  Status:   {application.status.value}")
    print(f"  Applied:  {format_date(application.created_at)}")


def _decide(client: IntakeClient, decision: str) -> None:
    application_id = _prompt_id()
    if application_id is None:
        return
    application = client.update_status(application_id, decision)
    print(f"Application {application.reference} {application.status.value}.")


def _show_stats(client: IntakeClient) -> None:
    stats = client.stats()
    print(f"Total applications: {stats.total}")
    print(f"Pending:            {stats.pending}")
    print(f"Approved:           {stats.approved}")
    print(f"Rejected:           {stats.rejected}")


def _export(client: IntakeClient) -> None:
    default_name = csv_filename(date.today())
    target = Path(input(f"Output file [{default_name}]: ").strip() or default_name)
    target.write_text(client.export_csv() + "\n", encoding="utf-8")
    print(f"Wrote applications to {target}")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(
            host=args.host,
            port=args.port,
            config_path=args.config,
            ssl_certfile=args.ssl_certfile,
            ssl_keyfile=args.ssl_keyfile,
        )
    elif args.command == "hash-password":
        return _hash_password(args.password)
    elif args.command == "admin":
        client = IntakeClient(args.service_url or os.getenv("INTAKE_SERVICE_URL") or _DEFAULT_SERVICE_URL)
        try:
            _run_admin_cli(client, email=args.email)
        finally:
            client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
