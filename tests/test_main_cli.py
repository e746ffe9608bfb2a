from __future__ import annotations

import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from intake.accounts import verify_password
from intake.client import ClientError, IntakeClient
from main import _parse_args, _resolve_port, main


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_admin_subcommand_still_available() -> None:
    args = _parse_args(["admin", "--service-url", "http://intake.local"])
    assert args.command == "admin"
    assert args.service_url == "http://intake.local"


def test_hash_password_prints_bcrypt_hash(capsys) -> None:
    assert main(["hash-password", "--password", "s3cret-pass"]) == 0
    printed = capsys.readouterr().out.strip()
    assert verify_password("s3cret-pass", printed)


def test_hash_password_rejects_empty_password(capsys) -> None:
    assert main(["hash-password", "--password", ""]) == 1
    assert "Failed to hash password" in capsys.readouterr().out


def test_console_client_drives_running_service(client, submit) -> None:
    submit(companyName="Acme")
    submit(companyName="Globex")
    console = IntakeClient("http://testserver", http=client)

    with pytest.raises(ClientError) as excinfo:
        console.stats()
    assert excinfo.value.status_code == 401
    assert str(excinfo.value) == "Access token required"

    user = console.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert user["role"] == "admin"
    assert console.is_authenticated

    assert [item.company_name for item in console.list_applications()] == ["Acme", "Globex"]
    assert [item.id for item in console.list_applications(search="glob")] == [2]

    approved = console.update_status(2, "approved")
    assert approved.status.value == "approved"
    assert approved.updated_at is not None
    assert console.get_application(2).status.value == "approved"

    with pytest.raises(ClientError) as excinfo:
        console.update_status(2, "rejected")
    assert excinfo.value.status_code == 409

    stats = console.stats()
    assert (stats.total, stats.pending, stats.approved, stats.rejected) == (2, 1, 1, 0)

    exported = console.export_csv(status="pending")
    assert exported.splitlines()[1].startswith('"Acme"')


def test_console_client_reports_bad_login(client) -> None:
    console = IntakeClient("http://testserver", http=client)
    with pytest.raises(ClientError) as excinfo:
        console.login(ADMIN_EMAIL, "wrong")
    assert excinfo.value.status_code == 400
    assert not console.is_authenticated


def test_console_client_requires_base_url() -> None:
    with pytest.raises(ValueError):
        IntakeClient("  ")


def test_console_client_leaves_supplied_http_client_open(client) -> None:
    console = IntakeClient("http://testserver", http=client)
    console.close()
    assert client.get("/api/health").status_code == 200


def test_console_client_closes_its_own_http_client() -> None:
    console = IntakeClient("http://intake.local")
    console.close()
    assert console._http.is_closed


def test_invalid_port_env_only_affects_serve(monkeypatch, capsys) -> None:
    monkeypatch.setenv("PORT", "not-a-port")

    args = _parse_args(["hash-password", "--password", "s3cret-pass"])
    assert args.command == "hash-password"
    assert main(["hash-password", "--password", "s3cret-pass"]) == 0
    capsys.readouterr()

    assert _parse_args([]).port is None
    with pytest.raises(SystemExit, match="Invalid PORT value"):
        _resolve_port(None)


def test_port_resolution_prefers_flag_then_env(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "9090")
    assert _resolve_port(8080) == 8080
    assert _resolve_port(None) == 9090
    monkeypatch.delenv("PORT")
    assert _resolve_port(None) == 5000
