"""Scripted console sessions against a temporary database."""

import pytest

from granjapro.cli.console import ConsoleUI
from granjapro.config import Settings
from granjapro.main import create_application, seed_admin


@pytest.fixture
def app(test_db_path, tmp_path):
    settings = Settings(
        db_path=test_db_path,
        log_dir=tmp_path / "logs",
        admin_name="admin",
        admin_password="admin123",
    )
    application = create_application(settings)
    seed_admin(application)
    return application


def run_console(app, inputs, passwords):
    answers = iter(inputs)
    secrets = iter(passwords)
    lines = []
    console = ConsoleUI(
        app,
        input_func=lambda prompt: next(answers),
        password_func=lambda prompt: next(secrets),
        output=lines.append,
    )
    assert console.run() == 0
    return "\n".join(lines)


def test_seed_admin_only_once(app):
    assert app.auth.has_identities()
    assert seed_admin(app) is False


def test_admin_creates_lot(app):
    output = run_console(
        app,
        ["admin", "1", "1", "L-1", "Isa Brown", "120", "P-4", "0", "0", ""],
        ["admin123"],
    )

    assert "Welcome, admin (Administrator)" in output
    assert "Lot L-1 created" in output
    assert "Session closed" in output
    assert not app.auth.is_authenticated()


def test_wrong_password_returns_to_login(app):
    output = run_console(app, ["admin", ""], ["nope123"])

    assert "Invalid username or password" in output
    assert "MAIN MENU" not in output


def test_operator_menu_is_filtered(app):
    app.auth.login("admin", "admin123")
    app.auth.create_identity("carla", "operator1", "OPERATOR")
    app.auth.logout()

    output = run_console(app, ["carla", "0", ""], ["operator1"])

    assert "Egg production" in output
    assert "Lot management" not in output
    assert "Users" not in output
    assert "Audit log" not in output


def test_domain_errors_return_to_menu(app):
    output = run_console(
        app,
        ["admin", "1", "2", "missing", "3", "0", "0", ""],
        ["admin123"],
    )

    assert "No lot with id missing" in output
    assert output.count("LOT MANAGEMENT") == 2


def test_correction_from_console_is_audited(app):
    app.auth.login("admin", "admin123")
    lot = app.lots.create_lot("L-2", "Hy-Line", 100, "P-1")
    record = app.production.register_production(lot.lot_id, 95, 0)
    app.auth.logout()

    output = run_console(
        app,
        ["admin", "2", "4", record.record_id, "105", "", "miscount", "0",
         "5", "1", record.record_id, "0", "0", ""],
        ["admin123"],
    )

    assert "1 field(s) corrected and audited" in output
    assert "total_eggs: 95 -> 105" in output
    assert app.production.get_record(record.record_id).total_eggs == 105


def test_operator_production_menu_has_no_correction(app):
    app.auth.login("admin", "admin123")
    app.auth.create_identity("carla", "operator1", "OPERATOR")
    app.auth.logout()

    output = run_console(app, ["carla", "1", "0", "0", ""], ["operator1"])

    assert "EGG PRODUCTION" in output
    assert "Register production" in output
    assert "Correct a record" not in output


def test_lot_details(app):
    app.auth.login("admin", "admin123")
    lot = app.lots.create_lot("L-3", "Isa Brown", 120, "P-2")
    app.lots.register_mortality(lot.lot_id, 4)
    app.auth.logout()

    output = run_console(
        app,
        ["admin", "1", "4", lot.lot_id, "0", "0", ""],
        ["admin123"],
    )

    assert "Isa Brown" in output
    assert "Live birds:    116" in output
    assert "Mortality:     4" in output


def test_long_user_name_from_console(app):
    name = "operator-" * 12
    output = run_console(
        app,
        ["admin", "4", "1", name, "OPERATOR", "0", "0", ""],
        ["admin123", "secret1"],
    )

    assert f"User {name} created as Operator" in output
    assert "MAIN MENU" in output
