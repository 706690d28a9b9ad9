"""Prompt-driven console for GranjaPro.

Login comes first; after that the main menu only shows what the current
role may use. Every domain error is caught where the menu option is
dispatched, printed, and the menu is shown again.
"""

from __future__ import annotations

import getpass
import logging
import sqlite3
from datetime import date, datetime, time, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from granjapro.models.alert import AlertType
from granjapro.models.audit import AuditEntry, EntityType
from granjapro.models.production import CORRECTABLE_FIELDS
from granjapro.models.user import IdentityResponse
from granjapro.utils.helpers.exceptions import GranjaError

logger = logging.getLogger(__name__)

LINE = "-" * 56
MenuOption = Tuple[str, Callable[[], None]]


class ConsoleUI:
    """Menu loop on top of the application services.

    ``input_func``, ``password_func`` and ``output`` default to the terminal
    and can be replaced to script a session.
    """

    def __init__(
        self,
        app,
        input_func: Callable[[str], str] = input,
        password_func: Callable[[str], str] = getpass.getpass,
        output: Callable[[str], None] = print,
    ):
        self.app = app
        self._input = input_func
        self._password = password_func
        self._out = output

    # -----------------
    # Main loop
    # -----------------
    def run(self) -> int:
        self._out("=" * 56)
        self._out("  GranjaPro - poultry farm management")
        self._out("=" * 56)
        try:
            while True:
                if not self.app.auth.is_authenticated():
                    if not self.login_screen():
                        break
                    continue
                self.main_menu()
        except (EOFError, KeyboardInterrupt):
            self._out("")
        if self.app.auth.is_authenticated():
            self.app.auth.logout()
        self._out("Goodbye.")
        return 0

    def login_screen(self) -> bool:
        """Prompt until someone logs in. Returns False when the user quits."""
        while True:
            self._out("")
            self._out("LOGIN  (empty username to quit)")
            name = self._input("Username: ").strip()
            if not name:
                return False
            password = self._password("Password: ")
            try:
                identity = self.app.auth.login(name, password)
            except GranjaError as exc:
                self._error(exc)
                continue
            self._ok(f"Welcome, {identity.name} ({identity.role.label})")
            return True

    def main_menu(self) -> None:
        auth = self.app.auth
        if auth.is_admin():
            options: List[MenuOption] = [
                ("Lot management", self.lots_menu),
                ("Egg production", self.production_menu),
                ("Analytics and alerts", self.analytics_menu),
                ("Users", self.users_menu),
                ("Audit log", self.audit_menu),
            ]
        else:
            options = [("Egg production", self.production_menu)]

        self._out("")
        self._out(f"MAIN MENU  user: {self.app.session.display_name()}")
        choice = self._choose(options, back_label="Log out")
        if choice is None:
            auth.logout()
            self._ok("Session closed")
            return
        self._dispatch(choice)

    def _submenu(self, title: str, options: Sequence[MenuOption]) -> None:
        while True:
            self._out("")
            self._out(title)
            choice = self._choose(options, back_label="Back")
            if choice is None:
                return
            self._dispatch(choice)

    def _choose(self, options: Sequence[MenuOption], back_label: str) -> Optional[Callable[[], None]]:
        self._out(LINE)
        for number, (label, _) in enumerate(options, start=1):
            self._out(f"  {number}. {label}")
        self._out(f"  0. {back_label}")
        self._out(LINE)
        while True:
            raw = self._input("Option: ").strip()
            if raw == "0":
                return None
            if raw.isdigit() and 1 <= int(raw) <= len(options):
                return options[int(raw) - 1][1]
            self._out("Invalid option, try again.")

    def _dispatch(self, handler: Callable[[], None]) -> None:
        try:
            handler()
        except GranjaError as exc:
            self._error(exc)
        except sqlite3.Error as exc:
            logger.exception("Store operation failed")
            self._out(f"❌ Database error: {exc}")

    # -----------------
    # Lots
    # -----------------
    def lots_menu(self) -> None:
        self._submenu("LOT MANAGEMENT", [
            ("Create lot", self.create_lot),
            ("Register mortality", self.register_mortality),
            ("List lots", self.list_lots),
            ("Lot details", self.lot_details),
        ])

    def create_lot(self) -> None:
        code = self._input("Lot code: ").strip()
        breed = self._input("Breed: ").strip()
        initial = self._ask_int("Initial bird count: ")
        pen_id = self._input("Pen id: ").strip()
        lot = self.app.lots.create_lot(
            code, breed, initial, pen_id, actor=self.app.auth.current_identity()
        )
        self._ok(f"Lot {lot.code} created (id {lot.lot_id})")

    def register_mortality(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        deaths = self._ask_int("Deaths: ")
        lot = self.app.lots.register_mortality(lot_id, deaths)
        self._ok(f"Lot {lot.code} now has {lot.current_count} live birds")

    def list_lots(self) -> None:
        lots = self.app.lots.list_lots()
        if not lots:
            self._out("No lots registered.")
            return
        for lot in lots:
            self._out(
                f"{lot.lot_id}  {lot.code:<12} {lot.breed:<16} "
                f"{lot.current_count:>6}/{lot.initial_count:<6} pen {lot.pen_id}  "
                f"since {lot.entry_date.isoformat()}"
            )

    def lot_details(self) -> None:
        lot = self.app.lots.get_lot(self._input("Lot id: ").strip())
        self._out(LINE)
        self._out(f"Lot:           {lot.code} ({lot.lot_id})")
        self._out(f"Breed:         {lot.breed}")
        self._out(f"Pen:           {lot.pen_id}")
        self._out(f"Entry date:    {lot.entry_date.isoformat()}")
        self._out(f"Initial birds: {lot.initial_count}")
        self._out(f"Live birds:    {lot.current_count}")
        self._out(f"Mortality:     {lot.initial_count - lot.current_count}")
        self._out(LINE)

    # -----------------
    # Production
    # -----------------
    def production_menu(self) -> None:
        options: List[MenuOption] = [
            ("Register production", self.register_production),
            ("Records of a lot", self.list_production),
            ("Broken egg percentage", self.broken_percentage),
        ]
        if self.app.auth.is_admin():
            options.append(("Correct a record", self.correct_record))
        self._submenu("EGG PRODUCTION", options)

    def register_production(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        total = self._ask_int("Total eggs: ")
        broken = self._ask_int("Broken eggs: ")
        record_date = self._ask_date("Date (YYYY-MM-DD, empty for today): ")
        record = self.app.production.register_production(
            lot_id, total, broken, record_date=record_date,
            actor=self.app.auth.current_identity(),
        )
        self._ok(f"Production registered (record {record.record_id})")

    def list_production(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        records = self.app.production.records_for_lot(lot_id)
        if not records:
            self._out("No production recorded for this lot.")
            return
        for record in records:
            self._out(
                f"{record.record_id}  {record.record_date.isoformat()}  "
                f"total {record.total_eggs:>6}  broken {record.broken_eggs:>5}"
            )

    def broken_percentage(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        value = self.app.production.broken_egg_percentage(lot_id)
        self._out(f"Broken eggs: {value:.2f}%")

    def correct_record(self) -> None:
        record = self.app.production.get_record(self._input("Record id: ").strip())
        self._out(f"Current values: total_eggs={record.total_eggs} broken_eggs={record.broken_eggs}")
        changes = []
        for field_name in CORRECTABLE_FIELDS:
            raw = self._input(f"New {field_name} (empty to keep {getattr(record, field_name)}): ").strip()
            if raw:
                changes.append((field_name, raw))
        if not changes:
            self._out("Nothing to correct.")
            return
        reason = self._input("Reason for the correction: ")
        entries = self.app.production.correct_record(
            record.record_id, changes, reason, self.app.auth.current_identity()
        )
        if entries:
            self._ok(f"{len(entries)} field(s) corrected and audited")
        else:
            self._out("Values unchanged; nothing was recorded.")

    # -----------------
    # Analytics
    # -----------------
    def analytics_menu(self) -> None:
        self._submenu("ANALYTICS AND ALERTS", [
            ("Run daily analysis", self.daily_analysis),
            ("Feed conversion ratio", self.feed_conversion),
            ("Weekly report", self.weekly_report),
            ("Pending critical alerts", self.critical_alerts),
            ("Alerts of a lot", self.lot_alerts),
            ("Alerts between dates", self.alerts_between),
            ("Alerts by type", self.alerts_by_type),
            ("Alert summary", self.alert_summary),
            ("Resolve alert", self.resolve_alert),
        ])

    def daily_analysis(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        day = self._ask_date("Day (YYYY-MM-DD, empty for today): ")
        alert = self.app.analytics.run_daily_analysis(lot_id, day)
        if alert is None:
            self._ok("No anomalies detected")
        else:
            self._out(f"⚠️ {alert.message}")

    def feed_conversion(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        ratio = self.app.analytics.feed_conversion_ratio(lot_id)
        self._out(f"Feed conversion ratio: {ratio:.2f} kg feed / kg eggs")

    def weekly_report(self) -> None:
        self._out(self.app.analytics.weekly_report(self._input("Lot id: ").strip()))

    def critical_alerts(self) -> None:
        self._print_alerts(self.app.analytics.critical_alerts())

    def lot_alerts(self) -> None:
        lot_id = self._input("Lot id: ").strip()
        self._print_alerts(self.app.analytics.alerts_for_lot(lot_id))
        self._out(f"Pending: {self.app.analytics.pending_alert_count(lot_id)}")

    def alerts_between(self) -> None:
        start = self._ask_date("From (YYYY-MM-DD): ") or date.today()
        end = self._ask_date("To (YYYY-MM-DD): ") or date.today()
        self._print_alerts(self.app.analytics.alerts_between(start, end))

    def alerts_by_type(self) -> None:
        raw = self._input("Type (CRITICAL/WARNING/INFO): ").strip().upper()
        try:
            alert_type = AlertType(raw)
        except ValueError:
            self._out(f"Unknown alert type '{raw}'")
            return
        self._print_alerts(self.app.analytics.alerts_of_type(alert_type))

    def alert_summary(self) -> None:
        for label, count in self.app.analytics.alert_summary().items():
            self._out(f"  {label:<9} {count:>5}")

    def resolve_alert(self) -> None:
        alert = self.app.analytics.resolve_alert(self._input("Alert id: ").strip())
        self._ok(f"Alert {alert.alert_id} resolved")

    def _print_alerts(self, alerts) -> None:
        if not alerts:
            self._out("No alerts.")
            return
        for alert in alerts:
            self._out(
                f"{alert.alert_id}  {alert.alert_date.isoformat()}  "
                f"{alert.alert_type.value:<8} {alert.status.value:<8} {alert.message}"
            )

    # -----------------
    # Users
    # -----------------
    def users_menu(self) -> None:
        self._submenu("USERS", [
            ("Create user", self.create_user),
            ("Deactivate user", self.deactivate_user),
            ("List users", self.list_users),
        ])

    def create_user(self) -> None:
        name = self._input("Name: ").strip()
        password = self._password("Password: ")
        role = self._input("Role (ADMIN/OPERATOR): ").strip()
        identity = self.app.auth.create_identity(name, password, role)
        self._ok(f"User {identity.name} created as {identity.role.label}")

    def deactivate_user(self) -> None:
        identity = self.app.auth.deactivate(self._input("User id: ").strip())
        self._ok(f"User {identity.name} is inactive")

    def list_users(self) -> None:
        for identity in self.app.auth.list_identities():
            view = IdentityResponse.from_identity(identity)
            status = "active" if view.is_active else "inactive"
            self._out(f"{view.user_id}  {view.name:<20} {view.role.label:<13} {status}")

    # -----------------
    # Audit log
    # -----------------
    def audit_menu(self) -> None:
        self._submenu("AUDIT LOG", [
            ("History of a record", self.audit_by_entity),
            ("Changes by user", self.audit_by_actor),
            ("Changes between dates", self.audit_by_dates),
            ("Changes by entity type", self.audit_by_type),
            ("Full log", self.audit_all),
        ])

    def audit_by_entity(self) -> None:
        self._print_entries(self.app.audit.entries_for_entity(self._input("Entity id: ").strip()))

    def audit_by_actor(self) -> None:
        self._print_entries(self.app.audit.entries_by_actor(self._input("User id: ").strip()))

    def audit_by_dates(self) -> None:
        start = self._ask_date("From (YYYY-MM-DD): ") or date.today()
        end = self._ask_date("To (YYYY-MM-DD): ") or date.today()
        self._print_entries(self.app.audit.entries_between(
            datetime.combine(start, time.min, tzinfo=timezone.utc),
            datetime.combine(end, time.max, tzinfo=timezone.utc),
        ))

    def audit_by_type(self) -> None:
        raw = self._input("Entity type (LOT/PRODUCTION/USER): ").strip().upper()
        try:
            entity_type = EntityType(raw)
        except ValueError:
            self._out(f"Unknown entity type '{raw}'")
            return
        self._print_entries(self.app.audit.entries_by_type(entity_type))

    def audit_all(self) -> None:
        self._print_entries(self.app.audit.all_entries())

    def _print_entries(self, entries: List[AuditEntry]) -> None:
        if not entries:
            self._out("No audit entries.")
            return
        for entry in entries:
            change = ""
            if entry.field_name:
                change = f" {entry.field_name}: {entry.old_value} -> {entry.new_value}"
            self._out(
                f"{entry.timestamp.strftime('%Y-%m-%d %H:%M:%S')}  {entry.action.value:<6} "
                f"{entry.entity_type.value:<10} {entry.entity_id}{change}  "
                f"by {entry.actor_name}  ({entry.reason})"
            )

    # -----------------
    # Prompts
    # -----------------
    def _ask_int(self, prompt: str) -> int:
        while True:
            raw = self._input(prompt).strip()
            try:
                return int(raw)
            except ValueError:
                self._out("Please enter a whole number.")

    def _ask_date(self, prompt: str) -> Optional[date]:
        while True:
            raw = self._input(prompt).strip()
            if not raw:
                return None
            try:
                return date.fromisoformat(raw)
            except ValueError:
                self._out("Please use the YYYY-MM-DD format.")

    def _ok(self, message: str) -> None:
        self._out(f"✅ {message}")

    def _error(self, exc: GranjaError) -> None:
        self._out(f"❌ {exc}")
