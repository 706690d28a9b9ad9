"""Logging setup and JSON security-event logging."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

LOG_DIR = Path(__file__).resolve().parents[2] / "artifacts" / "logs"
LOG_FILE_NAME = "security.log"
SENSITIVE_KEYS = {"password", "plaintext", "password_hash", "passworddigest"}

_log_file: Path = LOG_DIR / LOG_FILE_NAME


def configure_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> None:
	"""Install the console handler and point security events at ``log_dir``."""
	global _log_file

	logging.basicConfig(
		level=getattr(logging, level.upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)
	if log_dir is not None:
		_log_file = Path(log_dir) / LOG_FILE_NAME


def log_security_event(event: Dict[str, Any]) -> None:
	"""Persist a structured security event without leaking credentials."""

	payload = {
		"timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
	}
	for key, value in event.items():
		if key is None:
			continue
		normalized = str(key)
		if normalized.lower() in SENSITIVE_KEYS:
			continue
		payload[normalized] = value

	try:
		_log_file.parent.mkdir(parents=True, exist_ok=True)
		with _log_file.open("a", encoding="utf-8") as handle:
			json.dump(payload, handle, ensure_ascii=False, default=str)
			handle.write("\n")
	except OSError as exc:  # pragma: no cover - logging must never break a login
		logger.debug("Failed to write security log: %s", exc, exc_info=True)


def log_auth_event(event_type: str, **fields: Any) -> None:
	"""Record login/logout outcomes."""

	payload = {"event_type": event_type}
	payload.update(fields)
	log_security_event(payload)
