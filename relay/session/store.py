"""Session id persistence.

The backend session id is written to ``<state_dir>/session.json`` whenever
the backend announces one, so a restarted relay resumes the same
conversation.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

SESSION_FILENAME = "session.json"


class SessionStore:
    """Reads and writes the persisted session id."""

    def __init__(self, state_dir: Path):
        self.path = Path(state_dir) / SESSION_FILENAME

    def load(self) -> str | None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable session file %s, starting fresh", self.path)
            return None
        session_id = data.get("sessionId") if isinstance(data, dict) else None
        return session_id or None

    def save(self, session_id: str | None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "sessionId": session_id,
            "lastActivity": datetime.now(UTC).isoformat(),
        }
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def clear(self) -> None:
        self.save(None)
