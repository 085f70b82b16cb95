"""操作の監査ログ。

1行1レコードの JSON を追記する。書き込みに失敗しても呼び出し元の操作は
取り消さず、エラーログだけを残す。
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

AUDIT_FILE = "audit.jsonl"

CREATE_INDIVIDUAL = "CREATE_INDIVIDUAL"
UPDATE_INDIVIDUAL = "UPDATE_INDIVIDUAL"
DELETE_INDIVIDUAL = "DELETE_INDIVIDUAL"
CREATE_RELATIONSHIP = "CREATE_RELATIONSHIP"
DELETE_RELATIONSHIP = "DELETE_RELATIONSHIP"
CREATE_EVENT = "CREATE_EVENT"
UPDATE_EVENT = "UPDATE_EVENT"
DELETE_EVENT = "DELETE_EVENT"


class AuditLog:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def record(self, action: str, details: dict[str, Any] | None = None) -> None:
        entry = {
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "action": action,
            "details": details,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError:
            logger.exception("failed to write audit event %s", action)

    def read(self) -> list[dict[str, Any]]:
        """記録済みのイベントを古い順に返す。"""
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
