from __future__ import annotations

import logging
from datetime import date
from typing import Any

from family_graph import audit
from family_graph.audit import AuditLog
from family_graph.models import (
    Individual,
    LifeEvent,
    Relationship,
    RelationshipCandidate,
)
from family_graph.store import CsvFamilyStore
from family_graph.validator import ValidationResult, validate_relationship

logger = logging.getLogger(__name__)


class PermissionDeniedError(Exception):
    """データ変更権限がない。"""


class RelationshipService:
    """ストア・検証・監査ログをまとめた更新操作。

    更新系の操作はすべて can_mutate を確認してから行う。
    """

    def __init__(
        self, store: CsvFamilyStore, audit_log: AuditLog, can_mutate: bool
    ) -> None:
        self.store = store
        self.audit_log = audit_log
        self.can_mutate = can_mutate

    def _require_mutation(self) -> None:
        if not self.can_mutate:
            raise PermissionDeniedError("データを変更する権限がありません")

    def add_relationship(
        self, person1_id: int, person2_id: int, rel_type: str
    ) -> tuple[ValidationResult, Relationship | None]:
        """関係を検証し、問題がなければ保存する。

        Returns:
            (検証結果, 保存された関係)。検証に失敗した場合は関係が None。
        """
        self._require_mutation()
        candidate = RelationshipCandidate(person1_id, person2_id, rel_type)
        snapshot = self.store.snapshot()
        result = validate_relationship(
            candidate, snapshot.individuals, snapshot.relationships
        )
        if not result.ok:
            return result, None

        rel = self.store.insert_relationship(candidate)
        self.audit_log.record(
            audit.CREATE_RELATIONSHIP,
            {"person1_id": person1_id, "person2_id": person2_id, "type": rel_type},
        )
        return result, rel

    def remove_relationship(self, relationship_id: int) -> Relationship:
        self._require_mutation()
        rel = self.store.delete_relationship(relationship_id)
        self.audit_log.record(
            audit.DELETE_RELATIONSHIP,
            {
                "id": rel.id,
                "person1_id": rel.person1_id,
                "person2_id": rel.person2_id,
                "type": rel.type,
            },
        )
        return rel

    def add_individual(
        self,
        full_name: str,
        gender: str,
        birth_date: date,
        death_date: date | None = None,
        birth_place: str = "",
        residence: str = "",
        biography: str = "",
    ) -> Individual:
        self._require_mutation()
        person = self.store.insert_individual(
            full_name,
            gender,
            birth_date,
            death_date=death_date,
            birth_place=birth_place,
            residence=residence,
            biography=biography,
        )
        self.audit_log.record(
            audit.CREATE_INDIVIDUAL, {"id": person.id, "full_name": person.full_name}
        )
        return person

    def remove_individual(self, person_id: int) -> int:
        """個人を削除する。参照している関係も削除され、その件数を返す。"""
        self._require_mutation()
        removed = self.store.delete_individual(person_id)
        self.audit_log.record(
            audit.DELETE_INDIVIDUAL, {"id": person_id, "relationships_removed": removed}
        )
        return removed

    def update_individual(self, person_id: int, **changes: Any) -> Individual:
        """個人の情報を更新する。

        生年月日を変更しても、既存の親子関係の前後関係は再検証しない。
        """
        self._require_mutation()
        person = self.store.update_individual(person_id, **changes)
        self.audit_log.record(
            audit.UPDATE_INDIVIDUAL, {"id": person_id, "fields": sorted(changes)}
        )
        return person

    # ------------------------------------------------------------------
    # 出来事
    # ------------------------------------------------------------------

    def add_event(self, title: str, event_date: date, description: str) -> LifeEvent:
        self._require_mutation()
        event = self.store.insert_event(title, event_date, description)
        self.audit_log.record(
            audit.CREATE_EVENT, {"title": event.title, "date": event.date.isoformat()}
        )
        return event

    def update_event(
        self, event_id: int, title: str, event_date: date, description: str
    ) -> LifeEvent:
        self._require_mutation()
        event = self.store.update_event(event_id, title, event_date, description)
        self.audit_log.record(
            audit.UPDATE_EVENT,
            {"id": event.id, "title": event.title, "date": event.date.isoformat()},
        )
        return event

    def remove_event(self, event_id: int) -> LifeEvent:
        self._require_mutation()
        event = self.store.delete_event(event_id)
        self.audit_log.record(audit.DELETE_EVENT, {"id": event.id, "title": event.title})
        return event
