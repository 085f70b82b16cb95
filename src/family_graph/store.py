"""CSV ファイルによる個人・関係・出来事データの保存。

データディレクトリ内の individuals.csv、relationships.csv、events.csv を
読み書きする。
ファイルが存在しない場合は空の一覧として扱う。
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

from family_graph.models import (
    FamilySnapshot,
    Individual,
    LifeEvent,
    Relationship,
    RelationshipCandidate,
)

logger = logging.getLogger(__name__)

INDIVIDUALS_FILE = "individuals.csv"
RELATIONSHIPS_FILE = "relationships.csv"
EVENTS_FILE = "events.csv"

INDIVIDUAL_COLUMNS = (
    "id",
    "full_name",
    "gender",
    "birth_date",
    "death_date",
    "birth_place",
    "residence",
    "biography",
    "created_at",
)
RELATIONSHIP_COLUMNS = ("id", "person1_id", "person2_id", "type", "created_at")
EVENT_COLUMNS = ("id", "title", "date", "description", "created_at")

REQUIRED_INDIVIDUAL_COLUMNS = {"id", "full_name", "gender", "birth_date"}
REQUIRED_RELATIONSHIP_COLUMNS = {"id", "person1_id", "person2_id", "type"}
REQUIRED_EVENT_COLUMNS = {"id", "title", "date", "description"}

# 編集可能な個人のフィールド（id と created_at は変更しない）
EDITABLE_INDIVIDUAL_FIELDS = frozenset(
    {
        "full_name",
        "gender",
        "birth_date",
        "death_date",
        "birth_place",
        "residence",
        "biography",
    }
)


class StoreError(Exception):
    """データの読み書き時のエラー。"""


class CsvFamilyStore:
    """CSV ファイルを使った個人・関係・出来事データのストア。"""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    @property
    def individuals_path(self) -> Path:
        return self.data_dir / INDIVIDUALS_FILE

    @property
    def relationships_path(self) -> Path:
        return self.data_dir / RELATIONSHIPS_FILE

    @property
    def events_path(self) -> Path:
        return self.data_dir / EVENTS_FILE

    # ------------------------------------------------------------------
    # 読み込み
    # ------------------------------------------------------------------

    def list_individuals(self) -> list[Individual]:
        rows = _read_rows(self.individuals_path, REQUIRED_INDIVIDUAL_COLUMNS)
        individuals: list[Individual] = []
        seen_ids: set[int] = set()
        for i, row in enumerate(rows, start=2):  # ヘッダー行が1行目
            try:
                person = _parse_individual(row)
            except (ValueError, KeyError) as e:
                raise StoreError(f"{self.individuals_path.name} {i}行目: {e}") from e
            if person.id in seen_ids:
                raise StoreError(
                    f"{self.individuals_path.name} {i}行目: IDが重複しています: {person.id}"
                )
            seen_ids.add(person.id)
            individuals.append(person)
        return individuals

    def list_relationships(self) -> list[Relationship]:
        rows = _read_rows(self.relationships_path, REQUIRED_RELATIONSHIP_COLUMNS)
        relationships: list[Relationship] = []
        seen_ids: set[int] = set()
        for i, row in enumerate(rows, start=2):
            try:
                rel = _parse_relationship(row)
            except (ValueError, KeyError) as e:
                raise StoreError(f"{self.relationships_path.name} {i}行目: {e}") from e
            if rel.id in seen_ids:
                raise StoreError(
                    f"{self.relationships_path.name} {i}行目: IDが重複しています: {rel.id}"
                )
            seen_ids.add(rel.id)
            relationships.append(rel)
        return relationships

    def snapshot(self) -> FamilySnapshot:
        return FamilySnapshot(
            individuals=tuple(self.list_individuals()),
            relationships=tuple(self.list_relationships()),
        )

    # ------------------------------------------------------------------
    # 書き込み
    # ------------------------------------------------------------------

    def insert_relationship(self, candidate: RelationshipCandidate) -> Relationship:
        """関係を1件追加する。検証は呼び出し側で済ませておくこと。"""
        relationships = self.list_relationships()
        rel = Relationship(
            id=_next_id(r.id for r in relationships),
            person1_id=candidate.person1_id,
            person2_id=candidate.person2_id,
            type=candidate.type,
            created_at=_now(),
        )
        relationships.append(rel)
        self._write_relationships(relationships)
        logger.debug("inserted relationship %s", rel.id)
        return rel

    def insert_individual(
        self,
        full_name: str,
        gender: str,
        birth_date: date,
        death_date: date | None = None,
        birth_place: str = "",
        residence: str = "",
        biography: str = "",
    ) -> Individual:
        name = full_name.strip()
        if not name:
            raise StoreError("名前が空です")
        individuals = self.list_individuals()
        person = Individual(
            id=_next_id(p.id for p in individuals),
            full_name=name,
            gender=gender.strip(),
            birth_date=birth_date,
            death_date=death_date,
            birth_place=birth_place,
            residence=residence,
            biography=biography,
            created_at=_now(),
        )
        individuals.append(person)
        self._write_individuals(individuals)
        logger.debug("inserted individual %s", person.id)
        return person

    def delete_relationship(self, relationship_id: int) -> Relationship:
        relationships = self.list_relationships()
        remaining = [r for r in relationships if r.id != relationship_id]
        if len(remaining) == len(relationships):
            raise StoreError(f"関係ID {relationship_id} が存在しません")
        removed = next(r for r in relationships if r.id == relationship_id)
        self._write_relationships(remaining)
        return removed

    def delete_individual(self, person_id: int) -> int:
        """個人を削除し、その人物を参照する関係もすべて削除する。

        Returns:
            削除した関係の件数
        """
        individuals = self.list_individuals()
        remaining = [p for p in individuals if p.id != person_id]
        if len(remaining) == len(individuals):
            raise StoreError(f"個人ID {person_id} が存在しません")

        relationships = self.list_relationships()
        kept = [r for r in relationships if not r.involves(person_id)]
        removed_count = len(relationships) - len(kept)

        # 関係の書き込みに失敗しても、残るのは部分グラフで読み飛ばされる参照だけ
        self._write_individuals(remaining)
        self._write_relationships(kept)
        logger.debug(
            "deleted individual %s with %d relationships", person_id, removed_count
        )
        return removed_count

    def update_individual(self, person_id: int, **changes: Any) -> Individual:
        """個人の情報を更新する。ID と登録日時は変更できない。

        Args:
            person_id: 更新する人物の ID
            **changes: EDITABLE_INDIVIDUAL_FIELDS に含まれるフィールドの新しい値

        Returns:
            更新後の Individual
        """
        unknown = set(changes) - EDITABLE_INDIVIDUAL_FIELDS
        if unknown:
            raise StoreError(
                f"変更できないフィールドです: {', '.join(sorted(unknown))}"
            )
        if "full_name" in changes:
            changes["full_name"] = changes["full_name"].strip()
            if not changes["full_name"]:
                raise StoreError("名前が空です")
        if "gender" in changes:
            changes["gender"] = changes["gender"].strip()

        individuals = self.list_individuals()
        for i, person in enumerate(individuals):
            if person.id == person_id:
                updated = replace(person, **changes)
                individuals[i] = updated
                break
        else:
            raise StoreError(f"個人ID {person_id} が存在しません")

        self._write_individuals(individuals)
        logger.debug("updated individual %s: %s", person_id, sorted(changes))
        return updated

    # ------------------------------------------------------------------
    # 出来事
    # ------------------------------------------------------------------

    def list_events(self) -> list[LifeEvent]:
        rows = _read_rows(self.events_path, REQUIRED_EVENT_COLUMNS)
        events: list[LifeEvent] = []
        seen_ids: set[int] = set()
        for i, row in enumerate(rows, start=2):
            try:
                event = _parse_event(row)
            except (ValueError, KeyError) as e:
                raise StoreError(f"{self.events_path.name} {i}行目: {e}") from e
            if event.id in seen_ids:
                raise StoreError(
                    f"{self.events_path.name} {i}行目: IDが重複しています: {event.id}"
                )
            seen_ids.add(event.id)
            events.append(event)
        return events

    def insert_event(self, title: str, event_date: date, description: str) -> LifeEvent:
        title, description = _check_event_text(title, description)
        events = self.list_events()
        event = LifeEvent(
            id=_next_id(e.id for e in events),
            title=title,
            date=event_date,
            description=description,
            created_at=_now(),
        )
        events.append(event)
        self._write_events(events)
        logger.debug("inserted event %s", event.id)
        return event

    def update_event(
        self, event_id: int, title: str, event_date: date, description: str
    ) -> LifeEvent:
        title, description = _check_event_text(title, description)
        events = self.list_events()
        for i, event in enumerate(events):
            if event.id == event_id:
                updated = replace(
                    event, title=title, date=event_date, description=description
                )
                events[i] = updated
                break
        else:
            raise StoreError(f"出来事ID {event_id} が存在しません")
        self._write_events(events)
        return updated

    def delete_event(self, event_id: int) -> LifeEvent:
        events = self.list_events()
        remaining = [e for e in events if e.id != event_id]
        if len(remaining) == len(events):
            raise StoreError(f"出来事ID {event_id} が存在しません")
        removed = next(e for e in events if e.id == event_id)
        self._write_events(remaining)
        return removed

    def _write_events(self, events: list[LifeEvent]) -> None:
        _write_rows(self.events_path, EVENT_COLUMNS, [_format_event(e) for e in events])

    def _write_individuals(self, individuals: list[Individual]) -> None:
        _write_rows(
            self.individuals_path,
            INDIVIDUAL_COLUMNS,
            [_format_individual(p) for p in individuals],
        )

    def _write_relationships(self, relationships: list[Relationship]) -> None:
        _write_rows(
            self.relationships_path,
            RELATIONSHIP_COLUMNS,
            [_format_relationship(r) for r in relationships],
        )


# ---------------------------------------------------------------------------
# CSV 入出力
# ---------------------------------------------------------------------------


def _read_rows(path: Path, required: set[str]) -> list[dict[str, str]]:
    if not path.exists():
        return []

    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return []

        missing = required - set(reader.fieldnames)
        if missing:
            raise StoreError(
                f"{path.name}: 必須カラムが不足しています: {', '.join(sorted(missing))}"
            )
        return list(reader)


def _write_rows(
    path: Path, columns: tuple[str, ...], rows: list[dict[str, str]]
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            writer.writerows(rows)
    except OSError as e:
        raise StoreError(f"{path} に書き込めません: {e}") from e


def _required(row: dict[str, str], key: str) -> str:
    """必須フィールドを取り出す。列数が足りない行では None になるため空文字にする。"""
    return (row.get(key) or "").strip()


def _parse_individual(row: dict[str, str]) -> Individual:
    """1行のCSVデータを Individual に変換する。"""
    person_id = int(_required(row, "id"))
    name = _required(row, "full_name")
    if not name:
        raise ValueError("名前が空です")

    birth_str = _required(row, "birth_date")
    if not birth_str:
        raise ValueError("生年月日が空です")

    return Individual(
        id=person_id,
        full_name=name,
        gender=(row.get("gender") or "").strip(),
        birth_date=date.fromisoformat(birth_str),
        death_date=_optional_date(row.get("death_date")),
        birth_place=(row.get("birth_place") or "").strip(),
        residence=(row.get("residence") or "").strip(),
        biography=row.get("biography") or "",
        created_at=_optional_datetime(row.get("created_at")),
    )


def _parse_relationship(row: dict[str, str]) -> Relationship:
    rel_type = _required(row, "type")
    if not rel_type:
        raise ValueError("関係の種類が空です")
    return Relationship(
        id=int(_required(row, "id")),
        person1_id=int(_required(row, "person1_id")),
        person2_id=int(_required(row, "person2_id")),
        type=rel_type,
        created_at=_optional_datetime(row.get("created_at")),
    )


def _parse_event(row: dict[str, str]) -> LifeEvent:
    date_str = _required(row, "date")
    if not date_str:
        raise ValueError("日付が空です")
    title = _required(row, "title")
    if not title:
        raise ValueError("出来事のタイトルが空です")
    description = _required(row, "description")
    if not description:
        raise ValueError("出来事の説明が空です")
    return LifeEvent(
        id=int(_required(row, "id")),
        title=title,
        date=date.fromisoformat(date_str),
        description=description,
        created_at=_optional_datetime(row.get("created_at")),
    )


def _check_event_text(title: str, description: str) -> tuple[str, str]:
    title = title.strip()
    description = description.strip()
    if not title:
        raise StoreError("出来事のタイトルが空です")
    if not description:
        raise StoreError("出来事の説明が空です")
    return title, description


def _format_individual(person: Individual) -> dict[str, str]:
    return {
        "id": str(person.id),
        "full_name": person.full_name,
        "gender": person.gender,
        "birth_date": person.birth_date.isoformat(),
        "death_date": person.death_date.isoformat() if person.death_date else "",
        "birth_place": person.birth_place,
        "residence": person.residence,
        "biography": person.biography,
        "created_at": person.created_at.isoformat() if person.created_at else "",
    }


def _format_relationship(rel: Relationship) -> dict[str, str]:
    return {
        "id": str(rel.id),
        "person1_id": str(rel.person1_id),
        "person2_id": str(rel.person2_id),
        "type": rel.type,
        "created_at": rel.created_at.isoformat() if rel.created_at else "",
    }


def _format_event(event: LifeEvent) -> dict[str, str]:
    return {
        "id": str(event.id),
        "title": event.title,
        "date": event.date.isoformat(),
        "description": event.description,
        "created_at": event.created_at.isoformat() if event.created_at else "",
    }


def _optional_date(value: str | None) -> date | None:
    value = (value or "").strip()
    return date.fromisoformat(value) if value else None


def _optional_datetime(value: str | None) -> datetime | None:
    value = (value or "").strip()
    return datetime.fromisoformat(value) if value else None


def _next_id(ids: Iterable[int]) -> int:
    return max(ids, default=0) + 1


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)
