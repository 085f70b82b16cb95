from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"


class RelationshipType(Enum):
    PARENT = "parent"
    SPOUSE = "spouse"


# 性別は自由入力テキストとして保存されるため、既知の表記をここで正規化する
_GENDER_ALIASES: dict[str, Gender] = {
    "male": Gender.MALE,
    "m": Gender.MALE,
    "男": Gender.MALE,
    "female": Gender.FEMALE,
    "f": Gender.FEMALE,
    "女": Gender.FEMALE,
}


def classify_gender(text: str | None) -> Gender | None:
    """性別テキストを Gender に変換する。

    認識できない値（空文字・未知の表記）は None を返す。エラーにはしない。
    """
    if text is None:
        return None
    return _GENDER_ALIASES.get(text.strip().lower())


@dataclass(frozen=True)
class Individual:
    """家族の構成員1人を表すデータクラス。"""

    id: int
    full_name: str
    gender: str
    birth_date: date
    death_date: date | None = None
    birth_place: str = ""
    residence: str = ""
    biography: str = ""
    created_at: datetime | None = None

    @property
    def is_living(self) -> bool:
        return self.death_date is None

    @property
    def recognized_gender(self) -> Gender | None:
        return classify_gender(self.gender)


@dataclass(frozen=True)
class Relationship:
    """2人の間の関係。

    type が "parent" の場合は person1 が person2 の親、
    "spouse" の場合は向きを持たない。それ以外の値もそのまま保持する。
    """

    id: int
    person1_id: int
    person2_id: int
    type: str
    created_at: datetime | None = None

    def involves(self, person_id: int) -> bool:
        return person_id in (self.person1_id, self.person2_id)

    def other_party(self, person_id: int) -> int:
        """person_id でない側の ID を返す。"""
        return self.person2_id if self.person1_id == person_id else self.person1_id


@dataclass(frozen=True)
class RelationshipCandidate:
    """保存前の関係（ID・作成日時を持たない）。"""

    person1_id: int
    person2_id: int
    type: str


@dataclass(frozen=True)
class FamilySnapshot:
    """ある時点の個人・関係の一覧。

    ストアから取得した値をそのまま保持し、呼び出し側で変更しない。
    """

    individuals: tuple[Individual, ...] = ()
    relationships: tuple[Relationship, ...] = ()
    _index: dict[int, Individual] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self._index.update((p.id, p) for p in self.individuals)

    def get_individual(self, person_id: int) -> Individual | None:
        return self._index.get(person_id)

    def get_parents(self, person_id: int) -> list[Individual]:
        """指定された人物の親を返す。"""
        return [
            self._index[rel.person1_id]
            for rel in self.relationships
            if rel.type == RelationshipType.PARENT.value
            and rel.person2_id == person_id
            and rel.person1_id in self._index
        ]

    def get_children(self, person_id: int) -> list[Individual]:
        """指定された人物の子供を返す。"""
        return [
            self._index[rel.person2_id]
            for rel in self.relationships
            if rel.type == RelationshipType.PARENT.value
            and rel.person1_id == person_id
            and rel.person2_id in self._index
        ]

    def get_spouses(self, person_id: int) -> list[Individual]:
        """指定された人物の配偶者を返す。"""
        return [
            self._index[rel.other_party(person_id)]
            for rel in self.relationships
            if rel.type == RelationshipType.SPOUSE.value
            and rel.involves(person_id)
            and rel.other_party(person_id) in self._index
        ]


@dataclass(frozen=True)
class LifeEvent:
    """出来事（誕生・結婚・移住など）の記録。"""

    id: int
    title: str
    date: date
    description: str
    created_at: datetime | None = None


def search_events(events: list[LifeEvent], term: str) -> list[LifeEvent]:
    """タイトルまたは説明に term を含む出来事を返す（大文字小文字を区別しない）。

    term が空白のみの場合は全件を返す。
    """
    needle = term.strip().lower()
    if not needle:
        return list(events)
    return [
        e
        for e in events
        if needle in e.title.lower() or needle in e.description.lower()
    ]
