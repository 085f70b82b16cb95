from __future__ import annotations

import logging

from family_graph.models import Gender, Individual, Relationship, RelationshipType

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "unknown"


def describe_relationship(
    relationship: Relationship,
    person1: Individual | None,
    person2: Individual | None,
) -> str:
    """関係を自然文で表現する。

    入力だけで結果が決まる（ロケールや実行環境に依存しない）。
    person が None の場合（参照切れ）は名前を "unknown"、性別を未認識として扱う。

    - parent: person1 の性別で father / mother、未認識なら parent
    - spouse: 一方だけが男性なら husband / wife、それ以外は spouse
    - その他の種類: "A — type — B"
    """
    name1 = person1.full_name if person1 is not None else UNKNOWN_NAME
    name2 = person2.full_name if person2 is not None else UNKNOWN_NAME
    gender1 = person1.recognized_gender if person1 is not None else None
    gender2 = person2.recognized_gender if person2 is not None else None

    if relationship.type == RelationshipType.PARENT.value:
        if gender1 is Gender.MALE:
            return f"{name1} is the father of {name2}"
        if gender1 is Gender.FEMALE:
            return f"{name1} is the mother of {name2}"
        logger.debug("unrecognized parent gender for %s: %r", name1, _raw_gender(person1))
        return f"{name1} is the parent of {name2}"

    if relationship.type == RelationshipType.SPOUSE.value:
        male1 = gender1 is Gender.MALE
        male2 = gender2 is Gender.MALE
        if male1 and not male2:
            return f"{name1} is the husband of {name2}"
        if male2 and not male1:
            return f"{name1} is the wife of {name2}"
        return f"{name1} is the spouse of {name2}"

    return f"{name1} — {relationship.type} — {name2}"


def _raw_gender(person: Individual | None) -> str | None:
    return person.gender if person is not None else None
