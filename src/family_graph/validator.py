"""関係の登録前検証。

保存前に候補の関係をドメインルールに照らして検査する。副作用はなく、
失敗は例外ではなく ValidationResult として返す。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from family_graph.models import (
    Individual,
    Relationship,
    RelationshipCandidate,
    RelationshipType,
)

logger = logging.getLogger(__name__)


class ValidationFailure(Enum):
    SELF_RELATIONSHIP = "self_relationship"
    UNKNOWN_INDIVIDUAL = "unknown_individual"
    CHRONOLOGY_VIOLATION = "chronology_violation"
    DUPLICATE_RELATIONSHIP = "duplicate_relationship"


# 画面表示用のメッセージ
FAILURE_MESSAGES: dict[ValidationFailure, str] = {
    ValidationFailure.SELF_RELATIONSHIP: "自分自身との関係は登録できません",
    ValidationFailure.UNKNOWN_INDIVIDUAL: "指定された人物が存在しません",
    ValidationFailure.CHRONOLOGY_VIOLATION: "親の生年月日は子の生年月日より前である必要があります",
    ValidationFailure.DUPLICATE_RELATIONSHIP: "この関係は既に登録されています",
}


@dataclass(frozen=True)
class ValidationResult:
    failure: ValidationFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def message(self) -> str:
        return "" if self.failure is None else FAILURE_MESSAGES[self.failure]


VALID = ValidationResult()


def validate_relationship(
    candidate: RelationshipCandidate,
    individuals: Iterable[Individual],
    relationships: Iterable[Relationship],
) -> ValidationResult:
    """候補の関係を検証する。

    ルールは以下の順に適用し、最初に失敗したものを返す。

    1. person1 と person2 が同一人物
    2. parent の場合: 両者が存在し、person1 の生年月日が person2 より厳密に前
    3. 同じ種類の関係が既に存在する（parent は順序あり、spouse は順序なし）

    Args:
        candidate: 検証対象の関係
        individuals: 全個人の一覧
        relationships: 登録済みの全関係

    Returns:
        ValidationResult。ok が True なら保存してよい。
    """
    if candidate.person1_id == candidate.person2_id:
        return _fail(candidate, ValidationFailure.SELF_RELATIONSHIP)

    if candidate.type == RelationshipType.PARENT.value:
        index = {p.id: p for p in individuals}
        parent = index.get(candidate.person1_id)
        child = index.get(candidate.person2_id)
        if parent is None or child is None:
            return _fail(candidate, ValidationFailure.UNKNOWN_INDIVIDUAL)
        if parent.birth_date >= child.birth_date:
            return _fail(candidate, ValidationFailure.CHRONOLOGY_VIOLATION)

    if any(_is_duplicate(candidate, rel) for rel in relationships):
        return _fail(candidate, ValidationFailure.DUPLICATE_RELATIONSHIP)

    return VALID


def _is_duplicate(candidate: RelationshipCandidate, rel: Relationship) -> bool:
    if rel.type != candidate.type:
        return False
    same_order = (
        rel.person1_id == candidate.person1_id
        and rel.person2_id == candidate.person2_id
    )
    if same_order:
        return True
    # 配偶者関係は向きを区別しない
    if candidate.type == RelationshipType.SPOUSE.value:
        return (
            rel.person1_id == candidate.person2_id
            and rel.person2_id == candidate.person1_id
        )
    return False


def _fail(
    candidate: RelationshipCandidate, failure: ValidationFailure
) -> ValidationResult:
    logger.info(
        "relationship rejected (%s): %s -> %s [%s]",
        failure.value,
        candidate.person1_id,
        candidate.person2_id,
        candidate.type,
    )
    return ValidationResult(failure)
