from __future__ import annotations

from datetime import date

from family_graph.models import Individual, Relationship, RelationshipCandidate
from family_graph.validator import (
    ValidationFailure,
    ValidationResult,
    validate_relationship,
)


def _make_person(id: int, birth_year: int, gender: str = "male") -> Individual:
    return Individual(
        id=id,
        full_name=f"人物{id}",
        gender=gender,
        birth_date=date(birth_year, 1, 1),
    )


def _people() -> list[Individual]:
    """A(1950, 男) B(1952, 女) C(1975)"""
    return [
        _make_person(1, 1950, "male"),
        _make_person(2, 1952, "female"),
        _make_person(3, 1975, "male"),
    ]


class TestSelfRelationship:
    def test_parent_self_rejected(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(1, 1, "parent"), _people(), []
        )
        assert result.failure == ValidationFailure.SELF_RELATIONSHIP

    def test_spouse_self_rejected(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(2, 2, "spouse"), _people(), []
        )
        assert result.failure == ValidationFailure.SELF_RELATIONSHIP

    def test_unknown_type_self_rejected(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(3, 3, "godparent"), _people(), []
        )
        assert result.failure == ValidationFailure.SELF_RELATIONSHIP

    def test_self_checked_before_existence(self) -> None:
        """存在しない ID でも自己関係が先に判定される。"""
        result = validate_relationship(RelationshipCandidate(99, 99, "parent"), [], [])
        assert result.failure == ValidationFailure.SELF_RELATIONSHIP


class TestParentChronology:
    def test_older_parent_accepted(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(1, 3, "parent"), _people(), []
        )
        assert result.ok
        assert result.failure is None

    def test_younger_parent_rejected(self) -> None:
        """C(1975) を A(1950) の親にはできない。"""
        result = validate_relationship(
            RelationshipCandidate(3, 1, "parent"), _people(), []
        )
        assert result.failure == ValidationFailure.CHRONOLOGY_VIOLATION

    def test_equal_birth_dates_rejected(self) -> None:
        people = [_make_person(1, 1980), _make_person(2, 1980)]
        result = validate_relationship(
            RelationshipCandidate(1, 2, "parent"), people, []
        )
        assert result.failure == ValidationFailure.CHRONOLOGY_VIOLATION

    def test_one_day_older_accepted(self) -> None:
        people = [
            Individual(id=1, full_name="A", gender="male", birth_date=date(1980, 1, 1)),
            Individual(id=2, full_name="B", gender="male", birth_date=date(1980, 1, 2)),
        ]
        result = validate_relationship(
            RelationshipCandidate(1, 2, "parent"), people, []
        )
        assert result.ok

    def test_unknown_parent(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(42, 3, "parent"), _people(), []
        )
        assert result.failure == ValidationFailure.UNKNOWN_INDIVIDUAL

    def test_unknown_child(self) -> None:
        result = validate_relationship(
            RelationshipCandidate(1, 42, "parent"), _people(), []
        )
        assert result.failure == ValidationFailure.UNKNOWN_INDIVIDUAL

    def test_spouse_ignores_chronology(self) -> None:
        """配偶者関係では生年月日の順序を問わない。"""
        result = validate_relationship(
            RelationshipCandidate(3, 1, "spouse"), _people(), []
        )
        assert result.ok


class TestDuplicate:
    def test_same_parent_twice_rejected(self) -> None:
        existing = [Relationship(id=1, person1_id=1, person2_id=3, type="parent")]
        result = validate_relationship(
            RelationshipCandidate(1, 3, "parent"), _people(), existing
        )
        assert result.failure == ValidationFailure.DUPLICATE_RELATIONSHIP

    def test_reversed_spouse_rejected(self) -> None:
        existing = [Relationship(id=1, person1_id=1, person2_id=2, type="spouse")]
        result = validate_relationship(
            RelationshipCandidate(2, 1, "spouse"), _people(), existing
        )
        assert result.failure == ValidationFailure.DUPLICATE_RELATIONSHIP

    def test_same_spouse_twice_rejected(self) -> None:
        existing = [Relationship(id=1, person1_id=1, person2_id=2, type="spouse")]
        result = validate_relationship(
            RelationshipCandidate(1, 2, "spouse"), _people(), existing
        )
        assert result.failure == ValidationFailure.DUPLICATE_RELATIONSHIP

    def test_reversed_parent_is_not_duplicate(self) -> None:
        """parent は向きを区別するため、逆向きは重複ではない。"""
        # 既存行 (1 -> 2) は過去データ。生年月日の検査を通すため 2 を年長にする
        people = [_make_person(1, 1950), _make_person(2, 1920)]
        existing = [Relationship(id=1, person1_id=1, person2_id=2, type="parent")]
        result = validate_relationship(
            RelationshipCandidate(2, 1, "parent"), people, existing
        )
        assert result.ok

    def test_different_type_is_not_duplicate(self) -> None:
        existing = [Relationship(id=1, person1_id=1, person2_id=3, type="spouse")]
        result = validate_relationship(
            RelationshipCandidate(1, 3, "parent"), _people(), existing
        )
        assert result.ok

    def test_unknown_type_is_ordered(self) -> None:
        existing = [Relationship(id=1, person1_id=1, person2_id=2, type="godparent")]
        result = validate_relationship(
            RelationshipCandidate(2, 1, "godparent"), _people(), existing
        )
        assert result.ok

    def test_chronology_checked_before_duplicate(self) -> None:
        existing = [Relationship(id=1, person1_id=3, person2_id=1, type="parent")]
        result = validate_relationship(
            RelationshipCandidate(3, 1, "parent"), _people(), existing
        )
        assert result.failure == ValidationFailure.CHRONOLOGY_VIOLATION


class TestValidationResult:
    def test_message_for_failure(self) -> None:
        result = ValidationResult(ValidationFailure.DUPLICATE_RELATIONSHIP)
        assert not result.ok
        assert result.message == "この関係は既に登録されています"

    def test_message_empty_on_success(self) -> None:
        assert ValidationResult().message == ""

    def test_inputs_not_mutated(self) -> None:
        people = _people()
        existing = [Relationship(id=1, person1_id=1, person2_id=3, type="parent")]
        validate_relationship(RelationshipCandidate(2, 3, "parent"), people, existing)
        assert len(people) == 3
        assert len(existing) == 1
