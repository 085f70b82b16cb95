from __future__ import annotations

from datetime import date, datetime

from family_graph.models import Individual, Relationship
from family_graph.stats import compute_statistics


def _make_person(
    id: int,
    gender: str,
    birth_year: int,
    dead: bool = False,
    created: datetime | None = None,
) -> Individual:
    return Individual(
        id=id,
        full_name=f"人物{id}",
        gender=gender,
        birth_date=date(birth_year, 6, 1),
        death_date=date(2020, 1, 1) if dead else None,
        created_at=created,
    )


class TestComputeStatistics:
    def test_empty(self) -> None:
        s = compute_statistics([])
        assert s.total == 0
        assert s.percentage(s.male) == 0.0
        assert s.birth_decades == {}
        assert s.monthly_growth == {}

    def test_gender_counts(self) -> None:
        people = [
            _make_person(1, "male", 1950),
            _make_person(2, "女", 1952),
            _make_person(3, "", 1975),
        ]
        s = compute_statistics(people)
        assert (s.male, s.female, s.unrecognized_gender) == (1, 1, 1)
        assert s.percentage(s.male) == 33.3

    def test_living(self) -> None:
        people = [_make_person(1, "male", 1930, dead=True), _make_person(2, "male", 1960)]
        s = compute_statistics(people)
        assert s.living == 1
        assert s.percentage(s.living) == 50.0

    def test_birth_decades_sorted_numerically(self) -> None:
        people = [
            _make_person(1, "male", 1975),
            _make_person(2, "male", 1950),
            _make_person(3, "male", 1958),
            _make_person(4, "male", 990),
        ]
        s = compute_statistics(people)
        assert list(s.birth_decades.items()) == [("990s", 1), ("1950s", 2), ("1970s", 1)]

    def test_monthly_growth_keeps_last_twelve(self) -> None:
        people = [
            _make_person(i, "male", 1980, created=datetime(2023 + (i - 1) // 12, (i - 1) % 12 + 1, 1))
            for i in range(1, 15)
        ]
        s = compute_statistics(people)
        assert len(s.monthly_growth) == 12
        assert list(s.monthly_growth)[0] == "2023-03"
        assert list(s.monthly_growth)[-1] == "2024-02"

    def test_relationship_types(self) -> None:
        rels = [
            Relationship(id=1, person1_id=1, person2_id=2, type="spouse"),
            Relationship(id=2, person1_id=1, person2_id=3, type="parent"),
            Relationship(id=3, person1_id=2, person2_id=3, type="parent"),
        ]
        s = compute_statistics([], rels)
        assert s.relationship_types == {"parent": 2, "spouse": 1}
