from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from family_graph.models import Gender, Individual, Relationship

# 登録推移として表示する月数
GROWTH_MONTHS = 12


@dataclass
class FamilyStatistics:
    """家族データの集計結果。"""

    total: int = 0
    male: int = 0
    female: int = 0
    unrecognized_gender: int = 0
    living: int = 0
    birth_decades: dict[str, int] = field(default_factory=dict)
    monthly_growth: dict[str, int] = field(default_factory=dict)
    relationship_types: dict[str, int] = field(default_factory=dict)

    def percentage(self, count: int) -> float:
        """総数に対する割合（%、小数第1位）。総数0なら0.0。"""
        if self.total == 0:
            return 0.0
        return round(count / self.total * 100, 1)


def compute_statistics(
    individuals: Iterable[Individual],
    relationships: Iterable[Relationship] = (),
) -> FamilyStatistics:
    """性別・存命者数・出生年代・月別登録数・関係種別ごとの件数を集計する。"""
    people = list(individuals)
    genders = Counter(p.recognized_gender for p in people)

    decades: Counter[str] = Counter(
        f"{p.birth_date.year // 10 * 10}s" for p in people
    )
    months: Counter[str] = Counter(
        p.created_at.strftime("%Y-%m") for p in people if p.created_at is not None
    )
    # 直近 GROWTH_MONTHS か月分（データのある月のみ）
    recent_months = sorted(months)[-GROWTH_MONTHS:]

    rel_types = Counter(r.type for r in relationships)

    return FamilyStatistics(
        total=len(people),
        male=genders[Gender.MALE],
        female=genders[Gender.FEMALE],
        unrecognized_gender=genders[None],
        living=sum(1 for p in people if p.is_living),
        birth_decades={
            k: decades[k] for k in sorted(decades, key=lambda d: int(d[:-1]))
        },
        monthly_growth={k: months[k] for k in recent_months},
        relationship_types={k: rel_types[k] for k in sorted(rel_types)},
    )
