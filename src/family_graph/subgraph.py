"""選択された人物を中心とした部分グラフを構築する。

ルートの親・子・配偶者（1ホップ）だけを対象とし、祖父母や姻族はたどらない。
描画ライブラリに渡すためのノード・エッジ一覧と、表示用のヒント
（塗り色・ラベル・座標・線種）を生成する。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from family_graph.config import ColorConfig, LayoutConfig, to_hex
from family_graph.models import Gender, Individual, Relationship, RelationshipType

logger = logging.getLogger(__name__)


class NodeRole(Enum):
    ROOT = "root"
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"


class EdgeKind(Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"


# エッジ種別ごとの線種（描画側のヒント）
_LINE_TYPES: dict[EdgeKind, str] = {
    EdgeKind.PARENT: "smoothstep",
    EdgeKind.CHILD: "smoothstep",
    EdgeKind.SPOUSE: "straight",
}


class UnknownRootError(LookupError):
    """ルートに指定された人物が存在しない。"""


@dataclass(frozen=True)
class EdgeStyle:
    kind: EdgeKind
    stroke: str
    line_type: str

    @property
    def directed(self) -> bool:
        return self.kind is not EdgeKind.SPOUSE


@dataclass(frozen=True)
class SubgraphNode:
    id: str
    individual: Individual
    role: NodeRole
    position: tuple[int, int]
    fill_color: str
    label: str


@dataclass(frozen=True)
class SubgraphEdge:
    id: str
    source: str
    target: str
    label: str
    style: EdgeStyle


@dataclass
class Subgraph:
    """部分グラフの構築結果。"""

    root_id: int
    nodes: list[SubgraphNode] = field(default_factory=list)
    edges: list[SubgraphEdge] = field(default_factory=list)
    orphaned_relationship_ids: list[int] = field(default_factory=list)

    def get_node(self, node_id: str) -> SubgraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        """描画側（Web フロントエンド等）に渡すための素の辞書を返す。"""
        return {
            "root": str(self.root_id),
            "nodes": [
                {
                    "id": n.id,
                    "position": {"x": n.position[0], "y": n.position[1]},
                    "role": n.role.value,
                    "data": {
                        "label": n.label,
                        "full_name": n.individual.full_name,
                        "gender": n.individual.gender,
                    },
                    "style": {"background": n.fill_color},
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "id": e.id,
                    "source": e.source,
                    "target": e.target,
                    "label": e.label,
                    "type": e.style.line_type,
                    "style": {"stroke": e.style.stroke},
                }
                for e in self.edges
            ],
        }


def format_label(person: Individual) -> str:
    """ノードのラベル。名前と生年（没年があれば "生年-没年"）。"""
    if person.death_date is not None:
        years = f"{person.birth_date.year}-{person.death_date.year}"
    else:
        years = str(person.birth_date.year)
    return f"{person.full_name}\n({years})"


def node_fill_color(person: Individual, colors: ColorConfig) -> str:
    gender = person.recognized_gender
    if gender is Gender.MALE:
        return to_hex(colors.male_fill)
    if gender is Gender.FEMALE:
        return to_hex(colors.female_fill)
    return to_hex(colors.unknown_fill)


def edge_style(kind: EdgeKind, colors: ColorConfig) -> EdgeStyle:
    stroke = {
        EdgeKind.PARENT: colors.parent_line,
        EdgeKind.CHILD: colors.child_line,
        EdgeKind.SPOUSE: colors.spouse_line,
    }[kind]
    return EdgeStyle(kind=kind, stroke=to_hex(stroke), line_type=_LINE_TYPES[kind])


class _SubgraphAccumulator:
    """ノードの重複出力を防ぎながらノード・エッジを蓄積する。"""

    def __init__(
        self, root: Individual, layout: LayoutConfig, colors: ColorConfig
    ) -> None:
        self.layout = layout
        self.colors = colors
        self.subgraph = Subgraph(root_id=root.id)
        self.emitted: set[int] = set()
        self._add_node(root, NodeRole.ROOT, (layout.anchor_x, layout.anchor_y))

    def _add_node(
        self, person: Individual, role: NodeRole, position: tuple[int, int]
    ) -> bool:
        if person.id in self.emitted:
            return False
        self.emitted.add(person.id)
        self.subgraph.nodes.append(
            SubgraphNode(
                id=str(person.id),
                individual=person,
                role=role,
                position=position,
                fill_color=node_fill_color(person, self.colors),
                label=format_label(person),
            )
        )
        return True

    def add_relative(
        self,
        person: Individual,
        role: NodeRole,
        position: tuple[int, int],
        edge_id: str,
        source: int,
        target: int,
        kind: EdgeKind,
    ) -> None:
        """親族ノードとルートへのエッジを追加する。既出の人物は何もしない。"""
        if not self._add_node(person, role, position):
            logger.debug(
                "individual %s already in subgraph, skipping %s", person.id, edge_id
            )
            return
        self.add_edge(edge_id, source, target, kind)

    def add_edge(self, edge_id: str, source: int, target: int, kind: EdgeKind) -> None:
        self.subgraph.edges.append(
            SubgraphEdge(
                id=edge_id,
                source=str(source),
                target=str(target),
                label=kind.value,
                style=edge_style(kind, self.colors),
            )
        )

    def mark_orphaned(self, rel: Relationship, missing_id: int) -> None:
        logger.warning(
            "orphaned reference: relationship %s points to missing individual %s",
            rel.id,
            missing_id,
        )
        self.subgraph.orphaned_relationship_ids.append(rel.id)


def build_subgraph(
    root_id: int,
    individuals: Iterable[Individual],
    relationships: Iterable[Relationship],
    layout: LayoutConfig | None = None,
    colors: ColorConfig | None = None,
) -> Subgraph:
    """ルート人物から1ホップの部分グラフを構築する。

    親はルートの上段、子は下段、配偶者は右側に並べる。同じ段の人物は
    該当する関係行の出現順で横方向にずらす。同一人物が複数の関係行から
    到達できても、ノードは1つだけ出力する。

    ルートの親族同士（主にルートの両親）の配偶者関係は、ノードを追加せずに
    エッジだけを加える。

    存在しない人物を参照する関係行は警告ログを出して読み飛ばす。

    Args:
        root_id: ルート人物の ID
        individuals: 全個人の一覧
        relationships: 全関係の一覧
        layout: 配置パラメータ（省略時はデフォルト）
        colors: 描画色（省略時はデフォルト）

    Returns:
        Subgraph オブジェクト

    Raises:
        UnknownRootError: root_id の人物が存在しない
    """
    layout = layout if layout is not None else LayoutConfig()
    colors = colors if colors is not None else ColorConfig()

    index = {p.id: p for p in individuals}
    rels = list(relationships)

    root = index.get(root_id)
    if root is None:
        raise UnknownRootError(f"individual {root_id} does not exist")

    acc = _SubgraphAccumulator(root, layout, colors)
    parent_type = RelationshipType.PARENT.value
    spouse_type = RelationshipType.SPOUSE.value

    # 親（上段）
    parent_rels = [r for r in rels if r.type == parent_type and r.person2_id == root_id]
    for i, rel in enumerate(parent_rels):
        parent = index.get(rel.person1_id)
        if parent is None:
            acc.mark_orphaned(rel, rel.person1_id)
            continue
        acc.add_relative(
            parent,
            NodeRole.PARENT,
            (layout.parent_start_x + i * layout.parent_spacing, layout.parent_row_y),
            edge_id=f"parent-{rel.id}",
            source=parent.id,
            target=root_id,
            kind=EdgeKind.PARENT,
        )

    # 子（下段）
    child_rels = [r for r in rels if r.type == parent_type and r.person1_id == root_id]
    for i, rel in enumerate(child_rels):
        child = index.get(rel.person2_id)
        if child is None:
            acc.mark_orphaned(rel, rel.person2_id)
            continue
        acc.add_relative(
            child,
            NodeRole.CHILD,
            (layout.child_start_x + i * layout.child_spacing, layout.child_row_y),
            edge_id=f"child-{rel.id}",
            source=root_id,
            target=child.id,
            kind=EdgeKind.CHILD,
        )

    # 配偶者（ルートと同じ段の右側）
    spouse_rels = [r for r in rels if r.type == spouse_type and r.involves(root_id)]
    for i, rel in enumerate(spouse_rels):
        spouse_id = rel.other_party(root_id)
        spouse = index.get(spouse_id)
        if spouse is None:
            acc.mark_orphaned(rel, spouse_id)
            continue
        acc.add_relative(
            spouse,
            NodeRole.SPOUSE,
            (layout.spouse_start_x + i * layout.spouse_spacing, layout.anchor_y),
            edge_id=f"spouse-{rel.id}",
            source=root_id,
            target=spouse.id,
            kind=EdgeKind.SPOUSE,
        )

    # 親族同士の婚姻線（重複回避のためペアを追跡）
    linked_couples: set[frozenset[int]] = set()
    for rel in rels:
        if rel.type != spouse_type or rel.involves(root_id):
            continue
        if rel.person1_id == rel.person2_id:
            continue
        if rel.person1_id not in acc.emitted or rel.person2_id not in acc.emitted:
            continue
        couple = frozenset((rel.person1_id, rel.person2_id))
        if couple in linked_couples:
            continue
        linked_couples.add(couple)
        acc.add_edge(f"spouse-{rel.id}", rel.person1_id, rel.person2_id, EdgeKind.SPOUSE)

    return acc.subgraph
