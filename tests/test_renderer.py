from __future__ import annotations

import shutil
from datetime import date
from pathlib import Path

import graphviz
import pytest

from family_graph.models import Individual, Relationship
from family_graph.renderer import render_graph, to_digraph
from family_graph.subgraph import Subgraph, build_subgraph

requires_dot = pytest.mark.skipif(
    shutil.which("neato") is None, reason="Graphviz がインストールされていない"
)


def _build_subgraph() -> Subgraph:
    individuals = [
        Individual(id=1, full_name="太郎", gender="male", birth_date=date(1940, 1, 1)),
        Individual(id=2, full_name="花子", gender="female", birth_date=date(1942, 1, 1)),
        Individual(id=3, full_name="一郎", gender="male", birth_date=date(1965, 1, 1)),
    ]
    relationships = [
        Relationship(id=1, person1_id=1, person2_id=3, type="parent"),
        Relationship(id=2, person1_id=2, person2_id=3, type="parent"),
        Relationship(id=3, person1_id=1, person2_id=2, type="spouse"),
    ]
    return build_subgraph(3, individuals, relationships)


class TestToDigraph:
    def test_returns_digraph(self) -> None:
        dot = to_digraph(_build_subgraph())
        assert isinstance(dot, graphviz.Digraph)
        assert dot.engine == "neato"

    def test_contains_labels(self) -> None:
        source = to_digraph(_build_subgraph()).source
        assert "太郎" in source
        assert "花子" in source
        assert "一郎" in source

    def test_positions_pinned(self) -> None:
        source = to_digraph(_build_subgraph()).source
        # ルート (400, 300) -> inch 単位、Y軸反転
        assert 'pos="5.556,-4.167!"' in source

    def test_gender_colors(self) -> None:
        source = to_digraph(_build_subgraph()).source
        assert "#dbeafe" in source
        assert "#fce7f3" in source

    def test_spouse_edge_has_no_arrow(self) -> None:
        """婚姻エッジは矢印なし（dir=none）。"""
        source = to_digraph(_build_subgraph()).source
        assert "dir=none" in source

    def test_edge_count(self) -> None:
        source = to_digraph(_build_subgraph()).source
        assert source.count("->") == 3


@requires_dot
class TestRenderGraph:
    def test_render_png(self, tmp_path: Path) -> None:
        dot = to_digraph(_build_subgraph())
        output = tmp_path / "test.png"
        result = render_graph(dot, output, fmt="png")
        assert result == output
        assert output.exists()
        assert output.stat().st_size > 0

    def test_render_svg(self, tmp_path: Path) -> None:
        dot = to_digraph(_build_subgraph())
        output = tmp_path / "test.svg"
        render_graph(dot, output, fmt="svg")
        content = output.read_text(encoding="utf-8")
        assert "<svg" in content

    def test_auto_create_directory(self, tmp_path: Path) -> None:
        """出力先ディレクトリが存在しない場合に自動作成される。"""
        dot = to_digraph(_build_subgraph())
        output = tmp_path / "nested" / "dir" / "test.png"
        render_graph(dot, output, fmt="png")
        assert output.exists()
