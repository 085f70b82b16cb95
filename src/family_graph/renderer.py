from __future__ import annotations

from pathlib import Path

import graphviz

from family_graph.config import AppConfig, to_hex
from family_graph.subgraph import Subgraph

# 論理座標 (px 相当) を Graphviz の inch に変換する係数
POINTS_PER_INCH = 72


def to_digraph(subgraph: Subgraph, config: AppConfig | None = None) -> graphviz.Digraph:
    """部分グラフを Graphviz の Digraph に変換する。

    neato エンジンでノード座標を固定（pos="x,y!"）するため、
    部分グラフ構築時の配置がそのまま使われる。Y軸は上向きに反転する。
    """
    config = config if config is not None else AppConfig()
    colors = config.colors

    dot = graphviz.Digraph(
        f"family_{subgraph.root_id}",
        engine="neato",
        graph_attr={
            "bgcolor": to_hex(colors.background),
            "splines": "true",
            "overlap": "true",
        },
        node_attr={
            "fontname": "Helvetica",
            "fontsize": "11",
            "shape": "box",
            "style": "filled,rounded",
            "color": to_hex(colors.node_border),
            "fontcolor": to_hex(colors.text),
        },
        edge_attr={
            "fontname": "Helvetica",
            "fontsize": "9",
        },
    )

    for node in subgraph.nodes:
        x, y = node.position
        dot.node(
            node.id,
            label=node.label,
            fillcolor=node.fill_color,
            pos=f"{x / POINTS_PER_INCH:.3f},{-y / POINTS_PER_INCH:.3f}!",
            penwidth="2" if node.id == str(subgraph.root_id) else "1",
        )

    for edge in subgraph.edges:
        attrs = {
            "label": edge.label,
            "color": edge.style.stroke,
            "fontcolor": edge.style.stroke,
        }
        if not edge.style.directed:
            # 婚姻エッジ（矢印なし）
            attrs["dir"] = "none"
            attrs["penwidth"] = "2"
        dot.edge(edge.source, edge.target, **attrs)

    return dot


def render_graph(
    dot: graphviz.Digraph,
    output_path: str | Path,
    fmt: str = "png",
) -> Path:
    """Graphviz グラフを画像ファイルとして出力する。

    Args:
        dot: Graphviz Digraph オブジェクト
        output_path: 出力ファイルパス（例: output/tree.png）
        fmt: 出力形式（"png" または "svg"）

    Returns:
        出力されたファイルのパス
    """
    output_path = Path(output_path)

    # 出力先ディレクトリの自動作成
    output_path.parent.mkdir(parents=True, exist_ok=True)

    dot.render(
        outfile=str(output_path),
        format=fmt,
        cleanup=True,
        quiet=True,
    )

    return output_path
