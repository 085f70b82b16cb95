"""Pillow を使って部分グラフのプレビュー画像を描画する。

部分グラフ構築時の座標に基づいて人物ブロックと線を描画する。
Graphviz をインストールしていない環境でも PNG を出力できる。
"""

from __future__ import annotations

import math
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from family_graph.config import AppConfig
from family_graph.subgraph import Subgraph, SubgraphEdge, SubgraphNode

ARROW_SIZE = 10
FONT_SIZE = 14


def _get_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """フォントを取得する。システムフォントが見つからない場合はデフォルトを使用。"""
    font_candidates = [
        "/System/Library/Fonts/ヒラギノ角ゴシック W3.ttc",
        "/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc",
        "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ]
    for font_path in font_candidates:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            continue
    return ImageFont.load_default()


def _hex_to_rgb(value: str) -> tuple[int, int, int]:
    value = value.lstrip("#")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


class PreviewDrawer:
    """部分グラフのプレビュー描画を管理するクラス。"""

    def __init__(self, subgraph: Subgraph, config: AppConfig) -> None:
        self.subgraph = subgraph
        self.config = config
        self.font = _get_font(FONT_SIZE)
        layout = config.layout
        self.half_w = layout.node_width / 2
        self.half_h = layout.node_height / 2

        xs = [n.position[0] for n in subgraph.nodes]
        ys = [n.position[1] for n in subgraph.nodes]
        # キャンバス原点を左上のノードに合わせる (余白を含む)
        self.offset_x = layout.padding + self.half_w - min(xs)
        self.offset_y = layout.padding + self.half_h - min(ys)
        self.canvas_width = int(max(xs) - min(xs) + layout.node_width + layout.padding * 2)
        self.canvas_height = int(max(ys) - min(ys) + layout.node_height + layout.padding * 2)

    def draw(self) -> Image.Image:
        img = Image.new(
            "RGB", (self.canvas_width, self.canvas_height), self.config.colors.background
        )
        draw = ImageDraw.Draw(img)

        # エッジを先に描画（ノードの下に表示）
        nodes = {n.id: n for n in self.subgraph.nodes}
        for edge in self.subgraph.edges:
            source = nodes.get(edge.source)
            target = nodes.get(edge.target)
            if source is not None and target is not None:
                self._draw_edge(draw, edge, source, target)

        for node in self.subgraph.nodes:
            self._draw_node(draw, node)

        return img

    def _center(self, node: SubgraphNode) -> tuple[float, float]:
        return (node.position[0] + self.offset_x, node.position[1] + self.offset_y)

    def _draw_node(self, draw: ImageDraw.ImageDraw, node: SubgraphNode) -> None:
        cx, cy = self._center(node)
        colors = self.config.colors
        is_root = node.id == str(self.subgraph.root_id)

        draw.rounded_rectangle(
            [cx - self.half_w, cy - self.half_h, cx + self.half_w, cy + self.half_h],
            radius=8,
            fill=_hex_to_rgb(node.fill_color),
            outline=colors.node_border,
            width=3 if is_root else 2,
        )

        # ラベル（中央揃え、複数行）
        bbox = draw.multiline_textbbox((0, 0), node.label, font=self.font, align="center")
        text_w = bbox[2] - bbox[0]
        text_h = bbox[3] - bbox[1]
        draw.multiline_text(
            (cx - text_w / 2, cy - text_h / 2),
            node.label,
            fill=colors.text,
            font=self.font,
            align="center",
        )

    def _draw_edge(
        self,
        draw: ImageDraw.ImageDraw,
        edge: SubgraphEdge,
        source: SubgraphNode,
        target: SubgraphNode,
    ) -> None:
        src_center = self._center(source)
        dst_center = self._center(target)
        start = self._snap_to_border(src_center, dst_center)
        end = self._snap_to_border(dst_center, src_center)
        color = _hex_to_rgb(edge.style.stroke)

        draw.line([start, end], fill=color, width=2 if edge.style.directed else 3)
        if edge.style.directed:
            self._draw_arrow_head(draw, start, end, color)

        bbox = draw.textbbox((0, 0), edge.label, font=self.font)
        mid_x = (start[0] + end[0]) / 2 - (bbox[2] - bbox[0]) / 2
        mid_y = (start[1] + end[1]) / 2 - (bbox[3] - bbox[1]) / 2
        draw.text((mid_x, mid_y), edge.label, fill=color, font=self.font)

    def _snap_to_border(
        self, center: tuple[float, float], toward: tuple[float, float]
    ) -> tuple[float, float]:
        """ノードの境界上で、toward 方向の辺の中央を返す。"""
        dx = toward[0] - center[0]
        dy = toward[1] - center[1]
        if abs(dy) > abs(dx):
            return (center[0], center[1] + (self.half_h if dy > 0 else -self.half_h))
        return (center[0] + (self.half_w if dx > 0 else -self.half_w), center[1])

    def _draw_arrow_head(
        self,
        draw: ImageDraw.ImageDraw,
        start: tuple[float, float],
        end: tuple[float, float],
        color: tuple[int, int, int],
    ) -> None:
        angle = math.atan2(end[1] - start[1], end[0] - start[0])
        left = (
            end[0] - ARROW_SIZE * math.cos(angle - math.pi / 6),
            end[1] - ARROW_SIZE * math.sin(angle - math.pi / 6),
        )
        right = (
            end[0] - ARROW_SIZE * math.cos(angle + math.pi / 6),
            end[1] - ARROW_SIZE * math.sin(angle + math.pi / 6),
        )
        draw.polygon([end, left, right], fill=color)


def save_preview(
    subgraph: Subgraph, output_path: str | Path, config: AppConfig | None = None
) -> Path:
    """部分グラフのプレビューを PNG として保存する。"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    img = PreviewDrawer(subgraph, config if config is not None else AppConfig()).draw()
    img.save(output_path, format="PNG")
    return output_path
