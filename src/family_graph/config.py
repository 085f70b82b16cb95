"""設定ファイルの読み込みと設定値の管理。

TOML 形式の設定ファイルを読み込み、AppConfig として返す。
設定ファイルが存在しない場合はデフォルト値を使用する。
"""

from __future__ import annotations

import logging
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn


@dataclass
class ColorConfig:
    """描画色の設定。"""

    background: tuple[int, int, int] = (248, 250, 252)
    male_fill: tuple[int, int, int] = (219, 234, 254)
    female_fill: tuple[int, int, int] = (252, 231, 243)
    unknown_fill: tuple[int, int, int] = (229, 231, 235)
    node_border: tuple[int, int, int] = (99, 102, 241)
    parent_line: tuple[int, int, int] = (99, 102, 241)
    child_line: tuple[int, int, int] = (16, 185, 129)
    spouse_line: tuple[int, int, int] = (245, 158, 11)
    text: tuple[int, int, int] = (17, 24, 39)


@dataclass
class LayoutConfig:
    """部分グラフのノード配置（論理座標、Y軸下向き）。"""

    anchor_x: int = 400
    anchor_y: int = 300
    parent_row_y: int = 150
    child_row_y: int = 450
    parent_start_x: int = 300
    parent_spacing: int = 200
    child_start_x: int = 300
    child_spacing: int = 150
    spouse_start_x: int = 600
    spouse_spacing: int = 200
    node_width: int = 140
    node_height: int = 60
    padding: int = 40


@dataclass
class AccessConfig:
    """データ変更権限。"""

    can_mutate: bool = False


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class AppConfig:
    """アプリケーション全体の設定。"""

    colors: ColorConfig = field(default_factory=ColorConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    access: AccessConfig = field(default_factory=AccessConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


# ---------------------------------------------------------------------------
# バリデーション
# ---------------------------------------------------------------------------

_RGB_KEYS = (
    "background",
    "male_fill",
    "female_fill",
    "unknown_fill",
    "node_border",
    "parent_line",
    "child_line",
    "spouse_line",
    "text",
)

_LAYOUT_INT_KEYS = (
    "anchor_x",
    "anchor_y",
    "parent_row_y",
    "child_row_y",
    "parent_start_x",
    "parent_spacing",
    "child_start_x",
    "child_spacing",
    "spouse_start_x",
    "spouse_spacing",
    "node_width",
    "node_height",
    "padding",
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _exit_with(message: str) -> NoReturn:
    print(f"設定エラー: {message}", file=sys.stderr)
    sys.exit(1)


def _validate_rgb(value: object, key: str) -> tuple[int, int, int]:
    """RGB 配列値を検証し tuple[int, int, int] に変換する。"""
    if not isinstance(value, list) or len(value) != 3:
        _exit_with(f"{key} は [R, G, B] 形式の3要素配列で指定してください")
    for i, v in enumerate(value):  # type: ignore[arg-type]
        if isinstance(v, bool) or not isinstance(v, int) or not (0 <= v <= 255):
            _exit_with(f"{key}[{i}] は 0〜255 の整数で指定してください")
    return (int(value[0]), int(value[1]), int(value[2]))  # type: ignore[index]


def _build_colors(data: dict[str, object]) -> ColorConfig:
    cfg = ColorConfig()
    for key in _RGB_KEYS:
        if key in data:
            setattr(cfg, key, _validate_rgb(data[key], f"style.colors.{key}"))
    return cfg


def _build_layout(data: dict[str, object]) -> LayoutConfig:
    cfg = LayoutConfig()
    for key in _LAYOUT_INT_KEYS:
        if key in data:
            val = data[key]
            if isinstance(val, bool) or not isinstance(val, int):
                _exit_with(f"layout.{key} は整数で指定してください")
            setattr(cfg, key, val)
    return cfg


def _build_access(data: dict[str, object]) -> AccessConfig:
    cfg = AccessConfig()
    if "can_mutate" in data:
        val = data["can_mutate"]
        if not isinstance(val, bool):
            _exit_with("access.can_mutate は true または false で指定してください")
        cfg.can_mutate = bool(val)
    return cfg


def _build_logging(data: dict[str, object]) -> LoggingConfig:
    cfg = LoggingConfig()
    if "level" in data:
        val = data["level"]
        if not isinstance(val, str) or val.upper() not in _LOG_LEVELS:
            _exit_with(f"logging.level は {', '.join(_LOG_LEVELS)} のいずれかで指定してください")
        cfg.level = str(val).upper()
    return cfg


# ---------------------------------------------------------------------------
# ロード
# ---------------------------------------------------------------------------


def load_config(path: Path | None) -> AppConfig:
    """設定ファイルを読み込んで AppConfig を返す。

    Args:
        path: 設定ファイルのパス。None の場合はカレントディレクトリの
              config.toml を探索し、存在しなければデフォルト値を使用する。

    Returns:
        AppConfig オブジェクト。
    """
    config_path = path if path is not None else Path("config.toml")

    if not config_path.exists():
        return AppConfig()

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            _exit_with(f"{config_path} を読み込めません: {e}")

    app_config = AppConfig()

    style = data.get("style", {})
    if isinstance(style, dict):
        colors = style.get("colors")
        if isinstance(colors, dict):
            app_config.colors = _build_colors(colors)

    layout = data.get("layout")
    if isinstance(layout, dict):
        app_config.layout = _build_layout(layout)

    access = data.get("access")
    if isinstance(access, dict):
        app_config.access = _build_access(access)

    log_cfg = data.get("logging")
    if isinstance(log_cfg, dict):
        app_config.logging = _build_logging(log_cfg)

    return app_config


def configure_logging(config: AppConfig, verbose: bool = False) -> None:
    """ルートロガーを設定する。verbose なら DEBUG を強制する。"""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
