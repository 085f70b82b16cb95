from __future__ import annotations

from pathlib import Path

import pytest

from family_graph.config import AppConfig, load_config, to_hex


class TestAppConfigDefaults:
    def test_default_colors(self) -> None:
        cfg = AppConfig()
        assert cfg.colors.male_fill == (219, 234, 254)
        assert cfg.colors.female_fill == (252, 231, 243)
        assert cfg.colors.unknown_fill == (229, 231, 235)
        assert cfg.colors.parent_line == (99, 102, 241)
        assert cfg.colors.child_line == (16, 185, 129)
        assert cfg.colors.spouse_line == (245, 158, 11)

    def test_default_layout(self) -> None:
        cfg = AppConfig()
        assert (cfg.layout.anchor_x, cfg.layout.anchor_y) == (400, 300)
        assert cfg.layout.parent_row_y == 150
        assert cfg.layout.child_row_y == 450
        assert cfg.layout.parent_spacing == 200
        assert cfg.layout.child_spacing == 150
        assert cfg.layout.spouse_start_x == 600

    def test_default_access_and_logging(self) -> None:
        cfg = AppConfig()
        assert cfg.access.can_mutate is False
        assert cfg.logging.level == "WARNING"

    def test_to_hex(self) -> None:
        assert to_hex((219, 234, 254)) == "#dbeafe"
        assert to_hex((0, 0, 0)) == "#000000"


class TestLoadConfigNone:
    def test_no_file_returns_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """config.toml が存在しないディレクトリでは AppConfig デフォルト値を返す。"""
        monkeypatch.chdir(tmp_path)
        cfg = load_config(None)
        assert isinstance(cfg, AppConfig)
        assert cfg.layout.anchor_x == 400

    def test_auto_discover_config_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """カレントディレクトリに config.toml があれば自動で読み込む。"""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.toml").write_text(
            "[access]\ncan_mutate = true\n", encoding="utf-8"
        )
        cfg = load_config(None)
        assert cfg.access.can_mutate is True


class TestLoadConfigPartial:
    def test_partial_colors(self, tmp_path: Path) -> None:
        """一部の色だけ上書きして残りはデフォルト値になる。"""
        toml = tmp_path / "cfg.toml"
        toml.write_text("[style.colors]\nmale_fill = [0, 0, 255]\n", encoding="utf-8")
        cfg = load_config(toml)
        assert cfg.colors.male_fill == (0, 0, 255)
        assert cfg.colors.female_fill == (252, 231, 243)  # デフォルト維持

    def test_partial_layout(self, tmp_path: Path) -> None:
        toml = tmp_path / "cfg.toml"
        toml.write_text("[layout]\nanchor_x = 0\nchild_spacing = 90\n", encoding="utf-8")
        cfg = load_config(toml)
        assert cfg.layout.anchor_x == 0
        assert cfg.layout.child_spacing == 90
        assert cfg.layout.anchor_y == 300  # デフォルト維持

    def test_logging_level_case_insensitive(self, tmp_path: Path) -> None:
        toml = tmp_path / "cfg.toml"
        toml.write_text('[logging]\nlevel = "debug"\n', encoding="utf-8")
        assert load_config(toml).logging.level == "DEBUG"

    def test_empty_file(self, tmp_path: Path) -> None:
        """空ファイルはデフォルト値を返す。"""
        toml = tmp_path / "cfg.toml"
        toml.write_text("", encoding="utf-8")
        cfg = load_config(toml)
        assert cfg.colors.male_fill == (219, 234, 254)


class TestLoadConfigValidation:
    @pytest.mark.parametrize(
        "content",
        [
            "[style.colors]\nmale_fill = [1, 2]\n",
            "[style.colors]\nmale_fill = [256, 0, 0]\n",
            '[style.colors]\nmale_fill = "blue"\n',
            "[layout]\nanchor_x = 1.5\n",
            '[access]\ncan_mutate = "yes"\n',
            '[logging]\nlevel = "LOUD"\n',
            "[layout\n",
        ],
    )
    def test_invalid_values_exit(self, tmp_path: Path, content: str) -> None:
        """不正な値は sys.exit(1) する。"""
        toml = tmp_path / "cfg.toml"
        toml.write_text(content, encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            load_config(toml)
        assert exc_info.value.code == 1
