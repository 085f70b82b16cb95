from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import click

from family_graph.audit import AUDIT_FILE, AuditLog
from family_graph.config import AppConfig, configure_logging, load_config
from family_graph.describer import describe_relationship
from family_graph.models import RelationshipType, search_events
from family_graph.service import PermissionDeniedError, RelationshipService
from family_graph.stats import compute_statistics
from family_graph.store import CsvFamilyStore, StoreError
from family_graph.subgraph import UnknownRootError, build_subgraph

_DATE = click.DateTime(formats=["%Y-%m-%d"])


@dataclass
class _Context:
    config: AppConfig
    store: CsvFamilyStore

    def service(self) -> RelationshipService:
        return RelationshipService(
            self.store,
            AuditLog(self.store.data_dir / AUDIT_FILE),
            can_mutate=self.config.access.can_mutate,
        )


pass_context = click.make_pass_decorator(_Context)


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("data"),
    show_default=True,
    help="individuals.csv / relationships.csv / events.csv を置くディレクトリ",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True),
    default=None,
    help="設定ファイルのパス（省略時はカレントディレクトリの config.toml を自動検索）",
)
@click.option("-v", "--verbose", is_flag=True, help="デバッグログを出力する")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path, config_path: str | None, verbose: bool) -> None:
    """家族関係グラフ CLI アプリケーション"""
    config = load_config(Path(config_path) if config_path else None)
    configure_logging(config, verbose=verbose)
    ctx.obj = _Context(config=config, store=CsvFamilyStore(data_dir))


@cli.command()
@click.option("--root", "root_id", type=int, required=True, help="中心にする人物のID")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "png", "svg", "preview"]),
    default="json",
    help="出力形式（preview は Pillow による PNG）",
)
@click.option("--output", "output_path", default=None, help="出力ファイルパス")
@pass_context
def tree(obj: _Context, root_id: int, fmt: str, output_path: str | None) -> None:
    """指定した人物の親・子・配偶者の部分グラフを出力する"""
    try:
        snapshot = obj.store.snapshot()
        subgraph = build_subgraph(
            root_id,
            snapshot.individuals,
            snapshot.relationships,
            layout=obj.config.layout,
            colors=obj.config.colors,
        )
    except StoreError as e:
        raise click.ClickException(str(e))
    except UnknownRootError:
        raise click.ClickException(f"ID {root_id} の人物が存在しません")

    if fmt == "json":
        text = json.dumps(subgraph.to_dict(), ensure_ascii=False, indent=2)
        if output_path is None:
            click.echo(text)
            return
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        click.echo(f"出力しました: {path}")
        return

    if output_path is None:
        raise click.UsageError(f"--format {fmt} には --output が必要です")

    if fmt == "preview":
        from family_graph.preview import save_preview

        result = save_preview(subgraph, output_path, obj.config)
    else:
        from family_graph.renderer import render_graph, to_digraph

        result = render_graph(to_digraph(subgraph, obj.config), output_path, fmt=fmt)
    click.echo(f"出力しました: {result}")


@cli.command()
@pass_context
def describe(obj: _Context) -> None:
    """登録済みの関係を文章で一覧表示する"""
    try:
        snapshot = obj.store.snapshot()
    except StoreError as e:
        raise click.ClickException(str(e))

    if not snapshot.relationships:
        click.echo("関係は登録されていません")
        return

    for rel in snapshot.relationships:
        text = describe_relationship(
            rel,
            snapshot.get_individual(rel.person1_id),
            snapshot.get_individual(rel.person2_id),
        )
        created = rel.created_at.date().isoformat() if rel.created_at else "-"
        click.echo(f"[{rel.id}] {text} ({created})")


@cli.command(name="add-relationship")
@click.option("--person1", "person1_id", type=int, required=True, help="1人目のID（parent の場合は親）")
@click.option("--person2", "person2_id", type=int, required=True, help="2人目のID（parent の場合は子）")
@click.option(
    "--type",
    "rel_type",
    type=click.Choice([t.value for t in RelationshipType]),
    required=True,
    help="関係の種類",
)
@pass_context
def add_relationship(obj: _Context, person1_id: int, person2_id: int, rel_type: str) -> None:
    """関係を検証して登録する"""
    try:
        result, rel = obj.service().add_relationship(person1_id, person2_id, rel_type)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))

    if rel is None:
        raise click.ClickException(f"関係の検証に失敗しました: {result.message}")
    click.echo(f"関係を登録しました: ID {rel.id}")


@cli.command(name="delete-relationship")
@click.argument("relationship_id", type=int)
@pass_context
def delete_relationship(obj: _Context, relationship_id: int) -> None:
    """関係を削除する"""
    try:
        obj.service().remove_relationship(relationship_id)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"関係を削除しました: ID {relationship_id}")


@cli.command(name="add-person")
@click.option("--name", "full_name", required=True, help="氏名")
@click.option("--gender", default="", help="性別（male / female など）")
@click.option("--birth-date", type=_DATE, required=True, help="生年月日 (YYYY-MM-DD)")
@click.option("--death-date", type=_DATE, default=None, help="没年月日 (YYYY-MM-DD)")
@click.option("--birth-place", default="", help="出生地")
@click.option("--residence", default="", help="居住地")
@click.option("--biography", default="", help="略歴")
@pass_context
def add_person(
    obj: _Context,
    full_name: str,
    gender: str,
    birth_date: datetime,
    death_date: datetime | None,
    birth_place: str,
    residence: str,
    biography: str,
) -> None:
    """人物を登録する"""
    try:
        person = obj.service().add_individual(
            full_name,
            gender,
            birth_date.date(),
            death_date=death_date.date() if death_date else None,
            birth_place=birth_place,
            residence=residence,
            biography=biography,
        )
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"人物を登録しました: ID {person.id}")


@cli.command(name="edit-person")
@click.argument("person_id", type=int)
@click.option("--name", "full_name", default=None, help="氏名")
@click.option("--gender", default=None, help="性別")
@click.option("--birth-date", type=_DATE, default=None, help="生年月日 (YYYY-MM-DD)")
@click.option("--death-date", type=_DATE, default=None, help="没年月日 (YYYY-MM-DD)")
@click.option("--living", is_flag=True, help="没年月日を消去する")
@click.option("--birth-place", default=None, help="出生地")
@click.option("--residence", default=None, help="居住地")
@click.option("--biography", default=None, help="略歴")
@pass_context
def edit_person(
    obj: _Context,
    person_id: int,
    full_name: str | None,
    gender: str | None,
    birth_date: datetime | None,
    death_date: datetime | None,
    living: bool,
    birth_place: str | None,
    residence: str | None,
    biography: str | None,
) -> None:
    """人物の情報を更新する（指定した項目のみ）"""
    if living and death_date is not None:
        raise click.UsageError("--living と --death-date は同時に指定できません")

    changes: dict[str, object] = {}
    for key, value in (
        ("full_name", full_name),
        ("gender", gender),
        ("birth_place", birth_place),
        ("residence", residence),
        ("biography", biography),
    ):
        if value is not None:
            changes[key] = value
    if birth_date is not None:
        changes["birth_date"] = birth_date.date()
    if death_date is not None:
        changes["death_date"] = death_date.date()
    if living:
        changes["death_date"] = None
    if not changes:
        raise click.UsageError("変更する項目を1つ以上指定してください")

    try:
        obj.service().update_individual(person_id, **changes)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"人物を更新しました: ID {person_id}")


@cli.command(name="delete-person")
@click.argument("person_id", type=int)
@pass_context
def delete_person(obj: _Context, person_id: int) -> None:
    """人物と、その人物を参照する関係を削除する"""
    try:
        removed = obj.service().remove_individual(person_id)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"人物を削除しました: ID {person_id}（関係 {removed} 件を削除）")


@cli.command()
@click.option("--search", "term", default="", help="タイトル・説明で絞り込む")
@pass_context
def events(obj: _Context, term: str) -> None:
    """出来事を新しい登録順に一覧表示する"""
    try:
        all_events = obj.store.list_events()
    except StoreError as e:
        raise click.ClickException(str(e))

    matched = search_events(all_events, term)
    matched.sort(key=lambda e: e.created_at or datetime.min, reverse=True)
    if not matched:
        click.echo("出来事は登録されていません")
        return
    for event in matched:
        click.echo(f"[{event.id}] {event.date.isoformat()} {event.title}: {event.description}")


@cli.command(name="add-event")
@click.option("--title", required=True, help="タイトル")
@click.option("--date", "event_date", type=_DATE, required=True, help="日付 (YYYY-MM-DD)")
@click.option("--description", required=True, help="説明")
@pass_context
def add_event(obj: _Context, title: str, event_date: datetime, description: str) -> None:
    """出来事を登録する"""
    try:
        event = obj.service().add_event(title, event_date.date(), description)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"出来事を登録しました: ID {event.id}")


@cli.command(name="edit-event")
@click.argument("event_id", type=int)
@click.option("--title", required=True, help="タイトル")
@click.option("--date", "event_date", type=_DATE, required=True, help="日付 (YYYY-MM-DD)")
@click.option("--description", required=True, help="説明")
@pass_context
def edit_event(
    obj: _Context, event_id: int, title: str, event_date: datetime, description: str
) -> None:
    """出来事を更新する"""
    try:
        obj.service().update_event(event_id, title, event_date.date(), description)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"出来事を更新しました: ID {event_id}")


@cli.command(name="delete-event")
@click.argument("event_id", type=int)
@pass_context
def delete_event(obj: _Context, event_id: int) -> None:
    """出来事を削除する"""
    try:
        obj.service().remove_event(event_id)
    except (StoreError, PermissionDeniedError) as e:
        raise click.ClickException(str(e))
    click.echo(f"出来事を削除しました: ID {event_id}")


@cli.command()
@pass_context
def stats(obj: _Context) -> None:
    """家族データの統計を表示する"""
    try:
        snapshot = obj.store.snapshot()
    except StoreError as e:
        raise click.ClickException(str(e))

    s = compute_statistics(snapshot.individuals, snapshot.relationships)
    click.echo(f"総人数: {s.total}")
    click.echo(f"男性: {s.male} ({s.percentage(s.male)}%)")
    click.echo(f"女性: {s.female} ({s.percentage(s.female)}%)")
    if s.unrecognized_gender:
        click.echo(f"性別不明: {s.unrecognized_gender} ({s.percentage(s.unrecognized_gender)}%)")
    click.echo(f"存命: {s.living} ({s.percentage(s.living)}%)")

    if s.birth_decades:
        click.echo("出生年代:")
        for decade, count in s.birth_decades.items():
            click.echo(f"  {decade}: {count}")
    if s.monthly_growth:
        click.echo("月別登録数:")
        for month, count in s.monthly_growth.items():
            click.echo(f"  {month}: {count}")
    if s.relationship_types:
        click.echo("関係:")
        for rel_type, count in s.relationship_types.items():
            click.echo(f"  {rel_type}: {count}")
