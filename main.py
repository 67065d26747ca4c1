from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys

from loguru import logger

from app.services.export_coordinator import ExportCoordinator
from app.services.import_coordinator import ImportCoordinator
from app.viewmodels.catalog_vm import CatalogVM
from core.errors import CatalogError
from core.models import ExportOptions, WorkRecord
from infrastructure.image_codec import ImageCodec
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings
from infrastructure.sqlite_store import SqliteWorkStore
from infrastructure.template import TEMPLATE_FILENAME, build_import_template


BASE_DIR = Path(__file__).parent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="poster-catalog", description="Poster catalog tools")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--db", help="Override database.path")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import works from CSV/XLSX/JSON/ZIP")
    p_import.add_argument("file")
    p_import.add_argument("--yes", action="store_true", help="Commit without asking")

    p_export = sub.add_parser("export", help="Export the whole catalog")
    p_export.add_argument("--compress", action="store_true", default=None)
    p_export.add_argument("--max-width", type=int)
    p_export.add_argument("--quality", type=float)
    p_export.add_argument("--archive", action="store_true", default=None)
    p_export.add_argument("--output", help="Output directory")

    p_list = sub.add_parser("list", help="List works")
    p_list.add_argument("--search", default="")
    p_list.add_argument("--year", default="")
    p_list.add_argument("--character", default="")
    p_list.add_argument("--identity", default="")

    p_delete = sub.add_parser("delete", help="Delete a work")
    p_delete.add_argument("id", type=int)

    p_template = sub.add_parser("template", help="Write the CSV import template")
    p_template.add_argument("--output", default=TEMPLATE_FILENAME)

    p_add = sub.add_parser("add", help="Create a work")
    p_add.add_argument("title")
    p_add.add_argument("year", type=int)
    _add_field_options(p_add)
    p_add.add_argument("--photo", dest="images", action="append", default=[])

    p_edit = sub.add_parser("edit", help="Change fields of a work")
    p_edit.add_argument("id", type=int)
    p_edit.add_argument("--title")
    p_edit.add_argument("--year", type=int)
    _add_field_options(p_edit)

    p_photo = sub.add_parser("add-photo", help="Append photos to a work")
    p_photo.add_argument("id", type=int)
    p_photo.add_argument("images", nargs="+")

    p_unphoto = sub.add_parser("remove-photo", help="Remove a photo by its 1-based position")
    p_unphoto.add_argument("id", type=int)
    p_unphoto.add_argument("index", type=int)
    return parser


def _add_field_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--episode", type=int)
    parser.add_argument("--character")
    parser.add_argument("--identity")
    parser.add_argument("--timestamp")


def _format_work(work: WorkRecord) -> str:
    tags = [str(v) for v in (work.year, work.character, work.identity) if v]
    badge = "" if work.photos else " [no photos]"
    work_id = "-" if work.id is None else str(work.id)
    return f"{work_id:>5}  {work.title}{badge}  {' / '.join(tags)}"


def _cmd_import(args: argparse.Namespace, store: SqliteWorkStore, settings: JsonSettings) -> int:
    coordinator = ImportCoordinator(
        store, preview_limit=settings.get_int("import.preview_limit", 10)
    )
    preview = coordinator.load_path(args.file)
    if preview.is_empty:
        print("No valid rows found; check the file format.")
        return 1
    for work in preview.preview:
        print(_format_work(work))
    print(f"{preview.total} work(s) ready, {preview.skipped} row(s) skipped")
    if not args.yes:
        answer = input(f"Import {preview.total} work(s)? [y/N] ").strip().lower()
        if answer not in {"y", "yes"}:
            coordinator.reset()
            return 0
    result = coordinator.commit_import()
    print(f"Imported {result.committed} work(s)")
    for err in result.errors:
        print(f"  failed #{err.index + 1} '{err.title}': {err.reason}")
    return 1 if result.errors else 0


def _cmd_export(args: argparse.Namespace, store: SqliteWorkStore, settings: JsonSettings) -> int:
    def _pick(value, key, getter, default):
        return value if value is not None else getter(key, default)

    options = ExportOptions(
        compress_images=_pick(args.compress, "export.compress_images", settings.get_bool, False),
        max_width=_pick(args.max_width, "export.max_width", settings.get_int, 1920),
        quality=_pick(args.quality, "export.quality", settings.get_float, 0.7),
        archive=_pick(args.archive, "export.archive", settings.get_bool, False),
    )
    out_dir = Path(args.output or settings.get("export.output_dir", "."))
    out_dir.mkdir(parents=True, exist_ok=True)

    def _progress(fraction: float) -> None:
        print(f"\rCompressing photos: {fraction:.0%}", end="", file=sys.stderr)

    artifact = ExportCoordinator(store).export_snapshot(options, on_progress=_progress)
    if options.compress_images:
        print(file=sys.stderr)
    target = out_dir / artifact.suggested_filename
    target.write_bytes(artifact.data)
    print(f"Wrote {target} ({len(artifact.data)} bytes)")
    return 0


def _cmd_list(args: argparse.Namespace, vm: CatalogVM) -> int:
    vm.set_search(args.search, args.year)
    vm.apply_filters(args.character, args.identity)
    works = vm.filtered_works()
    for work in works:
        print(_format_work(work))
    print(f"{len(works)} of {vm.work_count} work(s); years: {vm.available_years()}")
    return 0


def _cmd_add(args: argparse.Namespace, vm: CatalogVM) -> int:
    codec = ImageCodec()
    work = WorkRecord(
        title=args.title,
        year=args.year,
        episode=args.episode,
        character=args.character,
        identity=args.identity,
        timestamp=args.timestamp,
        photos=[codec.encode_file(p) for p in args.images],
    )
    work_id = vm.save_work(work)
    print(f"Created work {work_id}")
    return 0


def _cmd_edit(args: argparse.Namespace, vm: CatalogVM) -> int:
    work = vm.get_work(args.id)
    if work is None:
        print(f"Work {args.id} not found")
        return 1
    changes = {
        name: getattr(args, name)
        for name in ("title", "year", "episode", "character", "identity", "timestamp")
        if getattr(args, name) is not None
    }
    if not changes:
        print("Nothing to change")
        return 0
    vm.save_work(replace(work, **changes))
    print(f"Updated work {args.id}: {', '.join(sorted(changes))}")
    return 0


def _cmd_add_photo(args: argparse.Namespace, vm: CatalogVM) -> int:
    work = vm.get_work(args.id)
    if work is None:
        print(f"Work {args.id} not found")
        return 1
    codec = ImageCodec()
    work.photos.extend(codec.encode_file(p) for p in args.images)
    vm.save_work(work)
    print(f"Work {args.id} now has {len(work.photos)} photo(s)")
    return 0


def _cmd_remove_photo(args: argparse.Namespace, vm: CatalogVM) -> int:
    work = vm.get_work(args.id)
    if work is None:
        print(f"Work {args.id} not found")
        return 1
    if not 1 <= args.index <= len(work.photos):
        print(f"Work {args.id} has no photo #{args.index}")
        return 1
    del work.photos[args.index - 1]
    vm.save_work(work)
    print(f"Work {args.id} now has {len(work.photos)} photo(s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = JsonSettings(args.settings)
    init_logging(
        settings.get("logging.dir"), level=settings.get("logging.level", "INFO"), console=True
    )

    store = SqliteWorkStore(args.db or settings.get("database.path"))
    try:
        store.init()
        if args.command == "import":
            return _cmd_import(args, store, settings)
        if args.command == "export":
            return _cmd_export(args, store, settings)
        if args.command == "template":
            Path(args.output).write_bytes(build_import_template())
            print(f"Wrote {args.output}")
            return 0

        vm = CatalogVM(store)
        vm.reload()
        if args.command == "list":
            return _cmd_list(args, vm)
        if args.command == "delete":
            vm.delete_work(args.id)
            return 0
        if args.command == "add":
            return _cmd_add(args, vm)
        if args.command == "edit":
            return _cmd_edit(args, vm)
        if args.command == "add-photo":
            return _cmd_add_photo(args, vm)
        if args.command == "remove-photo":
            return _cmd_remove_photo(args, vm)
    except (CatalogError, OSError) as ex:
        logger.error("{} failed: {}", args.command, ex)
        return 1
    except ValueError as ex:
        logger.error("Invalid option: {}", ex)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
