from __future__ import annotations

import argparse
from pathlib import Path

from loguru import logger

from app.viewmodels.project_vm import ProjectVM
from app.viewmodels.take_vm import TakeVM
from infrastructure.json_repository import JsonLogbookRepository
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _load_settings() -> JsonSettings:
    try:
        return JsonSettings(BASE_DIR / "settings.json")
    except FileNotFoundError:
        return JsonSettings.defaults()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect a take logbook")
    parser.add_argument("--store", help="Logbook JSON (defaults to storage.path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Also log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List takes in sequence order")
    list_cmd.add_argument("--project", help="Project id (all projects when omitted)")

    check_cmd = sub.add_parser("check", help="Report broken sequences")
    check_cmd.add_argument("--project", help="Project id (all projects when omitted)")
    return parser


def _cmd_list(vm: ProjectVM, project_ids: list[str]) -> int:
    for project_id in project_ids:
        project = vm.get_project(project_id)
        print(f"# {project.name} ({project.identifier})")
        for take in vm.project_takes(project_id):
            row = TakeVM(take, project.settings.camera_configuration)
            numbers = "  ".join(f"{k}={v or '-'}" for k, v in row.file_numbers.items())
            print(f"{row.position:>4}  {row.slate:<14} {row.classification:<9} {numbers}")
    return 0


def _cmd_check(vm: ProjectVM, project_ids: list[str]) -> int:
    broken = 0
    for project_id in project_ids:
        for violation in vm.check_sequences(project_id):
            broken += 1
            print(f"[{violation.rule}] {violation.project_id}: {violation.message}")
    if not broken:
        print("All sequences contiguous.")
    return 1 if broken else 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = _load_settings()
    init_logging(settings.log_dir, settings.log_level, console=args.verbose)

    store = args.store or str(settings.storage_path)
    vm = ProjectVM(
        JsonLogbookRepository(),
        default_camera_configuration=settings.default_camera_configuration,
    )
    try:
        vm.load(store)
    except ValueError as ex:
        logger.error("Cannot read logbook {}: {}", store, ex)
        print(f"Cannot read logbook {store}: {ex}")
        return 2

    if args.project:
        try:
            vm.get_project(args.project)
        except KeyError:
            print(f"Unknown project: {args.project}")
            return 2
        project_ids = [args.project]
    else:
        project_ids = [p.identifier for p in vm.projects]

    if args.command == "list":
        return _cmd_list(vm, project_ids)
    return _cmd_check(vm, project_ids)


if __name__ == "__main__":
    raise SystemExit(main())
