"""
CLI entry point

Command-line front end over the same KeywordStore the API uses.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from pinkeyword.application.ports import KeywordStore
from pinkeyword.application.services.keyword_templates import apply_template, list_templates
from pinkeyword.application.services.keyword_workspace import KeywordWorkspace, summarize
from pinkeyword.domain.errors import KeywordStoreError
from pinkeyword.domain.keyword import MainTarget
from pinkeyword.infrastructure.stores.factory import BACKENDS, make_keyword_store
from pinkeyword.infrastructure.stores.keyword_codec import dump_document, load_document
from pinkeyword.utils.logging_config import LogFiles, Logger

load_dotenv(find_dotenv(usecwd=True), override=False)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinkeyword",
        description="pinkeyword - organize Pinterest main targets and relevant keywords",
    )
    parser.add_argument("--backend", choices=BACKENDS, help="store backend (default: PINKEYWORD_STORE or local)")
    parser.add_argument("--data-file", help="JSON file for the local backend")
    parser.add_argument("--db-url", help="database URL for the remote backend")
    parser.add_argument("--user-id", help="user for the remote backend")
    parser.add_argument("--project-id", help="project for the remote backend")

    subparsers = parser.add_subparsers(dest="command", help="available commands")

    add_target = subparsers.add_parser("add-target", help="create a main target")
    add_target.add_argument("name")
    add_target.add_argument("--folder", help="folder id")

    add_keywords = subparsers.add_parser("add-keywords", help="bulk-add relevant keywords (args or stdin)")
    add_keywords.add_argument("target", help="main target id or exact name")
    add_keywords.add_argument("keywords", nargs="*")

    list_parser = subparsers.add_parser("list", help="show active targets grouped by folder")
    list_parser.add_argument("--json", action="store_true", help="print the full document")

    subparsers.add_parser("archive", help="show completed targets and keywords")

    search = subparsers.add_parser("search", help="search target names and keywords")
    search.add_argument("query")

    toggle = subparsers.add_parser("toggle", help="mark a target (or one of its keywords) done/undone")
    toggle.add_argument("target", help="main target id or exact name")
    toggle.add_argument("--keyword", help="toggle this keyword instead of the target")

    subparsers.add_parser("folders", help="list folders")

    add_folder = subparsers.add_parser("add-folder", help="create a folder")
    add_folder.add_argument("name")
    add_folder.add_argument("--icon")
    add_folder.add_argument("--color")

    export = subparsers.add_parser("export", help="write all data to a JSON file")
    export.add_argument("path")

    import_parser = subparsers.add_parser("import", help="replace all data with a JSON export")
    import_parser.add_argument("path")

    templates = subparsers.add_parser("templates", help="list templates or apply one to a target")
    templates.add_argument("--apply", metavar="TEMPLATE_ID")
    templates.add_argument("--target", help="main target id or exact name")

    serve = subparsers.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _resolve_target(store: KeywordStore, ref: str) -> MainTarget:
    target = store.get_main_target(ref)
    if target is None:
        target = next((t for t in store.data.main_targets if t.name == ref), None)
    if target is None:
        raise ValueError(f"main target not found: {ref}")
    return target


def _print_target(target: MainTarget, indent: str = "") -> None:
    print(f"{indent}{target.name}  [{target.priority.value}]  ({target.id})")
    for kw in target.relevant_keywords:
        print(f"{indent}  - {kw.text}")


def run(args: argparse.Namespace, store: KeywordStore) -> int:
    workspace = KeywordWorkspace(store)
    cmd = args.command

    if cmd == "add-target":
        target = workspace.add_target(args.name, args.folder)
        print(target.id)
    elif cmd == "add-keywords":
        target = _resolve_target(store, args.target)
        if args.keywords:
            result = store.add_relevant_keywords(target.id, args.keywords)
        else:
            result = workspace.bulk_add(target.id, sys.stdin.read())
        print(summarize(result) or "Nothing to add.")
    elif cmd == "list":
        if args.json:
            print(json.dumps(workspace.export_payload(), ensure_ascii=False, indent=2))
            return 0
        sidebar = workspace.sidebar()
        for group in sidebar.folders:
            print(f"[{group.folder.name}]")
            for target in group.main_targets:
                _print_target(target, indent="  ")
        if sidebar.uncategorized:
            print("[Uncategorized]")
            for target in sidebar.uncategorized:
                _print_target(target, indent="  ")
    elif cmd == "archive":
        archived = workspace.archive()
        stats = workspace.archive_stats()
        print(f"{stats.total} archived ({stats.main_targets} targets, {stats.keywords} keywords)")
        for target in archived.main_targets:
            print(f"target: {target.name}")
        for item in archived.relevant_keywords:
            print(f"keyword: {item.keyword.text}  <- {item.main_target}")
    elif cmd == "search":
        for hit in workspace.search(args.query):
            print(f"{hit.type:8} {hit.keyword}  ({hit.main_target})")
    elif cmd == "toggle":
        target = _resolve_target(store, args.target)
        if args.keyword:
            store.toggle_relevant_keyword_done(target.id, args.keyword)
        else:
            store.toggle_main_target_done(target.id)
    elif cmd == "folders":
        for folder in store.data.folders:
            print(f"{folder.name}  ({folder.id})")
    elif cmd == "add-folder":
        print(store.add_folder(args.name, icon=args.icon, color=args.color).id)
    elif cmd == "export":
        dump_document(store.export_data(), args.path)
        print(f"Exported to {args.path}")
    elif cmd == "import":
        data = load_document(args.path)
        store.import_data(data)
        print(f"Imported {len(data.main_targets)} main targets, {len(data.folders)} folders")
    elif cmd == "templates":
        if not args.apply:
            for template in list_templates():
                print(f"{template.id:16} {template.name} - {template.description}")
            return 0
        if not args.target:
            raise ValueError("--target is required with --apply")
        target = _resolve_target(store, args.target)
        try:
            result = apply_template(store, target.id, args.apply)
        except KeyError:
            raise ValueError(f"unknown template: {args.apply}") from None
        print(summarize(result) or "Nothing to add.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    if args.command == "serve":
        import uvicorn

        uvicorn.run("pinkeyword.api.main:app", host=args.host, port=args.port)
        return 0

    try:
        store = make_keyword_store(
            args.backend,
            data_file=args.data_file,
            db_url=args.db_url,
            user_id=args.user_id,
            project_id=args.project_id,
        )
        return run(args, store)
    except (ValueError, KeywordStoreError, OSError) as exc:
        Logger.error(f"{args.command} failed: {exc}", file=LogFiles.CLI)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
