from __future__ import annotations

import argparse
import os
import sys
import time
from typing import List, Optional

from tarlet.constants import NAME_ENCODING, NAME_ERRORS
from tarlet.errors import (
    ArchiveOpenError,
    EmptyArchiveError,
    MalformedArchiveError,
    TarletError,
)
from tarlet.ops import append_files, delete_entries, export_archive, rename_entry
from tarlet.pathutil import norm_path
from tarlet.reader import ArchiveReader
from tarlet.staging import staged_output


def _display_name(name: str) -> str:
    # Undecodable name bytes print as \xNN escapes instead of failing the write.
    return name.encode(NAME_ENCODING, NAME_ERRORS).decode(NAME_ENCODING, "backslashreplace")


def _report_skipped(skipped) -> None:
    for fs_path, _reason in skipped:
        print(f"  * couldn't open file '{_display_name(fs_path)}'")


def cmd_create(archive: str, inputs: List[str]) -> bool:
    """Create (or overwrite) ``archive`` from filesystem files.

    Unreadable inputs are reported and skipped; the archive is still written.
    """
    with staged_output(archive) as tmp:
        result = append_files(tmp, inputs)
    _report_skipped(result.skipped)
    return True


def cmd_add(archive: str, inputs: List[str]) -> bool:
    """Rewrite ``archive`` with its current entries followed by ``inputs``."""
    with ArchiveReader(archive, allow_empty=True) as r:
        with staged_output(archive) as tmp:
            result = append_files(tmp, inputs, source=r)
    _report_skipped(result.skipped)
    return True


def cmd_rename(archive: str, old_name: str, new_name: str) -> bool:
    with ArchiveReader(archive, allow_empty=True) as r:
        if not rename_entry(r, old_name, new_name):
            print(f"  * no entry named '{_display_name(old_name)}'")
            return True
        with staged_output(archive) as tmp:
            export_archive(r, tmp)
    return True


def cmd_delete(archive: str, names: List[str]) -> bool:
    with ArchiveReader(archive, allow_empty=True) as r:
        present = set(r.names())
        for name in names:
            if name not in present:
                print(f"  * no entry named '{_display_name(name)}'")
        with staged_output(archive) as tmp:
            delete_entries(r, tmp, names)
    return True


def cmd_list(archive: str) -> bool:
    with ArchiveReader(archive, allow_empty=True) as r:
        entries = r.list()
    print(f"\n{archive}")
    for e in entries:
        print(f"  * {_display_name(e.name)} ({time.ctime(e.mtime)}, {e.size} bytes)")
    return True


def cmd_extract(archive: str, names: List[str], *, outdir: str = ".") -> bool:
    """Extract the named entries into ``outdir``.

    Missing or unwritable entries are reported and skipped.
    """
    with ArchiveReader(archive, allow_empty=True) as r:
        for name in names:
            if r.find(name) is None:
                print(f"  * couldn't read file '{_display_name(name)}'")
                continue
            try:
                dst = os.path.join(outdir, norm_path(name))
            except ValueError as exc:
                print(f"  * refusing to extract '{_display_name(name)}': {exc}")
                continue
            try:
                r.extract(name, dst)
            except OSError as exc:
                print(f"  * something went wrong extracting file '{_display_name(name)}': {exc}")
                continue
            print(f"  * extracting '{_display_name(name)}'")
    return True


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="tarlet",
        description="Minimal USTAR archive tool",
        epilog=(
            "Edits (create, add, rename, delete) build a new archive next to the "
            "original and swap it in only once it is complete. An archive with no "
            "entries lists as empty and can be added to."
        ),
    )
    ap.add_argument("archive", help="Archive path")
    ops = ap.add_mutually_exclusive_group(required=True)
    ops.add_argument("-c", "--create", dest="op", action="store_const", const="create", help="Creates a new archive (files...)")
    ops.add_argument("-a", "--add", dest="op", action="store_const", const="add", help="Adds files to the archive (files...)")
    ops.add_argument("-r", "--rename", dest="op", action="store_const", const="rename", help="Renames a file (file, new_name)")
    ops.add_argument("-d", "--delete", dest="op", action="store_const", const="delete", help="Deletes files (files...)")
    ops.add_argument("-l", "--list", dest="op", action="store_const", const="list", help="Lists all files (no arguments)")
    ops.add_argument("-e", "--extract", dest="op", action="store_const", const="extract", help="Extracts files (files...)")
    ap.add_argument("args", nargs="*", help="Operation arguments")
    ap.add_argument("--outdir", default=".", help="Output directory for --extract (default: current directory)")
    return ap


def _check_arg_count(op: str, args: List[str]) -> Optional[str]:
    if op == "rename" and len(args) != 2:
        return "Incorrect argument count for operation 'rename'"
    if op == "list" and args:
        return "Incorrect argument count for operation 'list'"
    if op in ("delete", "extract") and not args:
        return f"Not enough arguments for operation '{op}'"
    return None


def main(argv: List[str] | None = None) -> int:
    ap = _build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        ap.print_help()
        return 0
    args = ap.parse_intermixed_args(argv)

    problem = _check_arg_count(args.op, args.args)
    if problem:
        print(f"Error: {problem}", file=sys.stderr)
        return 1

    try:
        if args.op == "create":
            cmd_create(args.archive, args.args)
        elif args.op == "add":
            cmd_add(args.archive, args.args)
        elif args.op == "rename":
            cmd_rename(args.archive, args.args[0], args.args[1])
        elif args.op == "delete":
            cmd_delete(args.archive, args.args)
        elif args.op == "list":
            cmd_list(args.archive)
        elif args.op == "extract":
            cmd_extract(args.archive, args.args, outdir=args.outdir)
        else:
            raise RuntimeError("Unknown operation")
    except (ArchiveOpenError, EmptyArchiveError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except MalformedArchiveError as e:
        print(f"Error: '{args.archive}' is not a readable tar archive: {e}", file=sys.stderr)
        return 1
    except (TarletError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
