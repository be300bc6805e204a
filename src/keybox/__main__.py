# Keybox: Command-Line Entry Point
#
#   keybox add --category mail --account me@example.com
#   keybox list
#   keybox find mail
#   keybox rm 3f2a
#   keybox rm-account mail me@example.com
#   keybox clear
#
# The master password comes from KEYBOX_MASTER_PASSWORD or an interactive
# prompt. Settings are described in keybox/core/config.py.

import argparse
import getpass
import sys
from typing import List, Optional

from . import __version__
from .core import AuditLogger, load_settings, set_audit_logger
from .vault import Box, KeyboxError, Record, write_table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keybox",
        description="Keybox - local encrypted password box",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"keybox v{__version__}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add a password, or update one with --id")
    add.add_argument("--id", default="", help="Id of the password to update")
    add.add_argument("--category", default="", help="Category label")
    add.add_argument("--account", default="", help="Account name")
    add.add_argument("--password", default=None, help="Password (prompted if omitted)")

    rm = sub.add_parser("rm", help="Remove passwords by id or id prefix")
    rm.add_argument("ids", nargs="+", help="Ids or id prefixes")
    rm.add_argument("--all", action="store_true", help="Remove every match of an ambiguous prefix")

    rm_account = sub.add_parser("rm-account", help="Remove passwords by category and account")
    rm_account.add_argument("category")
    rm_account.add_argument("account")
    rm_account.add_argument("--all", action="store_true", help="Remove every matching password")

    sub.add_parser("clear", help="Remove all passwords")

    list_cmd = sub.add_parser("list", help="List all passwords")
    list_cmd.add_argument("--no-header", action="store_true", help="Omit the header row")

    find = sub.add_parser("find", help="Find passwords by category or account")
    find.add_argument("word")

    return parser


def _read_master_password(settings) -> str:
    if settings.master_password:
        return settings.master_password
    return getpass.getpass("Master password: ")


def run(args: argparse.Namespace, box: Box, out=None) -> int:
    """Execute a parsed command against an initialized box."""
    out = out or sys.stdout

    if args.command == "add":
        password = args.password
        if password is None and not args.id:
            password = getpass.getpass("Password: ")
        record = Record(
            id=args.id,
            category=args.category,
            plain_account=args.account,
            plain_password=password or "",
        )
        record_id, created = box.add(record)
        print(f"{'added' if created else 'updated'} {record_id}", file=out)

    elif args.command == "rm":
        for record_id in box.remove(args.ids, allow_ambiguous=args.all):
            print(f"removed {record_id}", file=out)

    elif args.command == "rm-account":
        for record_id in box.remove_by_account(args.category, args.account, allow_ambiguous=args.all):
            print(f"removed {record_id}", file=out)

    elif args.command == "clear":
        ids = box.clear()
        print(f"removed {len(ids)} password(s)", file=out)

    elif args.command == "list":
        write_table(out, box.list(no_header=args.no_header))

    elif args.command == "find":
        write_table(out, box.find(args.word))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the keybox command."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    audit = AuditLogger(log_dir=settings.log_dir, enabled=settings.audit)
    set_audit_logger(audit)
    box = Box(settings.make_repository(), audit_logger=audit)

    try:
        box.initialize(_read_master_password(settings))
        return run(args, box)
    except KeyboxError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        audit.close()


if __name__ == "__main__":
    sys.exit(main())
