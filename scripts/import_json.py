"""
Import students, classes, payments and notes from a JSON file.

Usage:
  python scripts/import_json.py data.json
  python scripts/import_json.py data.json --validate-only
  python scripts/import_json.py --template import-template.json

The file uses the same layout as the template offered on the import page.
Nothing is written unless the whole file validates.
"""

from __future__ import annotations

import argparse
import json
import os
import sys

# Ensure project root is importable when running from scripts/
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from utils.importer import (  # noqa: E402
    SECTIONS,
    ImportFailedError,
    bulk_insert,
    template_bytes,
    validate_import_data,
)
from utils.repository import SqlAlchemyRepository  # noqa: E402


def _print_errors(errors) -> None:
    for err in errors:
        where = f"{err.section}[{err.index}]." if err.section is not None else ""
        print(f"  - {where}{err.field}: {err.message}")


def main(argv: list[str] | None = None, flask_app=None) -> int:
    parser = argparse.ArgumentParser(description="Bulk import tuition records from JSON")
    parser.add_argument("path", nargs="?", help="JSON file to import")
    parser.add_argument("--validate-only", action="store_true", help="Check the file and exit")
    parser.add_argument("--template", metavar="OUT", help="Write the example template to OUT and exit")
    args = parser.parse_args(argv)

    if args.template:
        with open(args.template, "wb") as fh:
            fh.write(template_bytes())
        print(f"Template written to {args.template}")
        return 0

    if not args.path:
        parser.error("path is required unless --template is given")

    try:
        with open(args.path, "r", encoding="utf-8-sig") as fh:
            document = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Could not read {args.path}: {e}")
        return 2

    validation = validate_import_data(document)
    if not validation.valid:
        print(f"Validation failed with {len(validation.errors)} error(s):")
        _print_errors(validation.errors)
        return 1
    if args.validate_only:
        print("File is valid.")
        return 0

    if flask_app is None:
        from app import app as flask_app  # type: ignore

    with flask_app.app_context():
        try:
            report = bulk_insert(document, SqlAlchemyRepository())
        except ImportFailedError as e:
            print(str(e))
            return 3

    failed = 0
    for section in SECTIONS:
        result = report.section(section)
        failed += result.failed
        print(f"{section:<9} success={result.success} failed={result.failed}")
        for msg in result.errors:
            print(f"  - {msg}")
    return 4 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
