import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from jsonschema import SchemaError
from pydantic import ValidationError

from .config import DB_PROVIDER, PUBLIC_BASE_URL, setup_logging
from .models import SavePayload
from .storage import ProviderKind, ValidationStorage, create_storage
from .validator import Validator

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Validation not found or expired"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="validations",
        description="Save a JSON Schema and document pair, or fetch one back by id.",
    )
    parser.add_argument("--provider", default=DB_PROVIDER, help="sqlite or mongodb (default from DB_PROVIDER)")
    parser.add_argument("--db-path", help="SQLite database file (default from DB_PATH)")

    commands = parser.add_subparsers(dest="command", required=True)

    save = commands.add_parser("save", help="store a schema and document, print the id")
    save.add_argument("schema_file", type=Path)
    save.add_argument("json_file", type=Path)

    get = commands.add_parser("get", help="print a stored record")
    get.add_argument("id")

    return parser


def share_url(id: str, base_url: Optional[str] = PUBLIC_BASE_URL) -> Optional[str]:
    if not base_url:
        return None
    return f"{base_url.rstrip('/')}/{id}"


async def save_command(storage: ValidationStorage, schema_file: Path, json_file: Path) -> int:
    try:
        payload = SavePayload(
            schema=json.loads(schema_file.read_text(encoding="utf-8")),
            json=json.loads(json_file.read_text(encoding="utf-8")),
        )
    except json.JSONDecodeError as e:
        print(f"Invalid JSON: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return 2

    try:
        errors = Validator().validate(payload.json_, payload.schema_)
    except SchemaError as e:
        print(f"Invalid schema: {e.message}", file=sys.stderr)
        errors = None

    if errors:
        print(f"Document does not match the schema ({len(errors)} errors):", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
    elif errors is not None:
        print("Document is valid", file=sys.stderr)

    schema_text, json_text = payload.serialized()
    id = await storage.save_validation(schema_text, json_text)
    logger.info(f"Validation saved: id={id} schemaSize={len(schema_text)} jsonSize={len(json_text)}")

    print(id)
    url = share_url(id)
    if url:
        print(url)
    return 0


async def get_command(storage: ValidationStorage, id: str) -> int:
    record = await storage.get_validation(id)
    if record is None:
        print(NOT_FOUND_MESSAGE, file=sys.stderr)
        return 1

    print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    return 0


async def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    kind = ProviderKind.parse(args.provider)
    options = {}
    if args.db_path and kind is ProviderKind.SQLITE:
        options["db_path"] = args.db_path

    storage = create_storage(kind, **options)
    try:
        await storage.setup()
        if args.command == "save":
            return await save_command(storage, args.schema_file, args.json_file)
        return await get_command(storage, args.id)
    finally:
        await storage.close()


def main():
    setup_logging()
    try:
        exit_code = asyncio.run(run())
    except Exception as e:
        logger.critical(f"Fatal error during execution: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
