"""Initialize the aspect ratio service database."""

from __future__ import annotations

import argparse

from src.aspect_service.config import load_config
from src.aspect_service.exceptions import DatabaseOperationError
from src.aspect_service.repositories.character_repository import CharacterRepository


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create tables and optionally seed a character.")
    parser.add_argument("--character-id", help="Character id to create if absent.")
    parser.add_argument("--name", default="", help="Display name of the seeded character.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config()
    if args.character_id:
        repo = CharacterRepository(config.session_factory)
        if repo.exists(args.character_id):
            print(f"Character {args.character_id} already exists.")
        else:
            try:
                repo.create(args.character_id, name=args.name)
            except DatabaseOperationError as exc:
                print(f"seeding failed: {exc}")
                return 2
            print(f"Character {args.character_id} created.")
    print("Database initialized.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
