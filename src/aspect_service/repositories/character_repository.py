"""Persistence layer for character records."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db.db_models import CharacterModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_URL_COLUMNS = {
    "1x1": "aspect_ratio_1x1_url",
    "16x9": "aspect_ratio_16x9_url",
    "9x16": "aspect_ratio_9x16_url",
}


@dataclass(slots=True)
class CharacterRecord:
    """Snapshot of a character row."""

    id: str
    name: str
    aspect_ratio_status: str | None
    aspect_ratio_error: str | None
    variant_urls: dict[str, str | None]
    original_aspect_ratio: str | None
    updated_at: datetime


def _to_record(model: CharacterModel) -> CharacterRecord:
    return CharacterRecord(
        id=model.id,
        name=model.name,
        aspect_ratio_status=model.aspect_ratio_status,
        aspect_ratio_error=model.aspect_ratio_error,
        variant_urls={key: getattr(model, column) for key, column in _URL_COLUMNS.items()},
        original_aspect_ratio=model.original_aspect_ratio,
        updated_at=model.updated_at,
    )


class CharacterRepository:
    """Record store for characters owning aspect ratio variants."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create(self, character_id: str, *, name: str = "") -> CharacterRecord:
        now = _utcnow()
        with handle_sqlalchemy_errors(entity="character"), self._session_factory() as session:
            model = CharacterModel(id=character_id, name=name, created_at=now, updated_at=now)
            session.add(model)
            session.commit()
            return _to_record(model)

    def get_by_id(self, character_id: str) -> CharacterRecord:
        with handle_sqlalchemy_errors(entity="character"), self._session_factory() as session:
            model = session.get(CharacterModel, character_id)
            if model is None:
                raise NotFoundError(f"Character '{character_id}' not found")
            return _to_record(model)

    def exists(self, character_id: str) -> bool:
        with handle_sqlalchemy_errors(entity="character"), self._session_factory() as session:
            found = session.execute(
                select(CharacterModel.id).where(CharacterModel.id == character_id)
            ).first()
            return found is not None

    def update_status(
        self,
        character_id: str,
        status: str,
        error_message: str | None = None,
    ) -> None:
        """Set aspect ratio status; a missing character is left untouched."""
        with handle_sqlalchemy_errors(entity="character"), self._session_factory() as session:
            result = session.execute(
                update(CharacterModel)
                .where(CharacterModel.id == character_id)
                .values(
                    aspect_ratio_status=status,
                    aspect_ratio_error=error_message,
                    updated_at=_utcnow(),
                )
            )
            session.commit()
        if result.rowcount == 0:
            logger.info(
                "character.status.no_row",
                extra={"character_id": character_id, "status": status},
            )

    def update_variant_urls(
        self,
        character_id: str,
        urls: Mapping[str, str],
        detected_class: str,
    ) -> None:
        values: dict[str, object] = {
            column: urls[key] for key, column in _URL_COLUMNS.items() if key in urls
        }
        values["original_aspect_ratio"] = detected_class
        values["updated_at"] = _utcnow()
        with handle_sqlalchemy_errors(entity="character"), self._session_factory() as session:
            result = session.execute(
                update(CharacterModel).where(CharacterModel.id == character_id).values(**values)
            )
            session.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"Character '{character_id}' not found")

    def ping(self) -> None:
        """Run a trivial query to confirm the database is reachable."""
        with handle_sqlalchemy_errors(), self._session_factory() as session:
            session.execute(select(1))
