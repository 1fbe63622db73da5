from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from string_registry import models
from string_registry.errors import AlreadyExists
from string_registry.repository import StringRepository
from string_registry.schemas import StoredRecord, StringProperties


def _to_record(row: models.StringRecord) -> StoredRecord:
    return StoredRecord(
        id=row.id,
        value=row.value,
        properties=StringProperties(
            length=row.length,
            is_palindrome=row.is_palindrome,
            unique_characters=row.unique_characters,
            word_count=row.word_count,
            sha256_hash=row.sha256_hash,
            character_frequency_map=dict(row.character_frequency_map),
        ),
        created_at=row.created_at,
    )


def _get_row(db: Session, record_id: str) -> Optional[models.StringRecord]:
    return db.query(models.StringRecord).filter(models.StringRecord.id == record_id).first()


class SqlStringRepository(StringRepository):
    """Repository backed by a SQL table; each mutation commits immediately."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def get(self, record_id: str) -> Optional[StoredRecord]:
        with self.session_factory() as db:
            row = _get_row(db, record_id)
            return _to_record(row) if row else None

    def put(self, record: StoredRecord) -> None:
        props = record.properties
        with self.session_factory() as db:
            if _get_row(db, record.id) is not None:
                raise AlreadyExists("String already exists in the system")
            db.add(
                models.StringRecord(
                    id=record.id,
                    value=record.value,
                    length=props.length,
                    is_palindrome=props.is_palindrome,
                    unique_characters=props.unique_characters,
                    word_count=props.word_count,
                    sha256_hash=props.sha256_hash,
                    character_frequency_map=dict(props.character_frequency_map),
                    created_at=record.created_at,
                )
            )
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise AlreadyExists("String already exists in the system") from exc

    def delete(self, record_id: str) -> bool:
        with self.session_factory() as db:
            row = _get_row(db, record_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def all(self) -> List[StoredRecord]:
        with self.session_factory() as db:
            rows = db.query(models.StringRecord).order_by(models.StringRecord.pk.asc()).all()
            return [_to_record(row) for row in rows]

    def clear(self) -> None:
        with self.session_factory() as db:
            db.query(models.StringRecord).delete()
            db.commit()
