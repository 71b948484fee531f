from sqlalchemy import create_engine, Column, Integer, String, Float, DateTime, Boolean, Text, Index, or_, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging

from watchface_crawler.base import CandidateRecord
from watchface_crawler.errors import InitializationError, PersistenceError

logger = logging.getLogger(__name__)


def utc_now():
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


Base = declarative_base()


class Watchface(Base):
    __tablename__ = 'watchfaces'

    id = Column(Integer, primary_key=True)

    # Basic info
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, default="")
    category = Column(String, default="General", index=True)
    image_url = Column(String, nullable=False)
    download_url = Column(String, nullable=False)
    price = Column(String, default="Free")
    author = Column(String(100), default="")
    rating = Column(Float)  # 0-5 when known
    downloads = Column(Integer, default=0)

    # JSON arrays of strings
    tags = Column(Text, default="[]")
    compatibility = Column(Text, default="[]")

    # Provenance
    source_url = Column(String, nullable=False)
    original_id = Column(String, index=True)
    face_id = Column(String, index=True)
    scraped_at = Column(DateTime(timezone=True), default=utc_now)

    # Metadata
    is_active = Column(Boolean, default=True, index=True)
    last_updated = Column(DateTime(timezone=True))  # Set when a rescrape changes the row
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index('ix_watchfaces_name_image', 'name', 'image_url'),
        Index('ix_watchfaces_scraped_at', 'scraped_at'),
    )

    @property
    def tag_list(self) -> List[str]:
        return json.loads(self.tags) if self.tags else []

    @property
    def compatibility_list(self) -> List[str]:
        return json.loads(self.compatibility) if self.compatibility else []

    def __repr__(self):
        return f"<Watchface {self.id} {self.name!r} ({self.original_id})>"


# Columns holding lists, stored as JSON text
JSON_COLUMNS = ('tags', 'compatibility')


def _column_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    values = dict(fields)
    for column in JSON_COLUMNS:
        if column in values:
            values[column] = json.dumps(list(values[column] or []))
    return values


def record_columns(record: CandidateRecord) -> Dict[str, Any]:
    """Map a candidate record onto Watchface column values."""
    return _column_values({
        'name': record.name,
        'description': record.description,
        'category': record.category,
        'image_url': record.image_url,
        'download_url': record.download_url,
        'price': record.price,
        'author': record.author,
        'rating': record.rating,
        'downloads': record.downloads,
        'tags': record.tags,
        'compatibility': record.compatibility,
        'source_url': record.metadata.source_url,
        'original_id': record.metadata.original_id,
        'face_id': record.metadata.face_id,
        'scraped_at': record.metadata.scraped_at,
    })


def create_db_engine(database_url: str):
    """Create an engine, sharing one connection for in-memory SQLite."""
    if database_url.startswith('sqlite') and ':memory:' in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith('sqlite'):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,    # Verify connections before use (handles stale connections)
        pool_recycle=3600,
    )


def init_db(engine):
    Base.metadata.create_all(bind=engine)


def get_session(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


class WatchfaceStore:
    """
    Persistent store for watchfaces.

    Usage:
        store = WatchfaceStore(settings.database_url)
        store.connect()
        existing = store.find_existing(name=..., image_url=..., original_id=...)
        store.close()
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = None
        self.session = None

    def connect(self):
        """
        Open the database and create tables if needed.

        Raises:
            InitializationError: If the database cannot be reached
        """
        if self.session is not None:
            return
        try:
            if self.database_url.startswith('sqlite:///') and ':memory:' not in self.database_url:
                Path(self.database_url[len('sqlite:///'):]).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_db_engine(self.database_url)
            init_db(self.engine)
            self.session = get_session(self.engine)
            logger.info("Connected to database")
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to connect to database: {e}")
            self.close()
            raise InitializationError(f"Storage could not connect: {e}") from e

    def close(self):
        if self.session is not None:
            self.session.close()
            self.session = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            logger.info("Database connection closed")

    def _require_session(self):
        if self.session is None:
            raise PersistenceError("Store is not connected")
        return self.session

    def find_existing(
        self,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
        original_id: Optional[str] = None,
    ) -> Optional[Watchface]:
        """Find a stored watchface by (name, image_url) or by original_id."""
        clauses = []
        if name and image_url:
            clauses.append(and_(Watchface.name == name, Watchface.image_url == image_url))
        if original_id:
            clauses.append(Watchface.original_id == original_id)
        if not clauses:
            return None

        session = self._require_session()
        try:
            return session.query(Watchface).filter(or_(*clauses)).order_by(Watchface.id).first()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Lookup failed for {name!r}: {e}") from e

    def insert(self, record: CandidateRecord) -> Watchface:
        session = self._require_session()
        watchface = Watchface(**record_columns(record))
        try:
            session.add(watchface)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Insert failed for {record.name!r}: {e}") from e
        return watchface

    def update(self, existing: Watchface, fields: Dict[str, Any]) -> Watchface:
        """Write the given column values onto a stored watchface."""
        session = self._require_session()
        try:
            changed = False
            for column, value in _column_values(fields).items():
                if column == 'scraped_at':
                    continue
                if getattr(existing, column) != value:
                    setattr(existing, column, value)
                    changed = True
            if changed:
                existing.last_updated = utc_now()
            existing.scraped_at = fields.get('scraped_at') or utc_now()
            existing.is_active = True
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Update failed for {existing.name!r}: {e}") from e
        return existing

    def count(self) -> int:
        return self._require_session().query(Watchface).count()

    def all(self) -> List[Watchface]:
        return self._require_session().query(Watchface).order_by(Watchface.id).all()
