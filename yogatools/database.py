from sqlalchemy import create_engine, Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, sessionmaker, relationship, Session
from datetime import datetime
from typing import Generator

from .config import DATABASE_URL

# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL, connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


class Video(Base):
    __tablename__ = "videos"

    id = Column(String, primary_key=True, index=True)
    # Catalog order; ranking ties fall back to it
    position = Column(Integer, nullable=False, index=True)
    title = Column(String, nullable=False, default="")
    length_min = Column(Integer, nullable=False, default=0)
    level = Column(String, nullable=False, default="")
    focuses = Column(JSON, nullable=False, default=list)
    intents = Column(JSON, nullable=False, default=list)
    vibe = Column(JSON, nullable=False, default=list)
    equipment = Column(JSON, nullable=False, default=list)
    contraindications = Column(JSON, nullable=False, default=list)
    url = Column(String, nullable=True)
    poster = Column(String, nullable=True)
    stream = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    transcript_txt = Column(String, nullable=True)
    transcript_vtt = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    transcript = relationship("Transcript", back_populates="video", uselist=False, cascade="all, delete-orphan")


class Transcript(Base):
    __tablename__ = "transcripts"

    video_id = Column(String, ForeignKey("videos.id"), primary_key=True)
    # Stored lowercased
    text = Column(Text, nullable=False)
    fetched_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    video = relationship("Video", back_populates="transcript")


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)
    query = Column(Text, nullable=False)
    recommended_id = Column(String, nullable=True)
    score = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


def init_db() -> None:
    """Create any missing tables. Alembic owns schema changes beyond that."""
    Base.metadata.create_all(bind=engine)


# Dependency to get DB session
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
