"""
Database configuration and models for bidbot
"""
from sqlalchemy import create_engine, Column, Integer, String, DateTime, Text, Float, Boolean, UniqueConstraint, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import NullPool, StaticPool
from datetime import datetime
from typing import Optional
import json
import os

from .projects import Project
from .proposals.lifecycle import ProposalState
from .users import AISettings, Profile, QuietHours, SearchSettings, Subscription, User, UserStats

SQLITE_BUSY_TIMEOUT_MS = max(1000, int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")))

Base = declarative_base()


def create_db_engine(database_url: str):
    engine_kwargs = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": SQLITE_BUSY_TIMEOUT_MS / 1000.0,
        }
        in_memory = ":memory:" in database_url or database_url == "sqlite://"
        engine_kwargs["poolclass"] = StaticPool if in_memory else NullPool

    engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA temp_store=MEMORY;")
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")
            cursor.close()

    return engine


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class ProjectRecord(Base):
    """Normalized project listings"""
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("platform", "external_id", name="uq_project_platform_id"),)

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String, nullable=False, index=True)
    platform = Column(String, nullable=False, index=True)  # upwork, freelancer, fiverr, guru, peopleperhour
    url = Column(String)
    title = Column(String)
    description = Column(Text)
    category = Column(String)
    budget_type = Column(String, default="not_specified")
    budget_min = Column(Float)
    budget_max = Column(Float)
    currency = Column(String, default="USD")
    normalized_budget = Column(Float, index=True)
    skills = Column(Text, default="[]")  # JSON array as string
    client_info = Column(Text, default="{}")  # JSON object as string
    proposals_count = Column(Integer, default=0)
    score_overall = Column(Integer, default=0, index=True)
    scores = Column(Text, default="{}")
    is_high_value = Column(Boolean, default=False)
    is_urgent = Column(Boolean, default=False)
    is_scam = Column(Boolean, default=False)
    posted_date = Column(DateTime)
    deadline = Column(DateTime)
    found_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProposalRecord(Base):
    """Generated proposals and their lifecycle"""
    __tablename__ = "proposals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True)
    project_id = Column(String, nullable=False, index=True)
    platform = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    subject = Column(String)
    bid_amount = Column(Float)
    timeline = Column(String)
    generation_method = Column(String, default="template")  # ai, template, manual, mixed
    template_used = Column(String)
    ai_model = Column(String)
    generation_time_ms = Column(Integer, default=0)
    quality_score = Column(Integer, default=0)
    quality = Column(Text, default="{}")
    word_count = Column(Integer, default=0)
    status = Column(String, default="draft", index=True)  # draft, ready, sent, viewed, responded, accepted, rejected
    sent_date = Column(DateTime)
    response_date = Column(DateTime)
    response = Column(Text, default="{}")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserRecord(Base):
    """Bot users and their settings"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    telegram_id = Column(Integer, unique=True, nullable=False, index=True)
    username = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    language_code = Column(String, default="en")
    settings = Column(Text, default="{}")  # profile/search/ai/notification settings as JSON
    total_searches = Column(Integer, default=0)
    total_proposals = Column(Integer, default=0)
    proposals_sent = Column(Integer, default=0)
    projects_won = Column(Integer, default=0)
    success_rate = Column(Float, default=0.0)
    plan = Column(String, default="free")
    subscription_end = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ---------------------------------------------------------------------------
# Independent saves (one commit per entity)
# ---------------------------------------------------------------------------

def save_project(db: Session, project: Project) -> ProjectRecord:
    """Insert or update a project keyed by (platform, external id)."""
    record = (
        db.query(ProjectRecord)
        .filter(ProjectRecord.platform == project.platform, ProjectRecord.external_id == project.id)
        .first()
    )
    if record is None:
        record = ProjectRecord(external_id=project.id, platform=project.platform)
        db.add(record)

    data = project.to_dict()
    record.url = project.url
    record.title = project.title
    record.description = project.description
    record.category = project.category
    record.budget_type = project.budget_type
    record.budget_min = project.budget_min
    record.budget_max = project.budget_max
    record.currency = project.currency
    record.normalized_budget = project.normalized_budget
    record.skills = json.dumps(project.skills, ensure_ascii=False)
    record.client_info = json.dumps(data["client"], ensure_ascii=False)
    record.proposals_count = project.proposals.count
    record.score_overall = project.scores.overall
    record.scores = json.dumps(data["scores"])
    record.is_high_value = project.flags.is_high_value
    record.is_urgent = project.flags.is_urgent
    record.is_scam = project.flags.is_scam
    record.posted_date = project.posted_date
    record.deadline = project.deadline

    db.commit()
    db.refresh(record)
    return record


def save_proposal(db: Session, state: ProposalState, platform: str,
                  template_used: Optional[str] = None, ai_model: Optional[str] = None,
                  generation_time_ms: int = 0) -> ProposalRecord:
    record = ProposalRecord(
        user_id=state.user_id,
        project_id=state.project_id,
        platform=platform,
        content=state.content,
        generation_method=state.generation_method,
        template_used=template_used,
        ai_model=ai_model,
        generation_time_ms=generation_time_ms,
        quality_score=state.quality.score,
        quality=json.dumps(state.quality.to_dict()),
        word_count=state.quality.word_count,
        status=state.status,
        sent_date=state.sent_date,
        response_date=state.response_date,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def save_user(db: Session, user: User) -> UserRecord:
    record = db.query(UserRecord).filter(UserRecord.telegram_id == user.telegram_id).first()
    if record is None:
        record = UserRecord(telegram_id=user.telegram_id)
        db.add(record)

    data = user.to_dict()
    record.username = user.username
    record.first_name = user.first_name
    record.last_name = user.last_name
    record.language_code = user.language_code
    record.settings = json.dumps(
        {key: data[key] for key in ("profile", "search_settings", "ai_settings", "quiet_hours")},
        ensure_ascii=False, default=str,
    )
    record.total_searches = user.stats.total_searches
    record.total_proposals = user.stats.total_proposals
    record.proposals_sent = user.stats.proposals_sent
    record.projects_won = user.stats.projects_won
    record.success_rate = user.stats.success_rate
    record.plan = user.subscription.plan
    record.subscription_end = user.subscription.end_date

    db.commit()
    db.refresh(record)
    return record


def user_from_record(record: UserRecord) -> User:
    settings = json.loads(record.settings or "{}")
    return User(
        telegram_id=record.telegram_id,
        username=record.username or "",
        first_name=record.first_name or "",
        last_name=record.last_name or "",
        language_code=record.language_code or "en",
        profile=Profile(**settings.get("profile", {})),
        search_settings=SearchSettings(**settings.get("search_settings", {})),
        ai_settings=AISettings(**settings.get("ai_settings", {})),
        quiet_hours=QuietHours(**settings.get("quiet_hours", {})),
        stats=UserStats(
            total_searches=record.total_searches or 0,
            total_proposals=record.total_proposals or 0,
            proposals_sent=record.proposals_sent or 0,
            projects_won=record.projects_won or 0,
            success_rate=record.success_rate or 0.0,
        ),
        subscription=Subscription(plan=record.plan or "free", end_date=record.subscription_end),
    )


def get_user(db: Session, telegram_id: int) -> Optional[User]:
    record = db.query(UserRecord).filter(UserRecord.telegram_id == telegram_id).first()
    return user_from_record(record) if record else None


def init_db(engine):
    """Initialize database tables"""
    Base.metadata.create_all(bind=engine)
