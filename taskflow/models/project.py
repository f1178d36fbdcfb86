from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from taskflow.core.database import Base, IdType
from taskflow.models.enums import MemberRole, Priority, ProjectStatus, enum_values
from taskflow.utils.timezone import utc_now

DEFAULT_PROJECT_COLOR = "#6366f1"


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(IdType, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(Text)
    owner_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(SQLEnum(ProjectStatus, values_callable=enum_values), nullable=False, default=ProjectStatus.PLANNING)
    priority = Column(SQLEnum(Priority, values_callable=enum_values), nullable=False, default=Priority.MEDIUM)
    color = Column(String(7), nullable=False, default=DEFAULT_PROJECT_COLOR)
    start_date = Column(DateTime, nullable=False, default=utc_now)
    end_date = Column(DateTime)
    progress = Column(Integer, nullable=False, default=0)
    tags = Column(JSON, nullable=False, default=list)
    is_public = Column(Boolean, nullable=False, default=False)
    allow_comments = Column(Boolean, nullable=False, default=True)
    auto_archive = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    # 관계 설정
    owner = relationship("User", lazy="selectin")
    members = relationship(
        "ProjectMember",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectMember.joined_at",
        lazy="selectin",
    )

    def __init__(self, **kwargs):
        # 세션에 flush 되기 전(순수 도메인 로직/테스트)에도 기본값이 보이도록
        kwargs.setdefault("status", ProjectStatus.PLANNING)
        kwargs.setdefault("priority", Priority.MEDIUM)
        kwargs.setdefault("color", DEFAULT_PROJECT_COLOR)
        kwargs.setdefault("progress", 0)
        kwargs.setdefault("tags", [])
        kwargs.setdefault("is_public", False)
        kwargs.setdefault("allow_comments", True)
        kwargs.setdefault("auto_archive", False)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Project(project_id={self.project_id}, title='{self.title}', status='{self.status}')>"


class ProjectMember(Base):
    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    member_id = Column(IdType, primary_key=True, autoincrement=True)
    project_id = Column(IdType, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole, values_callable=enum_values), nullable=False, default=MemberRole.MEMBER)
    joined_at = Column(DateTime, nullable=False, default=utc_now)

    # 관계 설정
    project = relationship("Project", back_populates="members")
    user = relationship("User", lazy="selectin")
