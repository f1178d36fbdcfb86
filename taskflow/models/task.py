"""
Task 모델 정의
프로젝트 내 작업 관리를 위한 모델 (하위 작업 / 댓글 / 첨부파일 포함)
"""
from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from taskflow.core.database import Base, IdType
from taskflow.models.enums import Priority, TaskCategory, TaskStatus, enum_values
from taskflow.utils.timezone import utc_now


class Task(Base):
    """작업 모델"""
    __tablename__ = "tasks"

    task_id = Column(IdType, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    project_id = Column(IdType, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    assignee_id = Column(String(36), ForeignKey("users.user_id"), index=True)
    creator_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(SQLEnum(TaskStatus, values_callable=enum_values), nullable=False, default=TaskStatus.TODO)
    priority = Column(SQLEnum(Priority, values_callable=enum_values), nullable=False, default=Priority.MEDIUM)
    category = Column(SQLEnum(TaskCategory, values_callable=enum_values), nullable=False, default=TaskCategory.OTHER)
    labels = Column(JSON, nullable=False, default=list)
    due_date = Column(DateTime, index=True)
    estimated_hours = Column(Float, nullable=False, default=0)
    actual_hours = Column(Float, nullable=False, default=0)
    progress = Column(Integer, nullable=False, default=0)
    dependency_ids = Column(JSON, nullable=False, default=list)  # 선행 작업 task_id 목록
    is_archived = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime)
    started_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    # 관계 설정
    project = relationship("Project", lazy="selectin")
    assignee = relationship("User", foreign_keys=[assignee_id], lazy="selectin")
    creator = relationship("User", foreign_keys=[creator_id], lazy="selectin")
    subtasks = relationship(
        "Subtask",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="Subtask.position",
        lazy="selectin",
    )
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.created_at",
        lazy="selectin",
    )
    attachments = relationship(
        "TaskAttachment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskAttachment.uploaded_at",
        lazy="selectin",
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("status", TaskStatus.TODO)
        kwargs.setdefault("priority", Priority.MEDIUM)
        kwargs.setdefault("category", TaskCategory.OTHER)
        kwargs.setdefault("labels", [])
        kwargs.setdefault("estimated_hours", 0)
        kwargs.setdefault("actual_hours", 0)
        kwargs.setdefault("progress", 0)
        kwargs.setdefault("dependency_ids", [])
        kwargs.setdefault("is_archived", False)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Task(task_id={self.task_id}, title='{self.title}', status='{self.status}')>"


class Subtask(Base):
    __tablename__ = "subtasks"

    subtask_id = Column(IdType, primary_key=True, autoincrement=True)
    task_id = Column(IdType, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    task = relationship("Task", back_populates="subtasks")

    def __init__(self, **kwargs):
        kwargs.setdefault("is_completed", False)
        kwargs.setdefault("position", 0)
        super().__init__(**kwargs)


class TaskComment(Base):
    __tablename__ = "task_comments"

    comment_id = Column(IdType, primary_key=True, autoincrement=True)
    task_id = Column(IdType, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    content = Column(String(500), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    task = relationship("Task", back_populates="comments")
    user = relationship("User", lazy="selectin")


class TaskAttachment(Base):
    __tablename__ = "task_attachments"

    attachment_id = Column(IdType, primary_key=True, autoincrement=True)
    task_id = Column(IdType, ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    content_type = Column(String(100))
    size = Column(BigInteger, nullable=False)
    s3_key = Column(String(1024), nullable=False)
    uploaded_by = Column(String(36), nullable=False)
    uploaded_at = Column(DateTime, nullable=False, default=utc_now)

    task = relationship("Task", back_populates="attachments")
