import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    Boolean,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .config import DEFAULT_TIME_LIMIT_SECONDS, SLUG_LENGTH
from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SetMode(str, enum.Enum):
    QUIZ = "quiz"
    SURVEY = "survey"


class QuestionSet(Base):
    __tablename__ = "question_sets"
    __table_args__ = (UniqueConstraint("slug", name="uq_question_sets_slug"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    mode = Column(
        Enum(SetMode, name="set_mode", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SetMode.QUIZ,
    )
    time_limit_seconds = Column(
        Integer, nullable=False, default=DEFAULT_TIME_LIMIT_SECONDS
    )
    is_public = Column(Boolean, nullable=False, default=True)
    # Wird einmalig beim Anlegen vergeben und danach nie verändert
    slug = Column(String(SLUG_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    questions = relationship(
        "Question",
        back_populates="question_set",
        cascade="all, delete-orphan",
        order_by="Question.position",
        lazy="selectin",
    )
    answers = relationship(
        "Answer",
        back_populates="question_set",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_survey(self) -> bool:
        return self.mode == SetMode.SURVEY


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    question_set_id = Column(
        Integer, ForeignKey("question_sets.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False, default=list)
    correct_answer = Column(String, nullable=False, default="")

    question_set = relationship("QuestionSet", back_populates="questions")

    @property
    def key(self) -> str:
        """Key under which respondents address this question in an answer map."""
        return str(self.id)


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint(
            "question_set_id", "respondent_key", name="uq_answers_set_respondent"
        ),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    question_set_id = Column(
        Integer,
        ForeignKey("question_sets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_id = Column(String, nullable=True, index=True)
    respondent_name = Column(String, nullable=False, default="Anonymous")
    respondent_key = Column(String, nullable=False)
    answers = Column(JSON, nullable=False)
    score = Column(Integer, nullable=True)
    # {question_id: correct_answer} zum Zeitpunkt der Abgabe
    answer_key = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    question_set = relationship("QuestionSet", back_populates="answers")
