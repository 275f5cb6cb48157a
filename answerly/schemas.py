from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_TIME_LIMIT_SECONDS
from .models import SetMode


# --- Fragen ---


class QuestionBase(BaseModel):
    text: str = ""
    options: List[str] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def split_option_string(cls, v):
        # Das Autorenformular schickt Optionen als "a, b, c"
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class QuestionCreate(QuestionBase):
    # Vorhandene Fragen behalten beim Aktualisieren ihre ID
    id: Optional[int] = None
    correct_answer: str = Field(default="", alias="answer")

    model_config = ConfigDict(populate_by_name=True)


class PublicQuestion(QuestionBase):
    """A question as respondents see it: no correct answer."""

    id: int

    model_config = ConfigDict(from_attributes=True)


class OwnerQuestion(PublicQuestion):
    correct_answer: str


# --- Question sets ---


class QuestionSetCreate(BaseModel):
    title: str = Field(..., min_length=1)
    questions: List[QuestionCreate] = Field(default_factory=list)
    time_limit_seconds: int = Field(
        default=DEFAULT_TIME_LIMIT_SECONDS, ge=1, alias="timeLimitSeconds"
    )
    is_public: bool = Field(default=True, alias="isPublic")
    # Ein Titel "survey" erzwingt immer den Umfragemodus
    mode: Optional[SetMode] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class QuestionSetUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    questions: Optional[List[QuestionCreate]] = None
    time_limit_seconds: Optional[int] = Field(
        default=None, ge=1, alias="timeLimitSeconds"
    )
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    mode: Optional[SetMode] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class PublicQuestionSet(BaseModel):
    id: int
    title: str
    slug: str
    mode: SetMode
    time_limit_seconds: int
    is_public: bool
    questions: List[PublicQuestion] = []

    model_config = ConfigDict(from_attributes=True)


class OwnerQuestionSet(PublicQuestionSet):
    owner_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    questions: List[OwnerQuestion] = []


class MessageResponse(BaseModel):
    message: str


# --- Abgaben ---


class AnswerCreate(BaseModel):
    respondent_display_name: Optional[str] = Field(
        default=None, alias="respondentDisplayName"
    )
    answer_map: Dict[str, Any] = Field(default_factory=dict, alias="answerMap")

    model_config = ConfigDict(populate_by_name=True)


class ScoreSummary(BaseModel):
    correct_count: int
    total_questions: int
    percentage: float


class AnswerRead(BaseModel):
    id: int
    question_set_id: int
    owner_id: Optional[str] = None
    respondent_name: str
    answers: Union[Dict[str, Any], List[Any]]
    score: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(AnswerRead):
    result: Optional[ScoreSummary] = None


class RespondentAvailability(BaseModel):
    name: str
    available: bool


class SetAnswersResponse(BaseModel):
    """Set plus raw answers for results pages."""

    set: OwnerQuestionSet
    answers: List[AnswerRead] = []


class QuestionResult(BaseModel):
    question_id: int
    text: str
    chosen: Optional[Any] = None
    correct: str
    is_correct: bool


class AnswerBreakdownResponse(BaseModel):
    answer_id: int
    respondent_name: str
    submitted_at: datetime
    results: List[QuestionResult] = []


class RespondentSummary(BaseModel):
    respondent: str
    display_name: str
    total_questions: int
    correct_count: Optional[int] = None
    submitted_at: datetime
    submissions: int = 1


class SummaryResponse(BaseModel):
    set_id: int
    title: str
    mode: SetMode
    total_respondents: int
    summaries: List[RespondentSummary] = []


class RegradeResponse(BaseModel):
    regraded: int


# --- Admin ---


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AdminStats(BaseModel):
    total_question_sets: int
    total_answers: int
    total_owners: int
