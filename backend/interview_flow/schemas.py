from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _as_stack(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class InitializeFlowRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    role: str = Field(min_length=1)
    tech_stack: list[str] = Field(alias="techStack")
    base_difficulty: int = Field(alias="baseDifficulty")
    total_questions: int | None = Field(default=None, alias="totalQuestions")

    @field_validator("tech_stack", mode="before")
    @classmethod
    def normalize_stack(cls, value):
        return _as_stack(value)


class NextQuestionRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    user_response: str = Field(alias="userResponse", min_length=1)
    current_question: str = Field(alias="currentQuestion", min_length=1)


class AnalyzeResponseRequest(_CamelModel):
    user_response: str = Field(alias="userResponse", min_length=1)
    current_question: str = Field(alias="currentQuestion", min_length=1)
    role: str = Field(min_length=1)
    tech_stack: list[str] = Field(default_factory=list, alias="techStack")
    current_difficulty: int = Field(default=5, alias="currentDifficulty")

    @field_validator("tech_stack", mode="before")
    @classmethod
    def normalize_stack(cls, value):
        return _as_stack(value)


class TranscriptLine(_CamelModel):
    role: str = Field(min_length=1)
    content: str


class FeedbackRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    transcript: list[TranscriptLine] = Field(min_length=1)
