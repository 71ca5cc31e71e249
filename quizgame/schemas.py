import uuid
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class Author(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str
    emoji: str
    created_at: str = ""

# Synthetic author for AI generated quizzes; never exists in the store.
AI_GENERATED_AUTHOR = Author(id=uuid.uuid4(), name="AI Generated", emoji="🤖", created_at="")

class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    question_id: uuid.UUID
    content: str
    is_correct: bool
    created_at: Optional[str] = None

    # identity only: the same option id is the same option
    def __eq__(self, other):
        if not isinstance(other, Option):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    content: str
    created_at: Optional[str] = None
    options: List[Option] = Field(default_factory=list)

    def __eq__(self, other):
        if not isinstance(other, Question):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @property
    def correct_option(self) -> Optional[Option]:
        return next((o for o in self.options if o.is_correct), None)

class AIOption(BaseModel):
    id: uuid.UUID
    content: str
    is_correct: bool

class AIQuestion(BaseModel):
    """Question shape produced from model output, before it has an author or timestamps."""
    id: uuid.UUID
    content: str
    options: List[AIOption] = Field(default_factory=list)

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            author_id=None,
            content=self.content,
            created_at=None,
            options=[
                Option(id=o.id, question_id=self.id, content=o.content,
                       is_correct=o.is_correct, created_at=None)
                for o in self.options
            ],
        )

class GenerateRequest(BaseModel):
    topic: str = Field(min_length=1)
    numberOfQuestions: int = 5
