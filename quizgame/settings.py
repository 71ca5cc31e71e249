from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List

class Settings(BaseSettings):
    # Supabase (client side uses the anon key)
    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    # Override for the generate-quiz function (defaults to {SUPABASE_URL}/functions/v1/generate-quiz)
    GENERATE_QUIZ_URL: str | None = None
    HTTP_TIMEOUT: float = 30.0

    # Quiz session knobs
    QUESTION_TIME_BUDGET: int = 10
    TICK_SECONDS: float = 1.0
    AI_QUESTION_COUNT: int = 5

    # OpenAI (generation service)
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    MOCK_MODE: bool = False
    MAX_QUESTIONS: int = 20

    # Safety/abuse knobs
    RATE_LIMIT: str = "30/minute"

    # CORS: the generate function is called straight from the mobile client
    ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def generate_quiz_url(self) -> str:
        if self.GENERATE_QUIZ_URL:
            return self.GENERATE_QUIZ_URL
        return f"{(self.SUPABASE_URL or '').rstrip('/')}/functions/v1/generate-quiz"

settings = Settings()
