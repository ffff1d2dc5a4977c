"""
환경 변수 및 설정 로드.
"""

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "PDF-Quiz"
    OPENAI_API_KEY: str
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str | None = None
    OPENAI_TEMPERATURE: float = 0.2
    REQUEST_TIMEOUT: float = 60

    # 업로드 PDF 최대 크기 (bytes)
    MAX_UPLOAD_BYTES: int = 20 * 1024 * 1024
    # 남은 문항이 이 개수 이하가 되면 다음 배치를 미리 요청
    PREFETCH_THRESHOLD: int = 2

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
