"""
API 요청/응답 스키마.
"""

from pydantic import BaseModel, Field

from pdfquiz.schema.models import Question


class GenerateBatchResponse(BaseModel):
    """문항 배치 생성 응답 (스트리밍 없이 완료 후 반환)."""

    filename: str = Field(..., description="문항 생성에 사용한 파일 이름 (첫 번째 파일)")
    questions: list[Question] = Field(..., description="검증된 4문항")


class HealthResponse(BaseModel):
    status: str = "ok"
