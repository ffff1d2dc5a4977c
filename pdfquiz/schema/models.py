"""
문항/배치/문서 스키마 정의.
- 문항: 질문, 보기 4개(A~D), 정답 라벨, 해설.
- 배치: 생성 호출 1회당 정확히 4문항.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Literal, Sequence, TypeVar

from pydantic import BaseModel, Field, field_validator

Label = Literal["A", "B", "C", "D"]
LABELS: tuple[Label, ...] = ("A", "B", "C", "D")
BATCH_SIZE = 4

T = TypeVar("T")


def label_index(label: str) -> int:
    """라벨(A~D)을 보기 위치(0~3)로 변환."""
    try:
        return LABELS.index(label)  # type: ignore[arg-type]
    except ValueError:
        raise ValueError(f"알 수 없는 라벨: {label!r} (A, B, C, D 중 하나)") from None


class Question(BaseModel):
    """퀴즈 한 문항: 질문, 4개 보기, 정답 라벨(A~D), 해설."""

    question: str = Field(..., min_length=1, description="질문 문장")
    options: list[str] = Field(
        ...,
        min_length=4,
        max_length=4,
        description="Four possible answers to the question. Only one should be correct. They should all be of equal lengths.",
    )
    answer: Label = Field(
        ...,
        description="The correct answer, where A is the first option, B is the second, and so on.",
    )
    explanation: str = Field(
        ...,
        description="A detailed explanation of why the correct answer is right and how it relates to the core concept being tested.",
    )

    @field_validator("options")
    @classmethod
    def strip_options(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v]

    def option_for(self, label: str) -> str:
        return self.options[label_index(label)]

    def is_correct(self, label: str) -> bool:
        return label == self.answer


class QuestionBatch(BaseModel):
    """생성 호출 1회의 결과. 모델 JSON 모드는 최상위 객체가 필요해서 questions 키로 감싼다."""

    questions: list[Question] = Field(..., min_length=BATCH_SIZE, max_length=BATCH_SIZE)


class Document(BaseModel):
    """모델에 첨부할 문서 (PDF)."""

    filename: str = "document.pdf"
    data: bytes
    media_type: str = "application/pdf"

    @classmethod
    def from_path(cls, path: Path) -> Document:
        if not path.exists():
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {path}")
        return cls(filename=path.name, data=path.read_bytes())

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


def first_document(documents: Sequence[T]) -> T:
    """여러 파일이 와도 첫 번째만 사용."""
    if not documents:
        raise ValueError("문서가 없습니다. PDF 파일 하나가 필요합니다.")
    return documents[0]


class ReviewRow(BaseModel):
    """결과 화면의 리뷰 한 줄."""

    index: int
    question: Question
    selected: Label
    is_correct: bool


class QuizResults(BaseModel):
    """응답한 문항만 기준으로 계산한 최종 점수."""

    score: int
    total: int
    percentage: float
    rows: list[ReviewRow]
