"""
공통 픽스처: 샘플 문항 배치, 스트리밍을 흉내 내는 가짜 OpenAI 클라이언트.
네트워크 호출 없이 실행된다.
"""

import json
import os
from types import SimpleNamespace

import pytest

# Settings()가 import 시점에 생성되므로 테스트용 키를 먼저 넣어 둔다
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from pdfquiz.schema.models import Document, Question  # noqa: E402


def make_question_dict(n: int, answer: str = "A") -> dict:
    return {
        "question": f"Question {n}?",
        "options": [f"Q{n} option A", f"Q{n} option B", f"Q{n} option C", f"Q{n} option D"],
        "answer": answer,
        "explanation": f"Explanation for question {n}.",
    }


def make_batch(start: int = 1, answers: str = "ABCD") -> list[Question]:
    return [
        Question.model_validate(make_question_dict(start + i, label))
        for i, label in enumerate(answers)
    ]


def batch_json(start: int = 1, answers: str = "ABCD") -> str:
    return json.dumps(
        {"questions": [make_question_dict(start + i, label) for i, label in enumerate(answers)]}
    )


def split_chunks(text: str, size: int = 17) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)]


class FakeCompletions:
    def __init__(self, chunks: list[str]) -> None:
        self.chunks = chunks
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._stream()

    async def _stream(self):
        # 사용량 보고용 청크처럼 choices가 빈 청크도 섞어 보낸다
        yield SimpleNamespace(choices=[])
        for text in self.chunks:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])
        yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=None))])


class FakeClient:
    def __init__(self, chunks: list[str]) -> None:
        self.completions = FakeCompletions(chunks)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def initial_batch() -> list[Question]:
    return make_batch(1, "ABCD")


@pytest.fixture
def document() -> Document:
    return Document(filename="lecture.pdf", data=b"%PDF-1.4 fake pdf bytes")


@pytest.fixture
def fake_client_factory():
    def factory(text: str, size: int = 17) -> FakeClient:
        return FakeClient(split_chunks(text, size))

    return factory
