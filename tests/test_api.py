"""
FastAPI 엔드포인트: 업로드 검증, 배치 생성, 텍스트 스트리밍.
"""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeClient, batch_json, make_question_dict, split_chunks
from pdfquiz.api.main import create_app
from pdfquiz.core.config import settings
from pdfquiz.services import question_generator as generator_module
from pdfquiz.services.question_generator import QuestionGeneratorService

PDF_BYTES = b"%PDF-1.4 fake"


@pytest.fixture
def use_model_output(monkeypatch):
    def install(text: str) -> FakeClient:
        client = FakeClient(split_chunks(text))
        monkeypatch.setattr(
            generator_module,
            "question_generator_service",
            QuestionGeneratorService(client=client),
        )
        return client

    return install


@pytest.fixture
def client():
    return TestClient(create_app())


def pdf_files(*names: str):
    return [("files", (name, PDF_BYTES, "application/pdf")) for name in names]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_generate_batch_returns_questions(client, use_model_output):
    fake = use_model_output(batch_json(answers="ABCD"))

    resp = client.post("/quiz/generate/batch", files=pdf_files("first.pdf", "second.pdf"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["filename"] == "first.pdf"
    assert len(body["questions"]) == 4
    assert body["questions"][1]["answer"] == "B"
    # 첫 번째 파일만 모델에 전달된다
    (call,) = fake.completions.calls
    assert call["messages"][1]["content"][1]["file"]["filename"] == "first.pdf"


def test_generate_batch_invalid_model_output(client, use_model_output):
    questions = [make_question_dict(i) for i in range(1, 5)]
    questions[0]["answer"] = "E"
    use_model_output(json.dumps({"questions": questions}))

    resp = client.post("/quiz/generate/batch", files=pdf_files("doc.pdf"))

    assert resp.status_code == 502
    assert "questions.0.answer" in resp.json()["detail"]


def test_generate_rejects_empty_file(client, use_model_output):
    use_model_output(batch_json())
    resp = client.post("/quiz/generate/batch", files=[("files", ("empty.pdf", b"", "application/pdf"))])
    assert resp.status_code == 400


def test_generate_rejects_non_pdf(client, use_model_output):
    use_model_output(batch_json())
    resp = client.post("/quiz/generate", files=[("files", ("notes.txt", b"hello", "text/plain"))])
    assert resp.status_code == 400


def test_generate_rejects_oversized_file(client, use_model_output, monkeypatch):
    use_model_output(batch_json())
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    resp = client.post("/quiz/generate/batch", files=pdf_files("big.pdf"))
    assert resp.status_code == 400


def test_generate_requires_files(client):
    resp = client.post("/quiz/generate/batch")
    assert resp.status_code == 422


def test_generate_streams_model_text(client, use_model_output):
    text = batch_json(answers="DDDD")
    use_model_output(text)

    resp = client.post("/quiz/generate", files=pdf_files("doc.pdf"))

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == text
