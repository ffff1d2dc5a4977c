"""
PDF 문서로 객관식 문항 배치(4문항) 생성.
모델 출력은 스트리밍으로 받고, 스트림이 끝난 뒤 스키마 검증을 통과해야만 완료로 본다.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Callable

from openai import AsyncOpenAI
from pydantic import ValidationError
from pydantic_core import from_json

from pdfquiz.core.config import settings
from pdfquiz.core.exceptions import GenerationValidationError
from pdfquiz.schema.models import BATCH_SIZE, Document, Question, QuestionBatch

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert educator. Your task is to analyze the document and:\n"
    "1. Identify key learning objectives and core concepts\n"
    "2. Create challenging multiple choice questions that test understanding of these concepts\n"
    "3. Focus on comprehension, application, and analysis rather than simple recall\n"
    "4. Avoid superficial questions about formatting, authors, or publication details\n"
    "5. Ensure each question has 4 well-crafted options of similar length\n"
    "6. Make incorrect options plausible but clearly wrong to those who understand the concept\n"
    "7. For each question, provide a detailed explanation that:\n"
    "   - Explains why the correct answer is right\n"
    "   - Connects the answer to the core concept being tested\n"
    "   - Helps learners understand common misconceptions\n"
    "   - Uses examples or analogies when helpful\n"
    "\n"
    "Respond with JSON only, in exactly this format:\n"
    '{"questions": [{"question": "...", "options": ["...", "...", "...", "..."], '
    '"answer": "A", "explanation": "..."}]}\n'
    "answer is the letter of the correct option: A is the first option, B the second, and so on."
)

USER_PROMPT = (
    f"Create {BATCH_SIZE} high-quality multiple choice questions based on the core concepts "
    "in this document. Include detailed explanations for each question."
)


def validate_batch(raw: str) -> list[Question]:
    """모델이 만든 JSON 문자열을 4문항 배치로 검증. 실패하면 배치 전체를 거부한다."""
    try:
        batch = QuestionBatch.model_validate_json(raw)
    except ValidationError as exc:
        messages = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err["loc"])
            messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        raise GenerationValidationError("\n".join(messages)) from exc
    return batch.questions


def parse_partial(raw: str) -> list[dict[str, Any]]:
    """스트리밍 중인 JSON에서 지금까지 파싱 가능한 문항들만 꺼낸다 (검증 전)."""
    if not raw.strip():
        return []
    try:
        data = from_json(raw, allow_partial=True)
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    questions = data.get("questions") or []
    if not isinstance(questions, list):
        return []
    return [q for q in questions if isinstance(q, dict)]


def build_messages(document: Document) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": USER_PROMPT},
                {
                    "type": "file",
                    "file": {
                        "filename": document.filename,
                        "file_data": document.to_data_url(),
                    },
                },
            ],
        },
    ]


class QuestionGeneratorService:
    """문서 1개 → 검증된 문항 4개. 호출마다 독립적이며 상태를 갖지 않는다."""

    def __init__(self, client: AsyncOpenAI | None = None) -> None:
        self._client = client or AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.REQUEST_TIMEOUT,
        )

    async def _stream_deltas(self, document: Document) -> AsyncIterator[str]:
        logger.info("LLM 문항 생성 호출 중 file=%s model=%s", document.filename, settings.OPENAI_MODEL)
        stream = await self._client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            temperature=settings.OPENAI_TEMPERATURE,
            response_format={"type": "json_object"},
            messages=build_messages(document),
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta

    async def stream_text(
        self,
        document: Document,
        collected: list[Question] | None = None,
    ) -> AsyncIterator[str]:
        """
        모델 출력 조각을 도착하는 대로 넘겨준다.
        스트림이 끝나면 누적된 전체 텍스트를 검증하고, 실패 시 GenerationValidationError를 던진다.
        collected: 검증을 통과한 문항을 받을 리스트 (선택).
        """
        buffer: list[str] = []
        async for delta in self._stream_deltas(document):
            buffer.append(delta)
            yield delta
        questions = validate_batch("".join(buffer))
        logger.info("문항 생성 완료 수신 문항 수=%d", len(questions))
        if collected is not None:
            collected.extend(questions)

    async def generate(
        self,
        document: Document,
        on_partial: Callable[[list[dict[str, Any]]], None] | None = None,
    ) -> list[Question]:
        """
        스트림을 끝까지 소비한 뒤 검증된 배치를 반환.
        on_partial: 진행 표시용. 부분 파싱된 문항 목록이 바뀔 때마다 호출 (검증 전 데이터).
        """
        questions: list[Question] = []
        raw = ""
        last: list[dict[str, Any]] = []
        async for delta in self.stream_text(document, collected=questions):
            if on_partial is None:
                continue
            raw += delta
            partial = parse_partial(raw)
            if partial and partial != last:
                last = partial
                on_partial(partial)
        return questions


question_generator_service = QuestionGeneratorService()
