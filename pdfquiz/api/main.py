"""
FastAPI 앱: PDF 업로드 → 문항 배치 생성 (스트리밍 / 일괄).
브라우저 퀴즈 화면은 이 API를 호출하는 외부 구성 요소다.
"""

import logging

import uvicorn
from fastapi import File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from pdfquiz.api.schemas import GenerateBatchResponse, HealthResponse
from pdfquiz.core.config import settings
from pdfquiz.core.exceptions import GenerationValidationError
from pdfquiz.schema.models import Document, first_document
from pdfquiz.services import question_generator as generator_module

logger = logging.getLogger(__name__)


async def read_documents(files: list[UploadFile]) -> Document:
    """업로드 파일 중 첫 번째만 읽어 Document로 만든다."""
    upload = first_document(files)
    filename = upload.filename or "document.pdf"
    if upload.content_type not in (None, "application/pdf") and not filename.lower().endswith(".pdf"):
        raise ValueError(f"PDF 파일만 지원합니다: {filename} ({upload.content_type})")
    data = await upload.read()
    if not data:
        raise ValueError(f"빈 파일입니다: {filename}")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise ValueError(f"파일이 너무 큽니다: {len(data)} bytes (최대 {settings.MAX_UPLOAD_BYTES})")
    return Document(filename=filename, data=data)


def create_app():
    from fastapi import FastAPI

    app = FastAPI(
        title="PDF Quiz API",
        description="PDF 문서로 객관식 4문항 배치 생성. 결과는 스트림 종료 후 스키마 검증을 거친다.",
        version="0.1.0",
    )

    @app.get("/health", response_model=HealthResponse, summary="상태 확인")
    def health() -> HealthResponse:
        return HealthResponse()

    @app.post(
        "/quiz/generate",
        summary="문항 생성 (텍스트 스트림)",
        description="첫 번째 업로드 파일로 4문항을 생성하며 모델 출력을 그대로 스트리밍. 스트림 끝에서 검증 실패 시 연결이 비정상 종료된다.",
    )
    async def quiz_generate(files: list[UploadFile] = File(...)) -> StreamingResponse:
        try:
            document = await read_documents(files)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        generator = generator_module.question_generator_service

        async def body():
            try:
                async for delta in generator.stream_text(document):
                    yield delta
            except GenerationValidationError:
                logger.exception("스트림 종료 후 문항 검증 실패 file=%s", document.filename)
                raise
            except Exception:
                logger.exception("문항 생성 스트림 실패 file=%s", document.filename)
                raise

        return StreamingResponse(body(), media_type="text/plain; charset=utf-8")

    @app.post(
        "/quiz/generate/batch",
        response_model=GenerateBatchResponse,
        summary="문항 생성 (완료 후 JSON)",
    )
    async def quiz_generate_batch(files: list[UploadFile] = File(...)) -> GenerateBatchResponse:
        try:
            document = await read_documents(files)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        try:
            questions = await generator_module.question_generator_service.generate(document)
        except GenerationValidationError as e:
            logger.warning("문항 검증 실패 file=%s\n%s", document.filename, e)
            raise HTTPException(status_code=502, detail=f"모델 출력 검증 실패: {e}")
        except Exception as e:
            logger.exception("문항 생성 실패")
            raise HTTPException(status_code=500, detail=str(e))
        return GenerateBatchResponse(filename=document.filename, questions=questions)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("pdfquiz.api.main:app", host="0.0.0.0", port=8000)
