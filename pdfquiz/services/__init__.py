from pdfquiz.services.question_generator import question_generator_service

__all__ = [
    "question_generator_service",
]
