from pdfquiz.schema.models import (
    BATCH_SIZE,
    LABELS,
    Document,
    Label,
    Question,
    QuestionBatch,
    QuizResults,
    ReviewRow,
)

__all__ = [
    "BATCH_SIZE",
    "LABELS",
    "Document",
    "Label",
    "Question",
    "QuestionBatch",
    "QuizResults",
    "ReviewRow",
]
