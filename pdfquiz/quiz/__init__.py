from pdfquiz.quiz.session import QuizSession
from pdfquiz.quiz.view import QuestionScreen, QuizView, ResultsScreen, project

__all__ = [
    "QuizSession",
    "QuestionScreen",
    "QuizView",
    "ResultsScreen",
    "project",
]
