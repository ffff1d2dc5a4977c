"""
세션 상태 → 화면 모델 투영. 부수효과 없는 순수 함수로, 상태가 바뀔 때마다 다시 호출한다.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from pdfquiz.quiz.session import QuizSession
from pdfquiz.schema.models import LABELS, Label, QuizResults, ReviewRow

OptionState = Literal["idle", "selected", "correct", "incorrect"]


class OptionView(BaseModel):
    label: Label
    text: str
    state: OptionState = "idle"


class ExplanationPanel(BaseModel):
    explanation: str
    your_label: Label
    your_option: str
    correct_label: Label
    correct_option: str


class QuestionScreen(BaseModel):
    kind: Literal["question"] = "question"
    title: str
    number: int
    prompt: str
    options: list[OptionView]
    feedback: str = ""
    is_correct: bool | None = None
    can_explain: bool = False
    explanation: ExplanationPanel | None = None
    progress_percent: float
    can_advance: bool
    is_loading_more: bool


class ResultsScreen(BaseModel):
    kind: Literal["results"] = "results"
    title: str
    score: int
    total: int
    percentage: float
    message: str
    rows: list[ReviewRow]


QuizView = QuestionScreen | ResultsScreen


def score_message(percentage: float) -> str:
    if percentage == 100:
        return "Perfect score! Congratulations!"
    if percentage >= 80:
        return "Great job! You did excellently!"
    if percentage >= 60:
        return "Good effort! You're on the right track."
    if percentage >= 40:
        return "Not bad, but there's room for improvement."
    return "Keep practicing, you'll get better!"


def _option_state(label: Label, answer: Label, selected: Label | None, revealed: bool) -> OptionState:
    if revealed:
        if label == answer:
            return "correct"
        if label == selected:
            return "incorrect"
        return "idle"
    return "selected" if label == selected else "idle"


def project_results(title: str, results: QuizResults) -> ResultsScreen:
    return ResultsScreen(
        title=title,
        score=results.score,
        total=results.total,
        percentage=results.percentage,
        message=score_message(results.percentage),
        rows=results.rows,
    )


def project(session: QuizSession) -> QuizView:
    if session.is_complete:
        return project_results(session.title, session.results())

    question = session.current_question
    selected = session.current_answer
    revealed = session.has_answered
    options = [
        OptionView(
            label=label,
            text=text,
            state=_option_state(label, question.answer, selected, revealed),
        )
        for label, text in zip(LABELS, question.options)
    ]

    is_correct = None
    explanation = None
    if selected is not None:
        is_correct = question.is_correct(selected)
        if session.show_explanation:
            explanation = ExplanationPanel(
                explanation=question.explanation,
                your_label=selected,
                your_option=question.option_for(selected),
                correct_label=question.answer,
                correct_option=question.option_for(question.answer),
            )

    return QuestionScreen(
        title=session.title,
        number=session.current_index + 1,
        prompt=question.question,
        options=options,
        feedback=session.feedback_message,
        is_correct=is_correct,
        can_explain=is_correct is False and not session.show_explanation,
        explanation=explanation,
        progress_percent=round(session.progress * 100, 1),
        can_advance=revealed and session.has_next,
        is_loading_more=session.is_fetching_more,
    )
