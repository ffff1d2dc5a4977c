"""
퀴즈 진행 상태 머신 (문서 1개 = 세션 1개).

상태: InProgress(index, answered) / Complete.
- select_answer: InProgress(i, False) -> InProgress(i, True)
- advance:       InProgress(i, True)  -> InProgress(i + 1, False)
- request_results: InProgress(*, *)   -> Complete
- reset:         Complete (또는 진행 중) -> InProgress(0, False)

남은 문항이 prefetch_threshold 이하가 되면 다음 배치를 백그라운드로 한 번만 요청한다.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from pdfquiz.core.exceptions import QuizStateError
from pdfquiz.schema.models import LABELS, Label, Question, QuizResults, ReviewRow

logger = logging.getLogger(__name__)

CORRECT_FEEDBACK = "Correct! 🎉"

MoreQuestionsFn = Callable[[], Awaitable[list[Question]]]


class QuizSession:
    """한 사용자의 한 문서 퀴즈 진행 상태. 표시 계층 인스턴스 하나가 독점한다."""

    def __init__(
        self,
        questions: list[Question],
        request_more_questions: MoreQuestionsFn,
        clear_document: Callable[[], None] | None = None,
        *,
        title: str = "Quiz",
        prefetch_threshold: int = 2,
    ) -> None:
        if not questions:
            raise ValueError("초기 문항이 비어 있습니다.")
        self.title = title
        self.prefetch_threshold = prefetch_threshold
        self._initial_questions = list(questions)
        self._request_more_questions = request_more_questions
        self._clear_document = clear_document
        # reset 이후 도착한 이전 요청 결과를 버리기 위한 세대 번호
        self._epoch = 0
        self.is_fetching_more = False
        self._restore()

    def _restore(self) -> None:
        self.questions: list[Question] = list(self._initial_questions)
        self.current_index = 0
        self.answers: dict[int, Label] = {}
        self.score = 0
        self.is_complete = False
        self.feedback_message = ""
        self.show_explanation = False

    # ----- 조회 -----

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def current_answer(self) -> Label | None:
        return self.answers.get(self.current_index)

    @property
    def has_answered(self) -> bool:
        return self.current_index in self.answers

    @property
    def has_next(self) -> bool:
        return self.current_index + 1 < len(self.questions)

    @property
    def progress(self) -> float:
        """0.0 ~ 1.0. 현재 위치 / 지금까지 알려진 전체 문항 수."""
        return self.current_index / len(self.questions)

    # ----- 사용자 동작 -----

    def select_answer(self, label: str) -> None:
        if label not in LABELS:
            raise ValueError(f"알 수 없는 라벨: {label!r} (A, B, C, D 중 하나)")
        if self.is_complete:
            raise QuizStateError("이미 결과 화면입니다. reset 후 다시 시도하세요.")
        if self.has_answered:
            return

        question = self.current_question
        self.answers[self.current_index] = label  # type: ignore[assignment]
        if question.is_correct(label):
            self.score += 1
            self.feedback_message = CORRECT_FEEDBACK
        else:
            self.feedback_message = f"Incorrect. The correct answer was {question.answer}"
        logger.debug(
            "응답 기록 index=%d 선택=%s 정답=%s score=%d",
            self.current_index,
            label,
            question.answer,
            self.score,
        )

    def advance(self) -> None:
        if self.is_complete:
            raise QuizStateError("이미 결과 화면입니다.")
        if not self.has_answered:
            raise QuizStateError("현재 문항에 답하기 전에는 다음으로 넘어갈 수 없습니다.")
        if not self.has_next:
            if self.is_fetching_more:
                raise QuizStateError("다음 문항을 불러오는 중입니다.")
            raise QuizStateError("더 이상 문항이 없습니다. request_results로 종료하세요.")
        self.current_index += 1
        self.feedback_message = ""
        self.show_explanation = False

    next_question = advance

    def reveal_explanation(self) -> None:
        if self.is_complete or not self.has_answered:
            raise QuizStateError("해설은 답을 고른 뒤에만 볼 수 있습니다.")
        self.show_explanation = True

    def request_results(self) -> QuizResults:
        self.is_complete = True
        results = self.results()
        logger.info("퀴즈 종료 score=%d/%d", results.score, results.total)
        return results

    def results(self) -> QuizResults:
        """응답이 기록된 문항만 리뷰/점수에 포함. 뒤쪽 미응답 문항은 제외."""
        rows = [
            ReviewRow(
                index=idx,
                question=self.questions[idx],
                selected=label,
                is_correct=self.questions[idx].is_correct(label),
            )
            for idx, label in sorted(self.answers.items())
        ]
        total = len(rows)
        percentage = round(self.score / total * 100, 1) if total else 0.0
        return QuizResults(score=self.score, total=total, percentage=percentage, rows=rows)

    def reset(self) -> None:
        self._epoch += 1
        self._restore()
        logger.info("퀴즈 초기화 (초기 배치 %d문항)", len(self.questions))

    def clear_document(self) -> None:
        if self._clear_document is not None:
            self._clear_document()

    # ----- 추가 문항 -----

    def should_fetch_more(self) -> bool:
        return (
            self.current_index >= len(self.questions) - self.prefetch_threshold
            and not self.is_fetching_more
            and not self.is_complete
        )

    async def maybe_fetch_more(self) -> bool:
        """
        끝에서 prefetch_threshold 이내면 다음 배치를 요청해 뒤에 붙인다.
        동시에 하나만 진행되며, 실패해도 상태는 그대로 두고 재시도하지 않는다.
        반환: 이번 호출에서 요청을 시작했는지 여부.
        """
        if not self.should_fetch_more():
            return False

        self.is_fetching_more = True
        epoch = self._epoch
        logger.info("추가 문항 요청 index=%d 보유 문항=%d", self.current_index, len(self.questions))
        try:
            new_questions = await self._request_more_questions()
        except Exception:
            logger.exception("추가 문항 불러오기 실패 (기존 문항으로 계속 진행)")
        else:
            if epoch != self._epoch:
                logger.info("reset 이후 도착한 추가 문항 %d개는 버림", len(new_questions))
            else:
                self.questions.extend(new_questions)
                logger.info("추가 문항 %d개 붙임 (총 %d)", len(new_questions), len(self.questions))
        finally:
            self.is_fetching_more = False
        return True
