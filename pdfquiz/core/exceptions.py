"""
도메인 예외.
"""


class GenerationValidationError(ValueError):
    """모델 출력이 문항 배치 스키마(4문항, 보기 4개, 정답 A~D)를 만족하지 않음."""


class QuizStateError(ValueError):
    """현재 퀴즈 상태에서 허용되지 않는 동작."""
