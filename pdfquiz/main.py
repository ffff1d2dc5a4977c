"""
PDF 퀴즈 CLI.

사용 예:
  python -m pdfquiz.main lecture.pdf
  python -m pdfquiz.main lecture.pdf --title "OS 3장" -v
  python -m pdfquiz.main lecture.pdf --json-only --pretty   # 문항 4개만 생성해서 JSON 출력
로그는 stderr, JSON 결과는 stdout으로 출력된다.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import json
import logging
import sys
from pathlib import Path

from openai import APIError

from pdfquiz.core.config import settings
from pdfquiz.core.exceptions import GenerationValidationError, QuizStateError
from pdfquiz.quiz.session import QuizSession
from pdfquiz.quiz.view import QuestionScreen, QuizView, ResultsScreen, project
from pdfquiz.schema.models import BATCH_SIZE, LABELS, Document, Question, QuestionBatch
from pdfquiz.services.question_generator import question_generator_service

logger = logging.getLogger(__name__)

OPTION_MARKS = {"idle": " ", "selected": "*", "correct": "✓", "incorrect": "✗"}


def progress_bar(percent: float, width: int = 30) -> str:
    filled = int(round(width * percent / 100))
    return "[" + "#" * filled + "-" * (width - filled) + f"] {percent:.0f}%"


def render_question(screen: QuestionScreen) -> str:
    lines = [
        f"== {screen.title} ==",
        progress_bar(screen.progress_percent),
        "",
        screen.prompt,
        "",
    ]
    for opt in screen.options:
        lines.append(f" {OPTION_MARKS[opt.state]} {opt.label}. {opt.text}")
    if screen.feedback:
        lines += ["", screen.feedback]
    if screen.explanation:
        panel = screen.explanation
        lines += [
            "",
            "Explanation:",
            panel.explanation,
            f"Your answer: Option {panel.your_label} - {panel.your_option}",
            f"Correct answer: Option {panel.correct_label} - {panel.correct_option}",
        ]
    lines.append("")
    actions = []
    if screen.is_correct is None:
        actions.append("A-D select")
    if screen.can_explain:
        actions.append("e Explain This Concept")
    if screen.can_advance:
        actions.append("n Next Question")
    actions += ["r Show Results", "q Quit"]
    status = f"Question {screen.number}"
    if screen.is_loading_more:
        status += " (loading more questions...)"
    lines.append(f"{status}  |  " + "  ".join(actions))
    return "\n".join(lines)


def render_results(screen: ResultsScreen) -> str:
    lines = [
        f"== {screen.title} ==",
        f"Score: {screen.score}/{screen.total} ({screen.percentage:.0f}%)",
        screen.message,
        "",
    ]
    for row in screen.rows:
        mark = "✓" if row.is_correct else "✗"
        lines.append(f"{mark} {row.index + 1}. {row.question.question}")
        lines.append(f"    your answer: {row.selected} - {row.question.option_for(row.selected)}")
        if not row.is_correct:
            lines.append(
                f"    correct answer: {row.question.answer} - {row.question.option_for(row.question.answer)}"
            )
    lines += ["", "c Continue Quiz  |  p Try Another PDF  |  q Quit"]
    return "\n".join(lines)


def render(view: QuizView) -> str:
    if isinstance(view, ResultsScreen):
        return render_results(view)
    return render_question(view)


async def read_line(prompt: str) -> str:
    # input()은 블로킹이라 별도 스레드에서 읽어야 백그라운드 문항 요청이 계속 진행된다
    return (await asyncio.to_thread(input, prompt)).strip()


def handle_intent(session: QuizSession, raw: str) -> str | None:
    """입력 한 줄을 세션 동작으로 변환. 루프를 벗어나야 하면 'quit' 또는 'new'를 반환."""
    cmd = raw.upper()
    if session.is_complete:
        if cmd == "C":
            session.reset()
        elif cmd == "P":
            session.clear_document()
            return "new"
        elif cmd == "Q":
            return "quit"
        return None

    if cmd in LABELS:
        session.select_answer(cmd)
    elif cmd == "N":
        session.advance()
    elif cmd == "E":
        session.reveal_explanation()
    elif cmd == "R":
        session.request_results()
    elif cmd == "Q":
        return "quit"
    return None


async def play(session: QuizSession) -> str:
    """한 세션을 진행. 'quit' 또는 'new'(다른 PDF)를 반환."""
    background: set[asyncio.Task] = set()
    # 위치나 문항 수가 바뀔 때만 검사 (실패한 요청을 입력마다 다시 보내지 않음)
    checked: tuple[int, int] | None = None
    while True:
        key = (session.current_index, len(session.questions))
        if key != checked:
            checked = key
            if session.should_fetch_more():
                task = asyncio.create_task(session.maybe_fetch_more())
                background.add(task)
                task.add_done_callback(background.discard)
                # 요청을 먼저 시작시켜 이번 화면에 로딩 표시가 나오게 한다
                await asyncio.sleep(0)

        print("\n" + render(project(session)))
        try:
            raw = await read_line("> ")
        except EOFError:
            return "quit"
        try:
            outcome = handle_intent(session, raw)
        except (QuizStateError, ValueError) as exc:
            print(f"! {exc}")
            continue
        if outcome:
            return outcome


async def generate_initial(document: Document) -> list[Question]:
    def on_partial(partial: list[dict]) -> None:
        print(f"\r문항 생성 중... {len(partial)}/{BATCH_SIZE}", end="", file=sys.stderr, flush=True)

    questions = await question_generator_service.generate(document, on_partial=on_partial)
    print(file=sys.stderr)
    return questions


async def interactive(path: Path, title: str) -> None:
    next_path: Path | None = path
    while next_path is not None:
        document = Document.from_path(next_path)
        questions = await generate_initial(document)
        cleared: list[str] = []

        def clear_document(filename: str = document.filename) -> None:
            logger.info("문서 해제 file=%s", filename)
            cleared.append(filename)

        session = QuizSession(
            questions,
            functools.partial(question_generator_service.generate, document),
            clear_document,
            title=title or document.filename,
            prefetch_threshold=settings.PREFETCH_THRESHOLD,
        )
        await play(session)
        if not cleared:
            return
        raw = await read_line("다른 PDF 경로 (빈 값이면 종료): ")
        next_path = Path(raw).expanduser() if raw else None


async def generate_json(path: Path, pretty: bool) -> None:
    document = Document.from_path(path)
    questions = await question_generator_service.generate(document)
    output = json.dumps(
        QuestionBatch(questions=questions).model_dump(),
        ensure_ascii=False,
        indent=2 if pretty else None,
    )
    print(output)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PDF로 객관식 퀴즈를 만들어 풀어봅니다.")
    parser.add_argument("pdf", help="PDF 파일 경로")
    parser.add_argument("--title", default="", help="퀴즈 제목 (기본: 파일 이름)")
    parser.add_argument("--json-only", action="store_true", help="문항 4개만 생성해 JSON으로 출력")
    parser.add_argument("--pretty", action="store_true", help="JSON 예쁘게 출력")
    parser.add_argument("-v", "--verbose", action="store_true", help="INFO 로그 출력")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose or args.json_only else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    path = Path(args.pdf).expanduser()
    try:
        if args.json_only:
            asyncio.run(generate_json(path, args.pretty))
        else:
            asyncio.run(interactive(path, args.title))
    except OSError as exc:
        print(f"입력 처리 실패: {exc}", file=sys.stderr)
        sys.exit(1)
    except GenerationValidationError as exc:
        logger.error("문항 검증 실패:\n%s", exc)
        print("퀴즈를 만들지 못했습니다. 모델 출력이 형식에 맞지 않습니다.", file=sys.stderr)
        sys.exit(1)
    except APIError as exc:
        logger.exception("LLM API 호출 실패")
        print(f"퀴즈를 만들지 못했습니다: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print(file=sys.stderr)


if __name__ == "__main__":
    main()
