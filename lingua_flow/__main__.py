"""CLI entry point for lingua-flow.

Usage:
  python -m lingua_flow serve [--port PORT] [--host HOST]
  python -m lingua_flow generate TOPIC [--level LEVEL]
  python -m lingua_flow quiz TOPIC [--mode choice|text] [--direction en-ru|ru-en] [--level LEVEL]
"""
from __future__ import annotations

import asyncio
import sys

FLAGS_WITH_VALUES = {"--port", "--host", "--level", "--mode", "--direction"}


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "generate":
        _generate(args[1:])
    elif command == "quiz":
        _quiz(args[1:])
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, generate, quiz")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _positional(args: list[str]) -> list[str]:
    """Arguments that are neither flags nor flag values."""
    result = []
    skip = False
    for a in args:
        if skip:
            skip = False
            continue
        if a in FLAGS_WITH_VALUES:
            skip = True
            continue
        result.append(a)
    return result


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")

    print(f"Starting LinguaFlow on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "lingua_flow.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _fetch(args: list[str]):
    """Fetch a vocabulary set for the topic in *args*; exits on failure."""
    from lingua_flow.app import make_llm
    from lingua_flow.config import load_settings
    from lingua_flow.models import DifficultyLevel
    from lingua_flow.vocabulary import ProviderFailure, fetch_vocabulary

    topic = " ".join(_positional(args)).strip()
    if not topic:
        print("No topic given.")
        sys.exit(1)

    settings = load_settings()
    try:
        level = DifficultyLevel(_parse_flag(args, "--level", settings.default_level))
        llm = make_llm(settings)
    except ValueError as e:
        print(e)
        sys.exit(1)

    print(f"Generating vocabulary for '{topic}' ({level.label}) using {llm.name()}...")
    try:
        return asyncio.run(fetch_vocabulary(
            llm, topic, level,
            count=settings.vocabulary_size,
            temperature=settings.llm_temperature,
        ))
    except ProviderFailure as e:
        print(e.message)
        sys.exit(1)


def _generate(args: list[str]):
    entries = _fetch(args)
    print()
    for i, e in enumerate(entries, 1):
        print(f"{i:2d}. {e.headword} /{e.phonetic_transcription}/  {e.translation}")
        print(f"    {e.definition}")
        print(f"    e.g. {e.example_sentence}")


def _quiz(args: list[str]):
    from lingua_flow.models import Direction, QuizMode
    from lingua_flow.quiz import QuizSession

    try:
        mode = QuizMode(_parse_flag(args, "--mode", "choice"))
        direction = Direction(_parse_flag(args, "--direction", "en-ru"))
    except ValueError as e:
        print(e)
        sys.exit(1)

    entries = _fetch(args)
    session = QuizSession(entries, mode, direction)
    session.start()
    run_terminal_quiz(session, input_fn=input)


def run_terminal_quiz(session, input_fn=input, output_fn=print) -> None:
    """Play *session* to the end on the terminal."""
    from lingua_flow.models import QuizMode

    while not session.is_finished:
        q = session.question
        output_fn(f"\n[{session.position + 1}/{len(session.entries)}] {q.prompt}")

        if session.mode is QuizMode.CHOICE:
            for i, option in enumerate(q.options, 1):
                output_fn(f"  {i}) {option}")
            while session.submitted is None:
                raw = input_fn("> ").strip()
                if raw.isdigit() and 1 <= int(raw) <= len(q.options):
                    session.submit_choice(q.options[int(raw) - 1])
        else:
            while not session.is_checked:
                session.check_text(input_fn("> "))

        if session.last_correct:
            output_fn("Correct!")
        else:
            output_fn(f"Wrong. Correct answer: {q.expected}")

        if session.mode is QuizMode.CHOICE:
            session.advance_choice(session.token)
        else:
            session.advance_text()

    state = session.snapshot()
    output_fn(f"\nQuiz complete! {state.score} of {state.total} correct ({state.percentage}%).")


if __name__ == "__main__":
    main()
