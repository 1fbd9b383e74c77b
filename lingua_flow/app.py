"""FastAPI application with all routes."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse

from lingua_flow.audio import audio_path, get_or_create_audio, sentence_hash
from lingua_flow.config import Settings, load_settings, save_settings
from lingua_flow.models import DifficultyLevel, Direction, QuizMode, VocabularyEntry
from lingua_flow.quiz import QuizSession
from lingua_flow.study import CardDeck
from lingua_flow.vocabulary import ProviderFailure, fetch_vocabulary

SUGGESTED_TOPICS = [
    "Travel & Airports", "Job Interview", "Restaurant & Food",
    "Tech & Startups", "Daily Routine", "Shopping",
]

_log = logging.getLogger("lingua_flow.app")
_bg_log = logging.getLogger("lingua_flow.bg")

# Global state (initialized in lifespan)
_settings: Settings | None = None
_vocabulary: list[VocabularyEntry] = []
_deck: CardDeck | None = None
_quiz: QuizSession | None = None
_generating = False

# Delayed choice-mode advances
_bg_tasks: set[asyncio.Task] = set()


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _settings
    if _settings is None:
        _settings = load_settings()
    yield
    _cancel_bg_tasks()


app = FastAPI(title="LinguaFlow", lifespan=lifespan)


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def make_llm(s: Settings):
    if s.llm_provider == "gemini":
        from lingua_flow.providers.llm_gemini import GeminiProvider
        return GeminiProvider(model=s.llm_model)
    elif s.llm_provider == "ollama":
        from lingua_flow.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    elif s.llm_provider == "anthropic":
        from lingua_flow.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=s.llm_model)
    elif s.llm_provider == "openai":
        from lingua_flow.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=s.llm_model)
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def make_tts(s: Settings):
    if s.tts_provider == "edge-tts":
        from lingua_flow.providers.tts_edge import EdgeTTSProvider
        return EdgeTTSProvider(voices=s.tts_voices)
    elif s.tts_provider == "elevenlabs":
        from lingua_flow.providers.tts_elevenlabs import ElevenLabsProvider
        return ElevenLabsProvider(voice_id=s.elevenlabs_voice_id, model_id=s.elevenlabs_model)
    raise ValueError(f"Unknown TTS provider: {s.tts_provider}")


def _get_llm():
    return make_llm(get_settings())


def _get_tts():
    return make_tts(get_settings())


def _track(task: asyncio.Task) -> None:
    _bg_tasks.add(task)
    task.add_done_callback(_bg_tasks.discard)


def _cancel_bg_tasks() -> None:
    pending = [t for t in _bg_tasks if not t.done()]
    for t in pending:
        t.cancel()
    if pending:
        _bg_log.info("Cancelled %d pending advance(s)", len(pending))
    _bg_tasks.clear()


def _install_vocabulary(entries: list[VocabularyEntry]) -> None:
    global _vocabulary, _deck, _quiz
    _cancel_bg_tasks()
    _vocabulary = list(entries)
    _deck = CardDeck(_vocabulary)
    _quiz = None


def _require_deck() -> CardDeck:
    if _deck is None:
        raise HTTPException(404, "No vocabulary generated yet")
    return _deck


def _require_quiz() -> QuizSession:
    if _quiz is None:
        raise HTTPException(404, "No quiz in progress")
    return _quiz


async def _json_body(request: Request) -> dict:
    return await request.json() if await request.body() else {}


def _speech_language() -> str:
    """Language tag of the side the current quiz shows; English otherwise."""
    direction = _quiz.direction if _quiz is not None else Direction.SOURCE_TO_TARGET
    return direction.prompt_language


# ── API: Topics ───────────────────────────────────────────────────────────

@app.get("/api/topics")
async def api_topics():
    return {
        "suggested": SUGGESTED_TOPICS,
        "levels": [{"value": lv.value, "label": lv.label} for lv in DifficultyLevel],
        "default_level": get_settings().default_level,
    }


# ── API: Generate vocabulary ──────────────────────────────────────────────

@app.post("/api/generate")
async def api_generate(request: Request):
    global _generating
    body = await _json_body(request)
    s = get_settings()

    topic = str(body.get("topic", "")).strip()
    if not topic:
        raise HTTPException(400, "No topic provided")
    try:
        level = DifficultyLevel(body.get("level", s.default_level))
    except ValueError:
        raise HTTPException(400, f"Unknown level: {body.get('level')!r}")

    if _generating:
        raise HTTPException(409, "Vocabulary generation already in progress")

    _generating = True
    try:
        entries = await fetch_vocabulary(
            _get_llm(), topic, level,
            count=s.vocabulary_size,
            temperature=s.llm_temperature,
        )
    except ProviderFailure as e:
        _log.warning("Generation for %r failed: %s", topic, e.reason)
        raise HTTPException(502, e.message)
    finally:
        _generating = False

    _install_vocabulary(entries)
    return {
        "topic": topic,
        "level": level.value,
        "entries": [e.to_dict() for e in entries],
    }


@app.get("/api/vocabulary")
async def api_vocabulary():
    return {"entries": [e.to_dict() for e in _vocabulary]}


# ── API: Study cards ──────────────────────────────────────────────────────

@app.get("/api/cards")
async def api_cards():
    return _require_deck().to_dict()


@app.post("/api/cards/next")
async def api_cards_next():
    deck = _require_deck()
    deck.next()
    return deck.to_dict()


@app.post("/api/cards/previous")
async def api_cards_previous():
    deck = _require_deck()
    deck.previous()
    return deck.to_dict()


@app.post("/api/cards/flip")
async def api_cards_flip():
    deck = _require_deck()
    deck.flip()
    return deck.to_dict()


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.post("/api/quiz/start")
async def api_quiz_start(request: Request):
    global _quiz
    body = await _json_body(request)
    if not _vocabulary:
        raise HTTPException(400, "No vocabulary generated yet")
    try:
        mode = QuizMode(body.get("mode", QuizMode.CHOICE.value))
        direction = Direction(body.get("direction", Direction.SOURCE_TO_TARGET.value))
    except ValueError as e:
        raise HTTPException(400, str(e))

    _cancel_bg_tasks()
    _quiz = QuizSession(_vocabulary, mode, direction)
    _quiz.start()
    return _quiz.snapshot().to_dict()


@app.get("/api/quiz")
async def api_quiz_state():
    return _require_quiz().snapshot().to_dict()


@app.post("/api/quiz/choice")
async def api_quiz_choice(request: Request):
    body = await _json_body(request)
    option = body.get("option")
    if not isinstance(option, str):
        raise HTTPException(400, "No option provided")

    quiz = _require_quiz()
    if not quiz.submit_choice(option):
        raise HTTPException(409, "Answer not accepted")

    token = quiz.token
    _track(quiz.schedule_advance(get_settings().choice_reveal_seconds))
    return {
        "correct": quiz.last_correct,
        "expected": quiz.question.expected,
        "advance_token": token,
        "state": quiz.snapshot().to_dict(),
    }


@app.post("/api/quiz/check")
async def api_quiz_check(request: Request):
    body = await _json_body(request)
    answer = body.get("answer")
    if not isinstance(answer, str) or not answer.strip():
        raise HTTPException(400, "Answer is empty")

    quiz = _require_quiz()
    if not quiz.check_text(answer):
        raise HTTPException(409, "Answer not accepted")
    return {
        "correct": quiz.last_correct,
        "expected": quiz.question.expected,
        "state": quiz.snapshot().to_dict(),
    }


@app.post("/api/quiz/advance")
async def api_quiz_advance(request: Request):
    body = await _json_body(request)
    quiz = _require_quiz()
    token = body.get("token")
    if token is not None:
        if not isinstance(token, int):
            raise HTTPException(400, "Token must be an integer")
        accepted = quiz.advance_choice(token)
    else:
        accepted = quiz.advance_text()
    if not accepted:
        raise HTTPException(409, "Cannot advance")
    return quiz.snapshot().to_dict()


@app.post("/api/quiz/restart")
async def api_quiz_restart():
    quiz = _require_quiz()
    _cancel_bg_tasks()
    if not quiz.restart():
        raise HTTPException(409, "Quiz not started")
    return quiz.snapshot().to_dict()


# ── API: Audio ────────────────────────────────────────────────────────────

@app.post("/api/tts")
async def api_tts(request: Request):
    """Generate pronunciation audio. Returns audio hash."""
    body = await _json_body(request)
    text = str(body.get("text", "")).strip()
    language = body.get("language") or _speech_language()
    if not text:
        raise HTTPException(400, "No text provided")

    s = get_settings()
    try:
        tts = _get_tts()
    except ValueError as e:
        raise HTTPException(500, f"TTS error: {e}")
    path = await get_or_create_audio(text, tts, s.audio_cache_full_path, language)
    if path is None:
        raise HTTPException(500, "TTS generation failed")
    return {"audio_hash": sentence_hash(text, language)}


@app.get("/api/audio/{audio_hash}.mp3")
async def api_audio(audio_hash: str):
    path = audio_path(get_settings().audio_cache_full_path, audio_hash)
    if not path.exists():
        raise HTTPException(404, "Audio not found")
    return FileResponse(path, media_type="audio/mpeg")


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
