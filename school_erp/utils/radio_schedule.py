"""Time arithmetic for school radio programs.

A program is a plain dict as stored in the radio JSON file::

    {"id", "title", "scheduledFor", "durationSeconds", "content" | "fileUrl", "fileType"}

Everything here is pure: callers pass ``now`` explicitly.
"""
import math
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

DEFAULT_DURATION_SECONDS = 300
WORDS_PER_SECOND = 2.5
MIN_ESTIMATED_DURATION = 10


def parse_timestamp(value) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def effective_duration(program: dict, default: int = DEFAULT_DURATION_SECONDS) -> int:
    """Stored duration when it is a positive number, otherwise the default."""
    raw = program.get("durationSeconds")
    if isinstance(raw, bool):
        return default
    try:
        duration = int(raw)
    except (TypeError, ValueError):
        return default
    return duration if duration > 0 else default


def is_live(program: dict, now: datetime, default: int = DEFAULT_DURATION_SECONDS) -> bool:
    start = parse_timestamp(program.get("scheduledFor"))
    if start is None:
        return False
    end = start + timedelta(seconds=effective_duration(program, default))
    return start <= now < end


def current_offset(program: dict, now: datetime, default: int = DEFAULT_DURATION_SECONDS) -> float:
    """Seconds elapsed since the start (fractional), clamped to [0, duration]."""
    start = parse_timestamp(program.get("scheduledFor"))
    if start is None:
        return 0.0
    duration = effective_duration(program, default)
    elapsed = (now - start).total_seconds()
    return min(max(elapsed, 0.0), float(duration))


def select_live_programs(
    programs: Iterable[dict],
    now: datetime,
    default: int = DEFAULT_DURATION_SECONDS,
) -> List[dict]:
    """Programs on air at ``now``, latest start first, each with ``currentOffset``."""
    live = [
        {**program, "currentOffset": current_offset(program, now, default)}
        for program in programs
        if is_live(program, now, default)
    ]
    live.sort(key=lambda p: parse_timestamp(p["scheduledFor"]), reverse=True)
    return live


def select_current_program(
    programs: Iterable[dict],
    now: datetime,
    default: int = DEFAULT_DURATION_SECONDS,
) -> Optional[dict]:
    live = select_live_programs(programs, now, default)
    return live[0] if live else None


def programs_for_date(programs: Iterable[dict], day: Optional[date] = None) -> List[dict]:
    """Programs starting on ``day`` (UTC), or every program when no day is given, in start order."""
    selected = []
    for program in programs:
        start = parse_timestamp(program.get("scheduledFor"))
        if start is None:
            continue
        if day is None or start.date() == day:
            selected.append(program)
    selected.sort(key=lambda p: parse_timestamp(p["scheduledFor"]))
    return selected


def estimate_duration(
    provided,
    text: Optional[str] = None,
    estimate_from_text: bool = False,
    default: int = DEFAULT_DURATION_SECONDS,
    words_per_second: float = WORDS_PER_SECOND,
) -> int:
    """Explicit positive duration wins; extracted PDF text is timed at reading speed."""
    if provided not in (None, ""):
        try:
            value = int(provided)
        except (TypeError, ValueError):
            raise ValueError("durationSeconds must be a positive integer")
        if value <= 0:
            raise ValueError("durationSeconds must be a positive integer")
        return value
    if estimate_from_text and text:
        words = len(text.split())
        return max(MIN_ESTIMATED_DURATION, math.ceil(words / words_per_second))
    return default


def chunk_words(text: str, chunk_size: int) -> List[List[str]]:
    words = (text or "").split()
    return [words[i:i + chunk_size] for i in range(0, len(words), chunk_size)]


def build_playback_plan(
    program: dict,
    offset: float,
    words_per_second: float = WORDS_PER_SECOND,
    chunk_size: int = 40,
) -> dict:
    """How a client should join a program ``offset`` seconds in.

    Audio is seeked directly. Text is read aloud in word chunks; the client
    starts at the chunk and word reached after ``offset`` seconds of reading.
    """
    if program.get("fileType") == "AUDIO":
        return {
            "mode": "audio",
            "fileUrl": program.get("fileUrl"),
            "seekSeconds": offset,
        }

    chunks = chunk_words(program.get("content") or "", chunk_size)
    total_words = sum(len(c) for c in chunks)
    start_word = int(math.floor(max(offset, 0) * words_per_second))
    if start_word >= total_words:
        start_chunk, start_word_in_chunk = len(chunks), 0
    else:
        start_chunk, start_word_in_chunk = divmod(start_word, chunk_size)
    return {
        "mode": "speech",
        "chunks": [" ".join(c) for c in chunks],
        "startChunk": start_chunk,
        "startWordInChunk": start_word_in_chunk,
        "wordsPerSecond": words_per_second,
    }
