from datetime import date, datetime, timezone

import pytest

from school_erp.utils.radio_schedule import (
    build_playback_plan,
    current_offset,
    effective_duration,
    estimate_duration,
    format_timestamp,
    is_live,
    parse_timestamp,
    programs_for_date,
    select_current_program,
    select_live_programs,
)


def at(hour, minute, second=0):
    return datetime(2024, 1, 1, hour, minute, second, tzinfo=timezone.utc)


MORNING = {"id": "p1", "scheduledFor": "2024-01-01T08:00:00Z", "durationSeconds": 300}


def test_program_two_minutes_in_is_live_with_offset_120():
    now = at(8, 2)
    assert is_live(MORNING, now)
    assert current_offset(MORNING, now) == 120

    live = select_live_programs([MORNING], now)
    assert len(live) == 1
    assert live[0]["currentOffset"] == 120
    assert live[0]["id"] == "p1"


def test_live_window_is_half_open():
    assert is_live(MORNING, at(8, 0))
    assert is_live(MORNING, at(8, 4, 59))
    assert not is_live(MORNING, at(8, 5))
    assert not is_live(MORNING, at(7, 59, 59))


def test_offset_keeps_fractions_of_a_second():
    now = datetime(2024, 1, 1, 8, 2, 0, 700000, tzinfo=timezone.utc)
    assert current_offset(MORNING, now) == pytest.approx(120.7)
    assert select_live_programs([MORNING], now)[0]["currentOffset"] == pytest.approx(120.7)

    plan = build_playback_plan({"content": "word " * 400}, current_offset(MORNING, now), chunk_size=40)
    assert (plan["startChunk"], plan["startWordInChunk"]) == (7, 21)


def test_offset_is_clamped_to_duration():
    assert current_offset(MORNING, at(7, 0)) == 0
    assert current_offset(MORNING, at(9, 0)) == 300


@pytest.mark.parametrize("raw", [None, 0, -5, "abc", True])
def test_missing_or_invalid_duration_defaults_to_300(raw):
    program = {"scheduledFor": "2024-01-01T08:00:00Z", "durationSeconds": raw}
    assert effective_duration(program) == 300
    assert is_live(program, at(8, 4))
    assert not is_live(program, at(8, 5))


def test_unparseable_start_is_never_live():
    program = {"scheduledFor": "next tuesday", "durationSeconds": 300}
    assert not is_live(program, at(8, 0))
    assert select_current_program([program], at(8, 0)) is None


def test_latest_start_wins_when_programs_overlap():
    earlier = {"id": "long", "scheduledFor": "2024-01-01T07:30:00Z", "durationSeconds": 3600}
    later = {"id": "short", "scheduledFor": "2024-01-01T08:00:00Z", "durationSeconds": 600}
    live = select_live_programs([earlier, later], at(8, 1))
    assert [p["id"] for p in live] == ["short", "long"]
    assert select_current_program([earlier, later], at(8, 1))["id"] == "short"


def test_nothing_on_air():
    assert select_live_programs([MORNING], at(12, 0)) == []
    assert select_current_program([], at(12, 0)) is None


def test_timestamps_round_trip_in_utc():
    parsed = parse_timestamp("2024-01-01T13:30:00+05:30")
    assert parsed == at(8, 0)
    assert format_timestamp(parsed) == "2024-01-01T08:00:00Z"
    assert parse_timestamp("2024-01-01T08:00:00") == at(8, 0)
    assert parse_timestamp("") is None


def test_programs_for_date_filters_and_orders():
    programs = [
        {"id": "b", "scheduledFor": "2024-01-01T10:00:00Z"},
        {"id": "a", "scheduledFor": "2024-01-01T08:00:00Z"},
        {"id": "c", "scheduledFor": "2024-01-02T08:00:00Z"},
        {"id": "bad", "scheduledFor": None},
    ]
    assert [p["id"] for p in programs_for_date(programs, date(2024, 1, 1))] == ["a", "b"]
    assert [p["id"] for p in programs_for_date(programs)] == ["a", "b", "c"]


def test_duration_estimate_from_pdf_text():
    text = " ".join(["word"] * 100)
    assert estimate_duration(None, text, estimate_from_text=True) == 40
    assert estimate_duration(None, "a few words", estimate_from_text=True) == 10
    assert estimate_duration("90", text, estimate_from_text=True) == 90
    assert estimate_duration(None, text, estimate_from_text=False) == 300


@pytest.mark.parametrize("bad", ["0", "-1", "ten", 0])
def test_duration_must_be_positive(bad):
    with pytest.raises(ValueError):
        estimate_duration(bad)


def test_audio_playback_seeks_to_offset():
    program = {"fileType": "AUDIO", "fileUrl": "/uploads/anthem.mp3"}
    assert build_playback_plan(program, 120) == {
        "mode": "audio",
        "fileUrl": "/uploads/anthem.mp3",
        "seekSeconds": 120,
    }


def test_speech_playback_resumes_mid_chunk():
    program = {"fileType": "TEXT", "content": " ".join(f"w{i}" for i in range(100))}
    plan = build_playback_plan(program, 20, words_per_second=2.5, chunk_size=40)
    # 20 s at 2.5 words/s is word 50: chunk 1, word 10
    assert plan["mode"] == "speech"
    assert len(plan["chunks"]) == 3
    assert plan["chunks"][0].split()[0] == "w0"
    assert plan["startChunk"] == 1
    assert plan["startWordInChunk"] == 10
    assert plan["wordsPerSecond"] == 2.5


def test_speech_playback_past_the_end_has_nothing_left():
    program = {"fileType": "PDF", "content": "short text only"}
    plan = build_playback_plan(program, 60)
    assert plan["startChunk"] == len(plan["chunks"]) == 1
    assert plan["startWordInChunk"] == 0
