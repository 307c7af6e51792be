"""Unit tests for provider reply extraction and the analysis contract."""

from __future__ import annotations

import json

import pytest

from memoria.services.errors import UnparsableResponseError
from memoria.services.response_contract import (
    AnalysisResult,
    AnalysisSource,
    AnalysisTask,
    decode_json_island,
    extract_analysis,
    extract_json_island,
    fallback_analysis,
    parse_analysis,
)

TRANSCRIPT = "Necesito comprar leche. Reunión mañana a las 10."


def test_clean_json_is_returned_unchanged():
    result = extract_analysis('{"summary":"s","tasks":[],"diaryEntry":"d"}', TRANSCRIPT)

    assert result.summary == "s"
    assert result.tasks == []
    assert result.diary_entry == "d"
    assert result.source is AnalysisSource.PROVIDER


def test_prose_wrapped_json_is_extracted():
    raw = 'Here is the result: {"summary":"x","tasks":[],"diaryEntry":"y"} Hope this helps!'

    result = extract_analysis(raw, TRANSCRIPT)

    assert result.summary == "x"
    assert result.diary_entry == "y"
    assert result.source is AnalysisSource.PROVIDER


def test_markdown_fenced_json_is_extracted():
    raw = '```json\n{"summary":"fenced","tasks":[],"diaryEntry":"d"}\n```'

    assert extract_analysis(raw, TRANSCRIPT).summary == "fenced"


def test_two_separate_objects_are_not_split():
    # The island runs from the first "{" to the last "}", so two objects
    # side by side decode as invalid JSON rather than as the first object.
    raw = '{"summary":"a","tasks":[],"diaryEntry":"b"} and also {"other": 1}'

    assert extract_json_island(raw) == raw[: raw.rfind("}") + 1]
    with pytest.raises(UnparsableResponseError):
        parse_analysis(raw)

    result = extract_analysis(raw, TRANSCRIPT)
    assert result.source is AnalysisSource.FALLBACK


@pytest.mark.parametrize("raw", [None, "", "no json here", "} backwards {", "[1, 2, 3]"])
def test_unusable_replies_raise(raw):
    with pytest.raises(UnparsableResponseError):
        decode_json_island(raw)


def test_fallback_uses_transcript_prefixes():
    transcript = "a" * 500

    result = fallback_analysis(transcript)

    assert result.summary == f"Resumen: {'a' * 200}..."
    assert result.diary_entry == f"Entrada de diario: {'a' * 300}..."
    assert result.tasks == []
    assert result.speakers is None
    assert result.source is AnalysisSource.FALLBACK


def test_extract_analysis_falls_back_on_garbage():
    result = extract_analysis("lo siento, no puedo", TRANSCRIPT)

    assert result == fallback_analysis(TRANSCRIPT)


def test_missing_and_placeholder_task_ids_are_generated():
    raw = json.dumps(
        {
            "summary": "s",
            "tasks": [
                {"title": "Comprar leche"},
                {"id": "uuid", "title": "Reunión"},
                {"id": "", "title": "Llamar"},
            ],
            "diaryEntry": "d",
        }
    )

    tasks = parse_analysis(raw).tasks

    ids = [task.id for task in tasks]
    assert all(ids)
    assert "uuid" not in ids
    assert len(set(ids)) == 3


def test_duplicate_task_ids_are_regenerated():
    raw = json.dumps(
        {
            "summary": "s",
            "tasks": [{"id": "t1", "title": "a"}, {"id": "t1", "title": "b"}],
            "diaryEntry": "d",
        }
    )

    tasks = parse_analysis(raw).tasks

    assert tasks[0].id == "t1"
    assert tasks[1].id != "t1"


def test_task_fields_are_coerced():
    task = AnalysisTask.model_validate(
        {
            "id": "t",
            "title": None,
            "priority": "URGENT",
            "completed": "true",
            "dueDate": "next tuesday",
        }
    )

    assert task.title == ""
    assert task.priority.value == "medium"
    assert task.completed is True
    assert task.due_date is None


def test_due_date_is_parsed_and_serialized_camel_case():
    task = AnalysisTask.model_validate({"id": "t", "title": "x", "dueDate": "2024-05-01"})

    dumped = task.model_dump(mode="json", by_alias=True)

    assert dumped["dueDate"] == "2024-05-01"
    assert dumped["priority"] == "medium"


def test_list_summary_is_joined_as_bullets():
    result = AnalysisResult.model_validate(
        {"summary": ["uno", "dos"], "tasks": "none", "diaryEntry": None}
    )

    assert result.summary == "• uno\n• dos"
    assert result.tasks == []
    assert result.diary_entry == ""


def test_provider_speakers_are_ignored_in_analysis_reply():
    raw = json.dumps(
        {"summary": "s", "tasks": [], "diaryEntry": "d", "speakers": [{"id": "x"}]}
    )

    assert parse_analysis(raw).speakers is None


def test_reply_source_key_does_not_override_provenance():
    raw = '{"summary":"s","tasks":[],"diaryEntry":"d","source":"gpt"}'

    result = extract_analysis(raw, TRANSCRIPT)

    assert result.source is AnalysisSource.PROVIDER
    assert result.summary == "s"
    assert result.diary_entry == "d"


def test_to_record_fields_shape():
    result = parse_analysis(
        json.dumps(
            {
                "summary": "s",
                "tasks": [{"id": "t1", "title": "a", "priority": "high"}],
                "diaryEntry": "d",
            }
        )
    )

    fields = result.to_record_fields()

    assert fields["summary"] == "s"
    assert fields["diary_entry"] == "d"
    assert fields["speakers"] is None
    assert fields["analysis_source"] == "provider"
    assert fields["tasks"] == [
        {
            "id": "t1",
            "title": "a",
            "description": "",
            "priority": "high",
            "completed": False,
            "dueDate": None,
        }
    ]
