import pytest

from nihongo_lens.errors import InternalError
from nihongo_lens.schemas import TokenData
from nihongo_lens.translation import (
    clean_translation,
    extract_json_object,
    parse_batch_translation,
)


def test_extract_json_object_strips_fences():
    assert extract_json_object('```json\n{"猫": "猫"}\n```') == {"猫": "猫"}


def test_extract_json_object_finds_object_in_chatter():
    assert extract_json_object('Here you go: {"犬": "狗"} hope it helps') == {"犬": "狗"}


def test_extract_json_object_rejects_garbage():
    with pytest.raises(InternalError):
        extract_json_object("no json here")


def test_clean_translation_removes_punctuation_and_quotes():
    assert clean_translation(" 『你好』！ ") == "你好"


def test_parse_batch_translation_requires_message_content():
    with pytest.raises(InternalError):
        parse_batch_translation({"choices": []}, [TokenData(word="猫")])


def test_parse_batch_translation_counts_tokens():
    data = {"choices": [{"message": {"content": '{"猫": "cat"}'}}]}
    result = parse_batch_translation(data, [TokenData(word="猫", pos="名詞")])
    assert result == {"translations": {"猫": "cat"}, "processed": 1, "successful": 1}
