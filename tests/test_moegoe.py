import pytest

from groupbot.moegoe import CN_SPEAKERS, JP_SPEAKERS, KR_SPEAKERS, parse_request, speech_url


def test_korean_url():
    assert speech_url("Sua", "hi") == "https://moegoe.azurewebsites.net/api/speakkr?text=hi&id=0"


def test_japanese_url_uses_speaker_id():
    url = speech_url("七海", "こんにちは")
    assert url.startswith("https://moegoe.azurewebsites.net/api/speak?text=")
    assert url.endswith("&id=6")
    assert "こ" not in url


def test_chinese_url_escapes_speaker():
    url = speech_url("派蒙", "你好")
    assert url.startswith("http://233366.proxy.nscc-gz.cn:8888?speaker=%")
    assert "派蒙" not in url


def test_spaces_become_plus():
    assert "text=a+b&" in speech_url("宁宁", "a b")


def test_unknown_speaker():
    with pytest.raises(ValueError):
        speech_url("nobody", "hi")


def test_parse_chinese_request():
    assert parse_request("让派蒙说你好，旅行者") == ("派蒙", "你好，旅行者")


def test_parse_japanese_request():
    assert parse_request("让宁宁说おはよう!") == ("宁宁", "おはよう!")


def test_parse_korean_request():
    assert parse_request("让Arin说안녕 hello") == ("Arin", "안녕 hello")


def test_language_must_match_speaker():
    assert parse_request("让宁宁说안녕") is None
    assert parse_request("让派蒙说hello") is None


def test_unknown_speaker_not_parsed():
    assert parse_request("让路人说你好") is None


def test_speaker_tables_have_every_request_target():
    for speaker in list(JP_SPEAKERS) + list(KR_SPEAKERS) + list(CN_SPEAKERS):
        assert speech_url(speaker, "x")
        assert parse_request(f"让{speaker}说。") == (speaker, "。")