import random

import pytest

from groupbot.manager import (
    GistCheckError,
    ManagerStore,
    apply_toggle,
    check_new_user,
    group_gist_filename,
    mute_minutes,
    parse_gist_answer,
    pick_lucky_member,
    unescape_brackets,
    welcome_to_cq,
)


@pytest.fixture
def store(tmp_path):
    s = ManagerStore(tmp_path / "config.db")
    yield s
    s.close()


def test_mute_minutes_units_are_consistent():
    assert mute_minutes(10, "分钟") == 10
    assert mute_minutes(2, "小时") == mute_minutes(120, "分钟")
    assert mute_minutes(2, "h") == mute_minutes(2, "小时")
    assert mute_minutes(1, "天") == mute_minutes(24, "hours")
    assert mute_minutes(7, "whatever") == 7


def test_mute_minutes_cap():
    assert mute_minutes(30, "天") == 43199
    assert mute_minutes(43200, "m") == 43199
    assert mute_minutes(43198, "m") == 43198


def test_unescape_brackets():
    assert unescape_brackets("&#91;CQ:face,id=1&#93;") == "[CQ:face,id=1]"
    assert unescape_brackets("plain") == "plain"


def test_welcome_to_cq_fills_placeholders():
    text = welcome_to_cq("{at}{nickname}/{uid}/{gid}/{groupname}", 123, "Alice", 456, "Club")
    assert text == "[CQ:at,qq=123]Alice/123/456/Club"
    avatar = welcome_to_cq("{avatar}", 123, "Alice", 456, "Club")
    assert avatar == "[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk=123&s=640]"


def test_pick_lucky_member_from_recent_ten():
    members = [{"user_id": i, "last_sent_time": i} for i in range(30)]
    random.shuffle(members)
    rng = random.Random(5)
    for _ in range(50):
        chosen = pick_lucky_member(members, rng)
        assert chosen["user_id"] >= 20


def test_pick_lucky_member_empty():
    with pytest.raises(ValueError):
        pick_lucky_member([], random.Random(0))


def test_apply_toggle():
    assert apply_toggle(0, "开启", 1) == 1
    assert apply_toggle(1, "关闭", 1) == 0
    assert apply_toggle(0x11, "禁用", 0x10) == 1
    assert apply_toggle(1, "打开", 0x10) == 0x11
    assert apply_toggle(1, "maybe", 1) is None


def test_parse_gist_answer():
    assert parse_gist_answer("问题：why\n答案：alice/abc123") == ("alice", "abc123")
    with pytest.raises(GistCheckError):
        parse_gist_answer("答案：/abc")
    with pytest.raises(GistCheckError):
        parse_gist_answer("no marker here")


def test_group_gist_filename_shape():
    name = group_gist_filename(123456)
    assert len(name) == 32
    assert name == name.lower()
    assert name == group_gist_filename(123456)
    assert name != group_gist_filename(654321)


def test_store_welcome_round_trip(store):
    assert store.welcome(1) is None
    store.set_welcome(1, "hi {at}")
    store.set_welcome(1, "hello {at}")
    assert store.welcome(1) == "hello {at}"
    assert store.farewell(1) is None
    store.set_farewell(1, "bye")
    assert store.farewell(1) == "bye"
    assert store.welcome(2) is None


def test_check_new_user_success_records_member(store):
    seen = []

    def fetch(url):
        seen.append(url)
        return b"1000"

    check_new_user(store, 42, 777, "alice", "abc", fetch, now=1100)
    assert store.has_github_user("alice")
    assert "alice/abc/raw/" + group_gist_filename(777) in seen[0]
    with pytest.raises(GistCheckError, match="该github用户已入群"):
        check_new_user(store, 43, 777, "alice", "abc", fetch, now=1100)


def test_check_new_user_timeout(store):
    with pytest.raises(GistCheckError, match="时间戳超时"):
        check_new_user(store, 42, 777, "bob", "abc", lambda url: b"1000", now=1600)
    assert not store.has_github_user("bob")


def test_check_new_user_bad_format(store):
    with pytest.raises(GistCheckError, match="时间戳格式错误"):
        check_new_user(store, 42, 777, "bob", "abc", lambda url: b"soon", now=1000)


def test_check_new_user_fetch_failure(store):
    def fetch(url):
        raise OSError("down")

    with pytest.raises(GistCheckError) as info:
        check_new_user(store, 42, 777, "bob", "abc", fetch, now=1000)
    assert str(info.value).startswith("无法连接到gist: ")
    assert not store.has_github_user("bob")