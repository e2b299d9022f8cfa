import string
import time

import pytest

from noctua.douyin_tokens import (
    VerifyFpManager,
    current_millis,
    gen_fake_ms_token,
    get_random_string,
    get_web_id,
    json_to_cookie_string,
)

ALNUM = set(string.ascii_letters + string.digits)


def test_gen_fake_ms_token_length():
    token = gen_fake_ms_token()
    assert len(token) == 128
    assert token.endswith("==")
    assert set(token[:-2]) <= ALNUM


@pytest.mark.parametrize("method", ["gen_verify_fp", "gen_s_v_web_id"])
def test_verify_fp_shape(method):
    value = getattr(VerifyFpManager(), method)()
    assert value.startswith("verify_")
    assert len(value) == 52


def test_verify_fp_structure():
    before = current_millis()
    value = VerifyFpManager().gen_verify_fp()
    after = current_millis()
    suffix = value[-36:]
    assert [suffix[i] for i in (8, 13, 18, 23)] == ["_"] * 4
    assert suffix[14] == "4"
    assert suffix[19] in "89AB"
    assert value[-37] == "_"
    stamp = int(value[len("verify_"):-37], 36)
    assert before <= stamp <= after


def test_verify_fp_differs_between_calls():
    manager = VerifyFpManager()
    values = {manager.gen_verify_fp()[-36:] for _ in range(5)}
    assert len(values) > 1


def test_get_web_id_length():
    web_id = get_web_id()
    assert len(web_id) == 19
    assert web_id.isdigit()


def test_get_random_string_lengths():
    assert len(get_random_string(16)) == 16
    assert len(get_random_string(32)) == 32
    assert set(get_random_string(200)) <= ALNUM


def test_get_random_string_zero_and_negative():
    assert get_random_string(0) == ""
    with pytest.raises(ValueError):
        get_random_string(-1)


def test_current_millis_near_now():
    stamp = current_millis()
    now = time.time_ns() // 1_000_000
    assert stamp > 0
    assert now - 1000 < stamp < now + 1000


def test_json_to_cookie_string_joins_named_cookies():
    raw = '[{"name": "a", "value": "1"}, {"name": "", "value": "x"}, {"name": "b", "value": "2"}]'
    assert json_to_cookie_string(raw) == "a=1;b=2"


def test_json_to_cookie_string_empty_list():
    assert json_to_cookie_string("[]") == ""


@pytest.mark.parametrize("raw", ["not json", '{"name": "a"}', "[1, 2]"])
def test_json_to_cookie_string_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        json_to_cookie_string(raw)