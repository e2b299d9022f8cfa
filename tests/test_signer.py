import json

import pytest
import requests
import responses

from noctua.signer import (
    BilibiliSignRequest,
    DouyinSignRequest,
    DouyinSignResult,
    SignServerClient,
    SignServerError,
    XhsSignRequest,
    ZhihuSignRequest,
    to_json,
)

SIGN_SERVER = "http://127.0.0.1:8989"


@pytest.fixture
def mock_server():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def client():
    return SignServerClient(SIGN_SERVER)


def test_pong(mock_server, client):
    mock_server.add(responses.GET, SIGN_SERVER + "/signsrv/pong", body="pong")
    assert client.pong() == "pong"


def test_pong_unreachable(mock_server, client):
    with pytest.raises(SignServerError):
        client.pong()


def test_douyin_sign(mock_server, client):
    mock_server.add(
        responses.POST,
        SIGN_SERVER + "/signsrv/v1/douyin/sign",
        json={"biz_code": 0, "msg": "OK", "isok": True, "data": {"a_bogus": "abc"}},
    )
    resp = client.douyin_sign(DouyinSignRequest(uri="/test"))
    assert resp.is_ok is True
    assert resp.msg == "OK"
    assert resp.data.a_bogus == "abc"

    sent = json.loads(mock_server.calls[0].request.body)
    assert sent == {"uri": "/test", "query_params": "", "user_agent": "", "cookies": ""}


def test_bilibili_sign(mock_server, client):
    mock_server.add(
        responses.POST,
        SIGN_SERVER + "/signsrv/v1/bilibili/sign",
        json={"biz_code": 0, "msg": "OK", "isok": True, "data": {"wts": "1700000000", "w_rid": "rid"}},
    )
    resp = client.bilibili_sign(BilibiliSignRequest())
    assert resp.data.wts == "1700000000"
    assert resp.data.w_rid == "rid"
    sent = json.loads(mock_server.calls[0].request.body)
    assert sent == {"req_data": {}, "cookies": ""}


def test_zhihu_sign(mock_server, client):
    mock_server.add(
        responses.POST,
        SIGN_SERVER + "/signsrv/v1/zhihu/sign",
        json={"biz_code": 0, "msg": "OK", "isok": True, "data": {"x_zst_81": "a", "x_zse_96": "b"}},
    )
    resp = client.zhihu_sign(ZhihuSignRequest())
    assert resp.data.x_zst_81 == "a"
    assert resp.data.x_zse_96 == "b"


def test_xiaohongshu_sign(mock_server, client):
    mock_server.add(
        responses.POST,
        SIGN_SERVER + "/signsrv/v1/xhs/sign",
        json={
            "biz_code": 0,
            "msg": "OK",
            "isok": True,
            "data": {"x_s": "s", "x_t": "t", "x_s_common": "c", "x_b3_traceid": "trace"},
        },
    )
    resp = client.xiaohongshu_sign(XhsSignRequest())
    assert (resp.data.x_s, resp.data.x_t, resp.data.x_s_common, resp.data.x_b3_traceid) == (
        "s",
        "t",
        "c",
        "trace",
    )
    sent = json.loads(mock_server.calls[0].request.body)
    assert "data" not in sent


def test_xiaohongshu_request_includes_data_when_given():
    request = XhsSignRequest(uri="/api", data={"page": 1}, cookies="a=b")
    assert request.to_dict() == {"uri": "/api", "data": {"page": 1}, "cookies": "a=b"}


def test_response_without_data(mock_server, client):
    mock_server.add(
        responses.POST,
        SIGN_SERVER + "/signsrv/v1/douyin/sign",
        json={"biz_code": 1, "msg": "bad", "isok": False},
    )
    resp = client.douyin_sign(DouyinSignRequest(uri="/test"))
    assert resp.biz_code == 1
    assert resp.is_ok is False
    assert resp.data is None


def test_http_error_yields_empty_response(mock_server, client):
    mock_server.add(responses.POST, SIGN_SERVER + "/signsrv/v1/douyin/sign", status=500, body="boom")
    resp = client.douyin_sign(DouyinSignRequest(uri="/test"))
    assert (resp.biz_code, resp.msg, resp.is_ok, resp.data) == (0, "", False, None)


def test_unreadable_reply_raises(mock_server, client):
    mock_server.add(responses.POST, SIGN_SERVER + "/signsrv/v1/zhihu/sign", body="not json")
    with pytest.raises(SignServerError):
        client.zhihu_sign(ZhihuSignRequest())


def test_unreachable_server_raises(mock_server, client):
    with pytest.raises(SignServerError):
        client.douyin_sign(DouyinSignRequest(uri="/test"))


def test_endpoint_trailing_slash_is_ignored(mock_server):
    mock_server.add(responses.GET, SIGN_SERVER + "/signsrv/pong", body="pong")
    assert SignServerClient(SIGN_SERVER + "/").pong() == "pong"


def test_custom_session_is_used(mock_server):
    session = requests.Session()
    session.headers["X-Test"] = "yes"
    mock_server.add(responses.GET, SIGN_SERVER + "/signsrv/pong", body="pong")
    SignServerClient(SIGN_SERVER, session).pong()
    assert mock_server.calls[0].request.headers["X-Test"] == "yes"


def test_to_json_of_model_round_trips():
    text = to_json(DouyinSignResult(a_bogus="abc"))
    assert text == '{\n  "a_bogus": "abc"\n}'
    assert DouyinSignResult.from_dict(json.loads(text)) == DouyinSignResult(a_bogus="abc")


def test_to_json_of_unserialisable_value():
    assert to_json({"value": object()}) == "{}"
    assert to_json({}) == "{}"