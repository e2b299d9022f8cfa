import pytest

from noctua.web import client_ip, error_payload, is_macro_param, success_payload


def test_success_payload_defaults_to_200():
    assert success_payload("service alive") == {"code": 200, "message": "ok", "data": "service alive"}


def test_success_payload_keeps_given_code():
    payload = success_payload({"a": 1}, 201)
    assert payload["code"] == 201
    assert payload["data"] == {"a": 1}


def test_error_payload_defaults_to_400():
    payload = error_payload("Oops auth fail")
    assert payload["code"] == 400
    assert payload["message"] == "Oops auth fail"
    assert payload["data"] is None


def test_error_payload_keeps_given_code():
    assert error_payload("404 not found :/missing", 404)["code"] == 404


@pytest.mark.parametrize(
    ("value", "allowed"),
    [
        ("__name__", False),
        ("__a1_b__", False),
        ("_____", False),
        ("name", True),
        ("____", True),
        ("__a b__", True),
        ("__name__\n", True),
        ("x__name__", True),
        ("__名字__", True),
        ("", True),
    ],
)
def test_is_macro_param(value, allowed):
    assert is_macro_param(value) is allowed


def test_client_ip_prefers_forwarded_for():
    headers = {"X-Forwarded-For": "203.0.113.5", "X-Real-Ip": "198.51.100.7"}
    assert client_ip(headers, "192.0.2.1") == "203.0.113.5"


def test_client_ip_strips_and_ignores_case():
    assert client_ip({"x-real-ip": "  198.51.100.7 "}, "192.0.2.1") == "198.51.100.7"


def test_client_ip_falls_back_to_remote_addr():
    assert client_ip({"X-Forwarded-For": "   "}, "192.0.2.1") == "192.0.2.1"


def test_client_ip_default():
    assert client_ip({}, "") == "0.0.0.0"