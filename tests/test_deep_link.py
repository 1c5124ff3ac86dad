from uuid import UUID, uuid4

import pytest

from app.services import deep_link


def test_encode_format():
    rid = UUID("5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f")
    assert deep_link.encode(rid) == f"{deep_link.APP_SCHEME}://reminder/{rid}"


def test_decode_encoded_link():
    for _ in range(20):
        rid = uuid4()
        assert deep_link.decode(deep_link.encode(rid)) == rid


def test_decode_accepts_uppercase_identifier():
    rid = uuid4()
    uri = f"{deep_link.APP_SCHEME}://reminder/{str(rid).upper()}"
    assert deep_link.decode(uri) == rid


def test_decode_ignores_trailing_segments():
    rid = uuid4()
    assert deep_link.decode(deep_link.encode(rid) + "/details") == rid


@pytest.mark.parametrize(
    "uri",
    [
        "https://reminder/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
        "otherapp://reminder/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
        f"{deep_link.APP_SCHEME}://person/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
        f"{deep_link.APP_SCHEME}://reminder/not-a-uuid",
        f"{deep_link.APP_SCHEME}://reminder/",
        f"{deep_link.APP_SCHEME}://reminder",
        "",
        "not a uri at all",
        f"{deep_link.APP_SCHEME}://[reminder/5f2b8a4e",
        f"{deep_link.APP_SCHEME}://REMINDER/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
        f"{deep_link.APP_SCHEME}://x@reminder/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
        f"{deep_link.APP_SCHEME}://reminder:1/5f2b8a4e-3c1d-4e7a-9b6f-0a1b2c3d4e5f",
    ],
)
def test_decode_rejects_without_raising(uri):
    assert deep_link.decode(uri) is None


def test_decode_rejects_non_strings():
    assert deep_link.decode(None) is None
    assert deep_link.decode(42) is None
