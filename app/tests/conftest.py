import json

import pytest
import requests
from tests.factories.communities import (
    make_group_memberships,
    make_groups,
    make_identity_payload,
    make_stream_message,
    make_trait_payload,
    make_v3_response,
)


def build_response(status_code=200, body=None, text=None, headers=None):
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    elif text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = b""
    response.encoding = "utf-8"
    for key, value in (headers or {}).items():
        response.headers[key] = value
    return response


@pytest.fixture
def http_response():
    return build_response


@pytest.fixture
def groups():
    def _groups(n=4, prefix="", sso=False):
        return make_groups(n=n, prefix=prefix, sso=sso)

    return _groups


@pytest.fixture
def group_memberships():
    return make_group_memberships


@pytest.fixture
def v3_response():
    return make_v3_response


@pytest.fixture
def trait_payload():
    return make_trait_payload


@pytest.fixture
def identity_payload():
    return make_identity_payload


@pytest.fixture
def stream_message():
    return make_stream_message
