import json
from unittest.mock import MagicMock

import pytest

from config import Config
from gcs_utils import get_gcs_client


def make_response(status_code=200, body=None, text=None):
    """Builds a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    else:
        response.json.return_value = body
        response.text = text if text is not None else json.dumps(body)
    return response


class FakeDeepLSession:
    """Answers DeepL form requests by applying `translate` to every text field."""

    def __init__(self, translate=lambda text: text, status_code=200):
        self.translate = translate
        self.status_code = status_code
        self.calls = []

    def post(self, url, data=None, headers=None, timeout=None, **kwargs):
        texts = [value for name, value in data if name == "text"]
        self.calls.append({"url": url, "texts": texts, "data": data, "headers": headers, "timeout": timeout})
        if self.status_code != 200:
            return make_response(self.status_code, text="error")
        return make_response(200, {"translations": [{"text": self.translate(text)} for text in texts]})

    def close(self):
        pass


@pytest.fixture(autouse=True)
def fresh_gcs_client():
    get_gcs_client.cache_clear()
    yield
    get_gcs_client.cache_clear()


@pytest.fixture
def config():
    return Config(deepl_api_key="test-key:fx", request_timeout=5.0)


@pytest.fixture
def write_json():
    def _write(path, data):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _write
