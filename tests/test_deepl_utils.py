import dataclasses
from unittest.mock import MagicMock

import pytest
import requests

from cache_utils import TranslationUnit
from config import DEEPL_API_URL_FREE, DEEPL_API_URL_PRO
from conftest import FakeDeepLSession, make_response
from deepl_utils import deepl_api_url, deepl_target_language, translate_with_deepl
from placeholder_utils import MARKER_TEMPLATE

MARKER_0 = MARKER_TEMPLATE.format(index=0)
UNITS = [TranslationUnit("greeting", "Merhaba {{name}}"), TranslationUnit("ok", "Tamam")]


class TestHelpers:
    def test_free_keys_use_free_endpoint(self):
        assert deepl_api_url("abc:fx") == DEEPL_API_URL_FREE
        assert deepl_api_url("abc") == DEEPL_API_URL_PRO

    @pytest.mark.parametrize("language, expected", [("en", "EN-US"), ("pt", "PT-PT"), ("de", "DE"), ("ZH", "ZH")])
    def test_target_language_codes(self, language, expected):
        assert deepl_target_language(language) == expected


class TestTranslateWithDeepL:
    def test_successful_batch(self, config):
        session = FakeDeepLSession(translate=lambda text: text.replace("Merhaba", "Hello").replace("Tamam", "Okay."))

        result = translate_with_deepl(UNITS, "en", "tr", config, session)

        assert result == ["Hello {{name}}", "Okay"]
        assert len(session.calls) == 1
        call = session.calls[0]
        assert call["url"] == DEEPL_API_URL_FREE
        assert call["texts"] == [f"Merhaba  {MARKER_0} ", "Tamam"]
        assert ("source_lang", "TR") in call["data"]
        assert ("target_lang", "EN-US") in call["data"]
        assert call["headers"]["Authorization"] == "DeepL-Auth-Key test-key:fx"
        assert call["timeout"] == 5.0

    def test_missing_key_makes_no_request(self, config, caplog):
        session = MagicMock()

        result = translate_with_deepl(UNITS, "en", "tr", dataclasses.replace(config, deepl_api_key=None), session)

        assert result is None
        session.post.assert_not_called()
        assert "DeepL API key is missing" in caplog.text

    def test_empty_batch(self, config):
        session = MagicMock()
        assert translate_with_deepl([], "en", "tr", config, session) == []
        session.post.assert_not_called()

    @pytest.mark.parametrize("status_code", [429, 456])
    def test_quota_errors_return_none(self, config, caplog, status_code):
        session = FakeDeepLSession(status_code=status_code)

        assert translate_with_deepl(UNITS, "en", "tr", config, session) is None
        assert "quota exceeded" in caplog.text

    def test_http_error_returns_none(self, config, caplog):
        session = FakeDeepLSession(status_code=403)

        assert translate_with_deepl(UNITS, "en", "tr", config, session) is None
        assert "DeepL API Error: 403" in caplog.text

    @pytest.mark.parametrize(
        "error", [requests.exceptions.Timeout("slow"), requests.exceptions.ConnectionError("down")]
    )
    def test_network_errors_return_none(self, config, error):
        session = MagicMock()
        session.post.side_effect = error

        assert translate_with_deepl(UNITS, "en", "tr", config, session) is None

    def test_malformed_body_returns_none(self, config):
        session = MagicMock()
        session.post.return_value = make_response(200, text="<html>")

        assert translate_with_deepl(UNITS, "en", "tr", config, session) is None

    def test_length_mismatch_returns_none(self, config):
        session = MagicMock()
        session.post.return_value = make_response(200, {"translations": [{"text": "Hello"}]})

        assert translate_with_deepl(UNITS, "en", "tr", config, session) is None
