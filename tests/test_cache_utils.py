from unittest.mock import patch

import pytest
from google.auth.exceptions import DefaultCredentialsError

from cache_utils import (
    TranslationPlan,
    TranslationUnit,
    apply_translations,
    cache_location,
    load_cache_snapshot,
    plan_translation,
    retain_cached_entries,
    source_hash,
)
from flatten_utils import TranslationEntry


def entry_for(source_text, translation):
    return TranslationEntry(translation=translation, source_hash=source_hash(source_text))


class TestSourceHash:
    def test_md5_hex_digest(self):
        assert source_hash("") == "d41d8cd98f00b204e9800998ecf8427e"

    def test_different_text_different_hash(self):
        assert source_hash("Tamam") != source_hash("Tamam.")


class TestCacheLocation:
    def test_local_directory(self, tmp_path):
        assert cache_location(str(tmp_path), "common", "en") == str(tmp_path / "common" / "en.json")

    def test_gcs_prefix(self):
        assert cache_location("gs://bucket/dist/", "common", "en") == "gs://bucket/dist/common/en.json"


class TestLoadCacheSnapshot:
    def test_without_cache_dir(self):
        assert load_cache_snapshot(None, "common", "en") == {}

    def test_reads_nested_entries(self, tmp_path, write_json):
        write_json(
            tmp_path / "common" / "en.json",
            {
                "menu": {"open": {"translation": "Open", "sourceHash": "h1"}},
                "count": 3,
                "legacy": "Plain string",
            },
        )

        snapshot = load_cache_snapshot(str(tmp_path), "common", "en")

        assert snapshot == {"menu.open": TranslationEntry(translation="Open", source_hash="h1")}

    def test_missing_file_is_empty(self, tmp_path):
        assert load_cache_snapshot(str(tmp_path), "common", "de") == {}

    def test_corrupt_file_is_empty(self, tmp_path, caplog):
        path = tmp_path / "common" / "en.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        assert load_cache_snapshot(str(tmp_path), "common", "en") == {}
        assert "Could not read cache file" in caplog.text

    def test_non_object_file_is_empty(self, tmp_path, write_json):
        write_json(tmp_path / "common" / "en.json", ["a", "b"])
        assert load_cache_snapshot(str(tmp_path), "common", "en") == {}

    def test_reads_from_gcs(self):
        cached = {"ok": {"translation": "Okay", "sourceHash": "h"}}
        with patch("json_utils.read_json_from_gcs", return_value=cached) as mock_read:
            snapshot = load_cache_snapshot("gs://bucket/cache", "common", "en")

        mock_read.assert_called_once_with("gs://bucket/cache/common/en.json")
        assert snapshot == {"ok": TranslationEntry(translation="Okay", source_hash="h")}

    def test_gcs_without_credentials_is_empty(self, caplog):
        with patch("gcs_utils.storage.Client", side_effect=DefaultCredentialsError("no credentials")):
            assert load_cache_snapshot("gs://bucket/cache", "common", "en") == {}

        assert "Could not read cache file gs://bucket/cache/common/en.json" in caplog.text


class TestPlanTranslation:
    def test_unchanged_strings_are_reused(self):
        flat_source = {"ok": "Tamam", "cancel": "İptal"}
        snapshot = {"ok": entry_for("Tamam", "Okay"), "cancel": entry_for("İptal", "Cancel")}

        plan = plan_translation(flat_source, snapshot)

        assert plan.pending == []
        assert plan.reused == 2
        assert plan.resolved == snapshot

    def test_changed_and_new_strings_are_pending(self):
        flat_source = {"ok": "Tamam!", "new": "Yeni", "same": "Aynı"}
        snapshot = {"ok": entry_for("Tamam", "Okay"), "same": entry_for("Aynı", "Same")}

        plan = plan_translation(flat_source, snapshot)

        assert plan.pending == [TranslationUnit("ok", "Tamam!"), TranslationUnit("new", "Yeni")]
        assert plan.resolved == {"same": snapshot["same"]}
        assert plan.reused == 1

    def test_non_strings_pass_through(self):
        plan = plan_translation({"count": 3, "flag": True, "tags": ["x"]}, {})

        assert plan.resolved == {"count": 3, "flag": True, "tags": ["x"]}
        assert plan.pending == []
        assert plan.reused == 0


class TestMerging:
    def test_apply_translations_hashes_source_text(self):
        plan = TranslationPlan(pending=[TranslationUnit("a", "Bir"), TranslationUnit("b", "İki")])

        apply_translations(plan, ["One", "Two"])

        assert plan.resolved == {"a": entry_for("Bir", "One"), "b": entry_for("İki", "Two")}

    def test_apply_translations_rejects_length_mismatch(self):
        plan = TranslationPlan(pending=[TranslationUnit("a", "Bir")])
        with pytest.raises(ValueError):
            apply_translations(plan, [])

    def test_retain_keeps_stale_cache_and_fills_the_rest(self):
        stale = entry_for("Eski metin", "Old text")
        plan = TranslationPlan(pending=[TranslationUnit("a", "Yeni metin"), TranslationUnit("b", "Başka")])

        untranslated = retain_cached_entries(plan, {"a": stale})

        assert untranslated == 1
        assert plan.resolved["a"] is stale
        assert plan.resolved["b"] == TranslationEntry(translation="Başka", source_hash="")
