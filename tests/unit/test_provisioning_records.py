"""
tests/unit/test_provisioning_records.py

Unit tests for the catalog, registry, URL rewrite rules and placeholder
artifacts.

Verifies:
✔ Catalog lookup, unknown ids raise UnknownModelError
✔ Registry keeps a unique installed index and typed records
✔ Corrupted registry entries read as absent
✔ Selected pointer: empty string means no selection
✔ Alternative URLs are ordered, unique and exclude the original
✔ A rule that fails on a malformed URL or template is skipped
✔ URL rules load from JSON, bad files fall back to defaults
✔ Placeholder payload carries id, architecture, capabilities and error
"""

import json

import pytest

from provisioning import (
    DEFAULT_DESCRIPTORS,
    DEFAULT_URL_RULES,
    ArchitectureFamily,
    InstalledModelRecord,
    ModelCatalog,
    UnknownModelError,
    UrlRewriteRule,
    build_placeholder,
    generate_alternative_urls,
    is_placeholder,
    load_url_rules,
)
from provisioning.registry import INSTALLED_MODELS_KEY, SELECTED_MODEL_KEY, record_key


# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────


class TestModelCatalog:

    def test_describe_known_model(self):
        catalog = ModelCatalog()
        descriptor = catalog.describe("gpt2-onnx")
        assert descriptor.tokenizer_source == "Xenova/gpt2"
        assert descriptor.architecture == ArchitectureFamily.TEXT_GENERATION
        assert descriptor.primary_artifact == "model.onnx"

    def test_describe_unknown_model_raises(self):
        with pytest.raises(UnknownModelError):
            ModelCatalog().describe("does-not-exist")

    def test_contains(self):
        catalog = ModelCatalog()
        assert "minilm-onnx" in catalog
        assert "does-not-exist" not in catalog

    def test_default_entries(self):
        ids = [d.model_id for d in ModelCatalog().describe_all()]
        assert ids == ["gpt2-onnx", "bert-base-onnx", "minilm-onnx", "distilbert-onnx"]
        assert all(d.source_url for d in DEFAULT_DESCRIPTORS)


# ─────────────────────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────────────────────


def _record(model_id: str = "gpt2-onnx") -> InstalledModelRecord:
    descriptor = ModelCatalog().describe(model_id)
    return InstalledModelRecord(
        model_id=model_id,
        path=f"/docs/models/{model_id}/model.onnx",
        architecture=descriptor.architecture,
        tokenizer_source=descriptor.tokenizer_source,
        descriptor=descriptor,
    )


class TestModelRegistry:

    @pytest.mark.asyncio
    async def test_record_round_trip(self, registry, content_store):
        await registry.put_record(_record())

        assert record_key("gpt2-onnx") in content_store.storage
        record = await registry.get_record("gpt2-onnx")
        assert record is not None
        assert record.descriptor.tokenizer_source == "Xenova/gpt2"
        assert record.status == "ready"

    @pytest.mark.asyncio
    async def test_installed_index_is_unique(self, registry, content_store):
        await registry.add_installed("a")
        await registry.add_installed("b")
        await registry.add_installed("a")

        assert await registry.list_installed() == ["a", "b"]
        await registry.remove_installed("a")
        assert json.loads(content_store.storage[INSTALLED_MODELS_KEY]) == ["b"]

    @pytest.mark.asyncio
    async def test_corrupted_entries_read_as_absent(self, registry, content_store):
        content_store.storage[INSTALLED_MODELS_KEY] = "{not json"
        content_store.storage[record_key("x")] = '{"model_id": "x"}'

        assert await registry.list_installed() == []
        assert await registry.get_record("x") is None

    @pytest.mark.asyncio
    async def test_selected_pointer(self, registry, content_store):
        assert await registry.get_selected() is None
        await registry.set_selected("gpt2-onnx")
        assert await registry.get_selected() == "gpt2-onnx"

        content_store.storage[SELECTED_MODEL_KEY] = ""
        assert await registry.get_selected() is None

        await registry.clear_selected()
        assert SELECTED_MODEL_KEY not in content_store.storage

    @pytest.mark.asyncio
    async def test_style_config(self, registry):
        assert await registry.get_style_config() is None
        await registry.put_style_config({"role": "casual_writer"})
        assert await registry.get_style_config() == {"role": "casual_writer"}


# ─────────────────────────────────────────────────────────────────────────────
# URL rewrite rules
# ─────────────────────────────────────────────────────────────────────────────

HF_URL = "https://huggingface.co/Xenova/gpt2/resolve/main/onnx/model.onnx"


class TestUrlRules:

    def test_default_candidates_for_huggingface_url(self):
        candidates = generate_alternative_urls(HF_URL, DEFAULT_URL_RULES)

        assert candidates == [
            "https://huggingface.co/Xenova/gpt2/resolve/main/model.onnx",
            "https://huggingface.co/Xenova/gpt2/resolve/main/pytorch_model.bin",
            "https://huggingface.co/Xenova/gpt2/resolve/master/onnx/model.onnx",
            "https://raw.githubusercontent.com/Xenova/gpt2/main/model.onnx",
            "https://raw.githubusercontent.com/Xenova/gpt2/master/model.onnx",
        ]
        assert HF_URL not in candidates

    def test_unrelated_url_has_no_candidates(self):
        assert generate_alternative_urls("https://good.example/model.bin", DEFAULT_URL_RULES) == []

    def test_malformed_url_skips_failing_rules(self):
        assert generate_alternative_urls("http://[::1", DEFAULT_URL_RULES) == []

    def test_template_with_unknown_field_is_skipped(self):
        rules = [
            UrlRewriteRule(kind="raw_content", host="huggingface.co", template="https://mirror.example/{branch}"),
            UrlRewriteRule(kind="replace", match="/resolve/main/", replacement="/resolve/master/"),
        ]
        assert generate_alternative_urls(HF_URL, rules) == [
            "https://huggingface.co/Xenova/gpt2/resolve/master/onnx/model.onnx",
        ]

    def test_custom_rules_apply_in_order(self):
        rules = [
            UrlRewriteRule(kind="replace", match="cdn1", replacement="cdn2"),
            UrlRewriteRule(kind="replace", match="cdn1", replacement="cdn2"),
            UrlRewriteRule(kind="replace", match="cdn1", replacement="cdn3"),
        ]
        assert generate_alternative_urls("https://cdn1.example/m.onnx", rules) == [
            "https://cdn2.example/m.onnx",
            "https://cdn3.example/m.onnx",
        ]

    def test_load_rules_from_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([
            {"kind": "replace", "match": "/v1/", "replacement": "/v2/"},
            {"kind": "raw_content", "host": "models.example", "template": "https://mirror/{owner}/{repo}.onnx"},
        ]))

        rules = load_url_rules(str(path))

        assert len(rules) == 2
        assert generate_alternative_urls("https://models.example/acme/tiny/v1/model.onnx", rules) == [
            "https://models.example/acme/tiny/v2/model.onnx",
            "https://mirror/acme/tiny.onnx",
        ]

    def test_bad_rules_file_uses_defaults(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text('[{"kind": "teleport"}]')
        assert load_url_rules(str(path)) == DEFAULT_URL_RULES
        assert load_url_rules(str(tmp_path / "missing.json")) == DEFAULT_URL_RULES
        assert load_url_rules(None) == DEFAULT_URL_RULES


# ─────────────────────────────────────────────────────────────────────────────
# Placeholder artifacts
# ─────────────────────────────────────────────────────────────────────────────


class TestPlaceholder:

    def test_known_model_placeholder(self):
        content = build_placeholder("gpt2-onnx", ArchitectureFamily.TEXT_GENERATION, "HTTP 404")

        assert is_placeholder(content)
        assert "gpt2-onnx" in content
        assert "text-generation" in content
        assert "GPT-2 text generation model" in content
        assert "HTTP 404" in content

    def test_unknown_model_uses_generic_description(self):
        content = build_placeholder("m1", ArchitectureFamily.SENTENCE_EMBEDDING, "timeout")
        assert "Generic text model" in content
        assert "m1" in content

    def test_real_content_is_not_placeholder(self):
        assert not is_placeholder("\x08\x07\x12onnx-binary")
