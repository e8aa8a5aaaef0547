from __future__ import annotations

import json

import pytest

from next_adapter.config import (
    BuildConfig,
    I18nConfig,
    I18nDomain,
    ImagesInput,
    images_config,
    wildcard_config,
)
from next_adapter.routing.compiler import compile_routes
from next_adapter.routing.superstatic import SuperstaticCompiler
from next_adapter.types import (
    Manifest,
    OverrideEntry,
    PatternRule,
    PhaseMarker,
    RedirectItem,
    RewriteItem,
    RewritesInput,
    RoutingInput,
    StatusRule,
)
from next_adapter.validator import validate_manifest


def _config() -> BuildConfig:
    return BuildConfig(
        base_path="/docs",
        images=ImagesInput(image_sizes=[16, 32], device_sizes=[640, 1080], domains=["cdn.example"]),
        i18n=I18nConfig(
            default_locale="en",
            locales=["en", "fr"],
            domains=[
                I18nDomain(domain="example.com", default_locale="en"),
                I18nDomain(domain="example.fr", default_locale="fr"),
            ],
        ),
    )


def test_images_config_concatenates_sizes() -> None:
    images = images_config(_config())
    assert images is not None
    assert images.sizes == [16, 32, 640, 1080]
    assert images.domains == ["cdn.example"]


@pytest.mark.parametrize(
    "images", [None, ImagesInput(unoptimized=True), ImagesInput(loader="custom")]
)
def test_images_config_absent_when_not_optimized(images: ImagesInput | None) -> None:
    assert images_config(BuildConfig(images=images)) is None


def test_wildcard_maps_default_locale_to_empty_prefix() -> None:
    entries = wildcard_config(_config())
    assert [(e.domain, e.value) for e in entries] == [("example.com", ""), ("example.fr", "/fr")]
    assert wildcard_config(BuildConfig()) is None


def test_empty_i18n_domains_still_emit_wildcard() -> None:
    config = BuildConfig(i18n=I18nConfig(default_locale="en", locales=["en"], domains=[]))
    assert wildcard_config(config) == []
    assert wildcard_config(BuildConfig(i18n=I18nConfig(default_locale="en"))) is None

    data = Manifest(wildcard=wildcard_config(config)).to_json_dict()
    validate_manifest(data)
    assert data["wildcard"] == []


def test_manifest_survives_json_round_trip() -> None:
    config = _config()
    routing = RoutingInput(
        redirects=[RedirectItem(source="/old/:slug", destination="/new/:slug", permanent=False)],
        rewrites=RewritesInput(before_files=[RewriteItem(source="/a", destination="/b")]),
    )
    manifest = Manifest(
        routes=compile_routes(routing, config, SuperstaticCompiler()),
        images=images_config(config),
        wildcard=wildcard_config(config),
        overrides={"./about": OverrideEntry(content_type="text/html; charset=utf-8")},
    )
    data = manifest.to_json_dict()
    validate_manifest(data)

    parsed = Manifest.model_validate_json(json.dumps(data, indent=2))
    assert parsed == manifest
    assert parsed.to_json_dict() == data


def test_rule_variants_are_told_apart() -> None:
    parsed = Manifest.model_validate(
        {
            "routes": [
                {"handle": "filesystem"},
                {"src": "/.*", "status": 404},
                {"src": "^/a$", "dest": "/b", "continue": True, "override": True},
            ]
        }
    )
    marker, status, pattern = parsed.routes
    assert isinstance(marker, PhaseMarker)
    assert isinstance(status, StatusRule)
    assert isinstance(pattern, PatternRule)
    assert pattern.continue_ is True


def test_serialized_keys_use_wire_names() -> None:
    data = Manifest(
        overrides={"./x": OverrideEntry(content_type="text/html")},
        images=images_config(BuildConfig(images=ImagesInput(minimum_cache_ttl=60))),
    ).to_json_dict()
    assert data["version"] == 3
    assert data["overrides"] == {"./x": {"contentType": "text/html"}}
    assert data["images"]["minimumCacheTTL"] == 60
    assert "wildcard" not in data
