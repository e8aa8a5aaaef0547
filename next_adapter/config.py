"""Immutable build configuration and its projection into the manifest.

``BuildConfig`` is read once from the framework's config and then passed
explicitly to every stage. Only the settings the compiler actually consumes
are modelled; unknown keys are ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from next_adapter.types import ImagesConfig, LocalPattern, RemotePattern, WildcardEntry


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class I18nDomain(_ConfigModel):
    domain: str
    default_locale: str
    locales: list[str] | None = None


class I18nConfig(_ConfigModel):
    default_locale: str
    locales: list[str] = Field(default_factory=list)
    domains: list[I18nDomain] | None = None


class ImagesInput(_ConfigModel):
    loader: str = "default"
    unoptimized: bool = False
    domains: list[str] = Field(default_factory=list)
    device_sizes: list[int] = Field(default_factory=list)
    image_sizes: list[int] = Field(default_factory=list)
    remote_patterns: list[RemotePattern] | None = None
    local_patterns: list[LocalPattern] | None = None
    qualities: list[int] | None = None
    minimum_cache_ttl: int | None = Field(default=None, alias="minimumCacheTTL")
    formats: list[str] | None = None
    dangerously_allow_svg: bool | None = Field(default=None, alias="dangerouslyAllowSVG")
    content_security_policy: str | None = None
    content_disposition_type: str | None = None


class ExperimentalConfig(_ConfigModel):
    ppr: bool = False
    client_segment_cache: bool = False


class BuildConfig(_ConfigModel):
    base_path: str = ""
    i18n: I18nConfig | None = None
    images: ImagesInput | None = None
    experimental: ExperimentalConfig = Field(default_factory=ExperimentalConfig)

    @property
    def should_handle_prefetch_rsc(self) -> bool:
        return self.experimental.ppr

    @property
    def should_handle_segment_prefetches(self) -> bool:
        return self.experimental.client_segment_cache


def images_config(config: BuildConfig) -> ImagesConfig | None:
    """Image-optimization settings for the manifest, or None when not optimized."""
    images = config.images
    if images is None or images.loader != "default" or images.unoptimized:
        return None
    return ImagesConfig(
        sizes=[*images.image_sizes, *images.device_sizes],
        domains=images.domains,
        remote_patterns=images.remote_patterns,
        local_patterns=images.local_patterns,
        qualities=images.qualities,
        minimum_cache_ttl=images.minimum_cache_ttl,
        formats=images.formats,
        dangerously_allow_svg=images.dangerously_allow_svg,
        content_security_policy=images.content_security_policy,
        content_disposition_type=images.content_disposition_type,
    )


def wildcard_config(config: BuildConfig) -> list[WildcardEntry] | None:
    """Per-domain default-locale prefixes; the global default locale maps to ``""``."""
    i18n = config.i18n
    if i18n is None or i18n.domains is None:
        return None
    return [
        WildcardEntry(
            domain=item.domain,
            value="" if item.default_locale == i18n.default_locale else f"/{item.default_locale}",
        )
        for item in i18n.domains
    ]
