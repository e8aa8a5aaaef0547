"""Shared Pydantic models: build input descriptor, outputs, routing rules, manifest."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    """Frozen model that reads the framework's camelCase JSON."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# --- Build input: routing descriptor ---------------------------------------


class RouteCondition(_Model):
    type: Literal["header", "cookie", "query", "host"]
    key: str | None = None
    value: str | None = None


class RedirectItem(_Model):
    source: str
    destination: str
    status_code: int | None = None
    permanent: bool | None = None
    priority: bool = False
    has: list[RouteCondition] | None = None
    missing: list[RouteCondition] | None = None


class RewriteItem(_Model):
    source: str
    destination: str
    has: list[RouteCondition] | None = None
    missing: list[RouteCondition] | None = None


class HeaderValue(_Model):
    key: str
    value: str


class HeaderItem(_Model):
    source: str
    headers: list[HeaderValue]
    has: list[RouteCondition] | None = None
    missing: list[RouteCondition] | None = None


class DynamicRouteItem(_Model):
    page: str
    regex: str
    named_regex: str | None = None
    route_keys: dict[str, str] = Field(default_factory=dict)


class RewritesInput(_Model):
    before_files: list[RewriteItem] = Field(default_factory=list)
    after_files: list[RewriteItem] = Field(default_factory=list)
    fallback: list[RewriteItem] = Field(default_factory=list)


class RoutingInput(_Model):
    redirects: list[RedirectItem] = Field(default_factory=list)
    rewrites: RewritesInput = Field(default_factory=RewritesInput)
    dynamic_routes: list[DynamicRouteItem] = Field(default_factory=list)
    headers: list[HeaderItem] = Field(default_factory=list)


# --- Build input: outputs ----------------------------------------------------

RouteType = Literal["PAGES", "APP_PAGE", "APP_ROUTE", "PAGES_API"]


class StaticFileOutput(_Model):
    kind: Literal["static_file"] = "static_file"
    id: str
    pathname: str
    file_path: str
    assets: dict[str, str] = Field(default_factory=dict)


class FunctionConfig(_Model):
    max_duration: int | None = None
    preferred_region: str | list[str] | None = None
    env: list[str] | None = None


class FunctionOutput(_Model):
    """A function-like build output before classification.

    ``runtime`` is the declared execution target tag (``nodejs`` or ``edge``);
    anything else is rejected by the classifier, not here.
    """

    id: str
    pathname: str
    file_path: str
    type: RouteType
    runtime: str
    page: str | None = None
    assets: dict[str, str] = Field(default_factory=dict)
    config: FunctionConfig = Field(default_factory=FunctionConfig)


class ServerFunctionOutput(FunctionOutput):
    kind: Literal["server_function"] = "server_function"


class EdgeFunctionOutput(FunctionOutput):
    kind: Literal["edge_function"] = "edge_function"


class PrerenderFallback(_Model):
    file_path: str | None = None
    postponed_state: str | None = None
    initial_revalidate: int | Literal[False] | None = None
    initial_expiration: int | None = None
    initial_status: int | None = None
    initial_headers: dict[str, str] | None = None


class PrerenderConfig(_Model):
    allow_query: list[str] | None = None
    allow_header: list[str] | None = None
    bypass_token: str | None = None
    bypass_for: list[RouteCondition] | None = None


class PprChain(_Model):
    model_config = ConfigDict(extra="allow")

    headers: dict[str, str] = Field(default_factory=dict)


class PrerenderOutput(_Model):
    kind: Literal["prerender"] = "prerender"
    id: str
    pathname: str
    parent_output_id: str
    group_id: int | str
    fallback: PrerenderFallback | None = None
    config: PrerenderConfig = Field(default_factory=PrerenderConfig)
    ppr_chain: PprChain | None = None


Output = Annotated[
    StaticFileOutput | ServerFunctionOutput | EdgeFunctionOutput | PrerenderOutput,
    Field(discriminator="kind"),
]


class BuildOutputs(_Model):
    static_files: list[StaticFileOutput] = Field(default_factory=list)
    app_pages: list[FunctionOutput] = Field(default_factory=list)
    app_routes: list[FunctionOutput] = Field(default_factory=list)
    pages: list[FunctionOutput] = Field(default_factory=list)
    pages_api: list[FunctionOutput] = Field(default_factory=list)
    prerenders: list[PrerenderOutput] = Field(default_factory=list)

    def function_outputs(self) -> list[FunctionOutput]:
        return [*self.app_pages, *self.app_routes, *self.pages, *self.pages_api]


# --- Routing rules -----------------------------------------------------------

Phase = Literal["filesystem", "resource", "miss", "rewrite", "hit", "error"]


class _Rule(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_route(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PatternRule(_Rule):
    src: str
    dest: str | None = None
    headers: dict[str, str] | None = None
    status: int | None = None
    has: list[dict[str, Any]] | None = None
    missing: list[dict[str, Any]] | None = None
    continue_: bool | None = Field(default=None, alias="continue")
    important: bool | None = None
    check: bool | None = None
    override: bool | None = None


class PhaseMarker(_Rule):
    handle: Phase


class StatusRule(_Rule):
    src: str
    status: int


def _rule_tag(value: Any) -> str:
    if isinstance(value, dict):
        if "handle" in value:
            return "phase"
        if set(value) == {"src", "status"}:
            return "status"
        return "pattern"
    if isinstance(value, PhaseMarker):
        return "phase"
    if isinstance(value, StatusRule):
        return "status"
    return "pattern"


RoutingRule = Annotated[
    Union[
        Annotated[PatternRule, Tag("pattern")],
        Annotated[PhaseMarker, Tag("phase")],
        Annotated[StatusRule, Tag("status")],
    ],
    Discriminator(_rule_tag),
]


# --- Manifest ------------------------------------------------------------------


class _ManifestModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RemotePattern(_ManifestModel):
    protocol: Literal["http", "https"] | None = None
    hostname: str
    port: str | None = None
    pathname: str | None = None
    search: str | None = None


class LocalPattern(_ManifestModel):
    pathname: str | None = None
    search: str | None = None


class ImagesConfig(_ManifestModel):
    sizes: list[int]
    domains: list[str]
    remote_patterns: list[RemotePattern] | None = None
    local_patterns: list[LocalPattern] | None = None
    qualities: list[int] | None = None
    minimum_cache_ttl: int | None = Field(default=None, alias="minimumCacheTTL")
    formats: list[Literal["image/avif", "image/webp"]] | None = None
    dangerously_allow_svg: bool | None = Field(default=None, alias="dangerouslyAllowSVG")
    content_security_policy: str | None = None
    content_disposition_type: str | None = None


class WildcardEntry(_ManifestModel):
    domain: str
    value: str


class OverrideEntry(_ManifestModel):
    path: str | None = None
    content_type: str | None = None


class Manifest(_ManifestModel):
    version: Literal[3] = 3
    routes: list[RoutingRule] = Field(default_factory=list)
    images: ImagesConfig | None = None
    wildcard: list[WildcardEntry] | None = None
    overrides: dict[str, OverrideEntry] = Field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
