from __future__ import annotations

from typing import Any, Protocol, Type, runtime_checkable

from pydantic import BaseModel

from app.services.tags import uniq_tags


@runtime_checkable
class DomainAdapter(Protocol):
    """
    Per-domain knowledge the generic listing pipeline needs:
    attribute validation, display title, tag derivation and catalog facets.
    Lifecycle rules are identical for every domain and live in the pipeline.
    """

    key: str
    label: str
    sku_prefix: str
    default_tags: tuple[str, ...]
    default_fields: tuple[str, ...]

    def parse_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        ...

    def missing_for_submit(self, attributes: dict[str, Any]) -> list[str]:
        ...

    def display_title(self, attributes: dict[str, Any]) -> str | None:
        ...

    def derive_tags(self, attributes: dict[str, Any]) -> list[str]:
        ...

    def index_facets(self, attributes: dict[str, Any]) -> dict[str, str]:
        ...


def humanize(code: Any) -> str:
    return str(code or "").replace("_", " ").strip().title()


class ModelBackedAdapter:
    """
    Shared plumbing for adapters whose attributes are described by a pydantic model.
    Unknown attribute keys are carried through untouched.
    """

    key: str = ""
    label: str = ""
    sku_prefix: str = ""
    default_tags: tuple[str, ...] = ()
    default_fields: tuple[str, ...] = ()
    required_for_submit: tuple[str, ...] = ()
    attributes_model: Type[BaseModel]

    def parse_attributes(self, raw: dict[str, Any]) -> dict[str, Any]:
        # raises pydantic.ValidationError; the pipeline turns it into ValidationFailed
        obj = self.attributes_model.model_validate(raw or {})
        return obj.model_dump(mode="json", exclude_none=True)

    def missing_for_submit(self, attributes: dict[str, Any]) -> list[str]:
        return [f for f in self.required_for_submit if attributes.get(f) in (None, "", [])]

    def display_title(self, attributes: dict[str, Any]) -> str | None:
        return None

    def derive_tags(self, attributes: dict[str, Any]) -> list[str]:
        return uniq_tags(self.default_tags)

    def index_facets(self, attributes: dict[str, Any]) -> dict[str, str]:
        return {}
