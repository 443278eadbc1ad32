from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domains.base import ModelBackedAdapter, humanize
from app.services.tags import uniq_tags


StoneType = Literal[
    "YELLOW_SAPPHIRE",
    "BLUE_SAPPHIRE",
    "RUBY",
    "EMERALD",
    "HESSONITE",
    "CATS_EYE",
    "CORAL",
    "PEARL",
    "OTHER",
]

NOT_DEFINED = "NOT_DEFINED"


class GemstoneAttributesV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    stone_type: StoneType | None = None
    stone_local_code: str | None = Field(default=None, max_length=60)

    shape_cut: str | None = Field(default=None, max_length=60)
    clarity: str | None = Field(default=None, max_length=60)
    color: str | None = Field(default=None, max_length=60)
    treatment_status: str | None = Field(default=None, max_length=60)
    luster: str | None = Field(default=None, max_length=60)
    origin: str | None = Field(default=None, max_length=80)

    certified: bool | None = None
    certificate_lab: str | None = Field(default=None, max_length=80)

    weight_carat: float | None = Field(default=None, gt=0)
    measurement_mm: str | None = Field(default=None, max_length=60)
    remarks: str | None = Field(default=None, max_length=2000)


def _defined(v: Any) -> bool:
    return bool(v) and v != NOT_DEFINED


class GemstonesAdapter(ModelBackedAdapter):
    key = "gemstones"
    label = "Gemstones"
    sku_prefix = "8165GS"
    default_tags = ("gemstone",)
    default_fields = ("stone_type", "shape_cut", "treatment_status", "origin", "certified", "certificate_lab")
    required_for_submit = ("stone_type", "weight_carat")
    attributes_model = GemstoneAttributesV1

    def display_title(self, attributes: dict[str, Any]) -> str | None:
        stone = attributes.get("stone_type")
        if not stone:
            return None
        name = humanize(stone).replace("Cats Eye", "Cat's Eye")
        weight = attributes.get("weight_carat")
        title = f"{float(weight):.2f} ct {name}" if weight else name
        shape = attributes.get("shape_cut")
        if _defined(shape):
            title = f"{title} ({humanize(shape)})"
        return title

    def derive_tags(self, attributes: dict[str, Any]) -> list[str]:
        tags: list[str] = list(self.default_tags)
        for field in ("stone_type", "shape_cut", "color", "treatment_status", "origin"):
            value = attributes.get(field)
            if _defined(value):
                tags.append(value)
        if attributes.get("certified") and _defined(attributes.get("certificate_lab")):
            tags.append(f"{attributes['certificate_lab']}-certified")
        return uniq_tags(tags)

    def index_facets(self, attributes: dict[str, Any]) -> dict[str, str]:
        facets: dict[str, str] = {}
        if attributes.get("stone_type"):
            facets["category"] = attributes["stone_type"]
        if _defined(attributes.get("shape_cut")):
            facets["shape"] = attributes["shape_cut"]
        if _defined(attributes.get("origin")):
            facets["origin"] = attributes["origin"]
        return facets
