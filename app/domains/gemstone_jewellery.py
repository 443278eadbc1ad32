from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domains.base import ModelBackedAdapter
from app.services.tags import uniq_tags


Nature = Literal["NATURAL", "ARTIFICIAL"]
JewelleryType = Literal["BRACELET", "STRING", "NECKLACE", "EARRINGS", "RING", "PENDANT", "SET"]

TYPE_LABELS: dict[str, str] = {
    "BRACELET": "Bracelet",
    "STRING": "String",
    "NECKLACE": "Necklace",
    "EARRINGS": "Earrings",
    "RING": "Ring",
    "PENDANT": "Pendant",
    "SET": "Set",
}


class GemstoneJewelleryAttributesV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    nature: Nature | None = None
    type: JewelleryType | None = None

    stone_name: str | None = Field(default=None, max_length=120)
    # artificial pieces are named after the stone they imitate ("Ruby Look")
    look_name: str | None = Field(default=None, max_length=120)

    material: str | None = Field(default=None, max_length=80)
    closure: str | None = Field(default=None, max_length=80)
    bead_size_mm: float | None = Field(default=None, gt=0)
    length_inch: float | None = Field(default=None, gt=0)
    weight_gm: float | None = Field(default=None, gt=0)

    featured: bool | None = None


def _title_case(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in s.split())


class GemstoneJewelleryAdapter(ModelBackedAdapter):
    key = "gemstone-jewellery"
    label = "Gemstone Jewellery"
    sku_prefix = "8165GJ"
    default_tags = ("gemstone-jewellery",)
    default_fields = ("nature", "type", "material", "closure")
    required_for_submit = ("nature", "type")
    attributes_model = GemstoneJewelleryAttributesV1

    def missing_for_submit(self, attributes: dict[str, Any]) -> list[str]:
        missing = super().missing_for_submit(attributes)
        if attributes.get("nature") == "NATURAL" and not (attributes.get("stone_name") or "").strip():
            missing.append("stone_name")
        return missing

    def display_title(self, attributes: dict[str, Any]) -> str | None:
        kind = TYPE_LABELS.get(attributes.get("type") or "")
        if not kind:
            return None
        if attributes.get("nature") == "ARTIFICIAL":
            look = (attributes.get("look_name") or attributes.get("stone_name") or "Gemstone Look").strip()
            return f"{_title_case(look)} {kind}"
        stone = (attributes.get("stone_name") or "Gemstone").strip()
        return f"Natural {_title_case(stone)} {kind}"

    def derive_tags(self, attributes: dict[str, Any]) -> list[str]:
        tags: list[str] = list(self.default_tags)
        tags.append(attributes.get("stone_name") or "")
        tags.append(attributes.get("look_name") or "")
        tags.append(attributes.get("type") or "")
        tags.append(attributes.get("nature") or "")
        tags.append(attributes.get("material") or "")
        return uniq_tags(tags)

    def index_facets(self, attributes: dict[str, Any]) -> dict[str, str]:
        facets: dict[str, str] = {}
        if attributes.get("type"):
            facets["type"] = attributes["type"]
        if attributes.get("nature"):
            facets["nature"] = attributes["nature"]
        return facets
