from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domains.base import ModelBackedAdapter, humanize
from app.services.tags import uniq_tags


ProductCategory = Literal[
    "LOOSE_RUDRAKSHA_BEAD",
    "RUDRAKSHA_BRACELET",
    "RUDRAKSHA_MALA",
    "RUDRAKSHA_PENDANT",
    "RUDRAKSHA_RING",
    "RUDRAKSHA_EARRINGS",
    "RUDRAKSHA_GEMSTONE_JEWELLERY",
    "RUDRAKSHA_GIFT_SET",
    "OTHER",
]
WearType = Literal["DAILY_WEAR", "SPIRITUAL_JAPA", "OCCASIONAL_FESTIVAL", "ASTROLOGY_HEALING", "GIFTING"]
Origin = Literal["NEPAL", "INDONESIA_JAVA", "INDIA", "OTHER"]
Shape = Literal["ROUND", "OVAL", "NATURAL_IRREGULAR"]
MukhiType = Literal[
    "1_MUKHI", "2_MUKHI", "3_MUKHI", "4_MUKHI", "5_MUKHI", "6_MUKHI", "7_MUKHI",
    "8_MUKHI", "9_MUKHI", "10_MUKHI", "11_MUKHI", "12_MUKHI", "13_MUKHI", "14_MUKHI",
    "GAURI_SHANKAR", "GANESH", "TRIJUTI", "OTHER",
]

MUKHI_TAGS: dict[str, str] = {
    **{f"{n}_MUKHI": f"{n}mukhi" for n in range(1, 15)},
    "GAURI_SHANKAR": "gaurishankar",
    "GANESH": "ganesh",
    "TRIJUTI": "trijuti",
    "OTHER": "rudraksha",
}
ORIGIN_TAGS = {"NEPAL": "nepalrudraksha", "INDONESIA_JAVA": "javarudraksha", "INDIA": "indiarudraksha", "OTHER": "rudraksha"}
SHAPE_TAGS = {"ROUND": "roundbead", "OVAL": "ovalbead", "NATURAL_IRREGULAR": "naturalbead"}
WEAR_TAGS = {
    "DAILY_WEAR": "dailywear",
    "SPIRITUAL_JAPA": "japa",
    "OCCASIONAL_FESTIVAL": "festival",
    "ASTROLOGY_HEALING": "healing",
    "GIFTING": "gifting",
}
CATEGORY_LABELS = {
    "LOOSE_RUDRAKSHA_BEAD": "Loose Bead",
    "RUDRAKSHA_BRACELET": "Bracelet",
    "RUDRAKSHA_MALA": "Mala",
    "RUDRAKSHA_PENDANT": "Pendant",
    "RUDRAKSHA_RING": "Ring",
    "RUDRAKSHA_EARRINGS": "Earrings",
    "RUDRAKSHA_GEMSTONE_JEWELLERY": "Gemstone Jewellery",
    "RUDRAKSHA_GIFT_SET": "Gift Set",
}


class RudrakshaAttributesV1(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_category: ProductCategory | None = None
    product_category_other: str | None = Field(default=None, max_length=120)
    intended_wear_types: list[WearType] = Field(default_factory=list)

    mukhi_type: MukhiType | None = None
    mukhi_other: str | None = Field(default=None, max_length=120)

    origin: Origin | None = None
    origin_other: str | None = Field(default=None, max_length=120)
    rudraksha_shape: Shape | None = None

    bead_size_min_mm: float | None = Field(default=None, gt=0)
    bead_size_max_mm: float | None = Field(default=None, gt=0)
    number_of_beads: int | None = Field(default=None, gt=0)

    surface_condition: Literal["NATURAL_UNPOLISHED", "LIGHTLY_CLEANED_NO_OIL", "OIL_TREATED", "POLISHED"] | None = None
    authenticity_status: Literal["NATURAL_RUDRAKSHA", "CULTIVATED", "LAB_PROCESSED"] | None = None
    certification_available: bool | None = None
    xray_mukhi_verified: bool | None = None

    jewellery_type: Literal["BRACELET", "NECKLACE_MALA", "PENDANT", "RING", "EARRINGS"] | None = None
    metal_used: Literal["SILVER", "GOLD", "PANCHDHATU", "THREAD_CORD", "STAINLESS_STEEL", "OTHER"] | None = None
    metal_purity: str | None = Field(default=None, max_length=40)
    metal_weight_gm: float | None = Field(default=None, gt=0)

    packaging_type: Literal["CLOTH_POUCH", "WOODEN_BOX", "PREMIUM_GIFT_BOX"] | None = None

    product_title: str | None = Field(default=None, max_length=200)
    short_description: str | None = Field(default=None, max_length=500)
    detailed_description: str | None = Field(default=None, max_length=10_000)

    @model_validator(mode="after")
    def validate_sizes(self) -> "RudrakshaAttributesV1":
        lo, hi = self.bead_size_min_mm, self.bead_size_max_mm
        if lo is not None and hi is not None and lo > hi:
            raise ValueError("bead_size_min_mm must not exceed bead_size_max_mm")
        return self


class RudrakshaAdapter(ModelBackedAdapter):
    key = "rudraksha"
    label = "Rudraksha"
    sku_prefix = "8165RD"
    default_tags = ("rudraksha",)
    default_fields = ("product_category", "mukhi_type", "origin", "jewellery_type", "metal_used", "packaging_type")
    required_for_submit = ("product_category", "mukhi_type")
    attributes_model = RudrakshaAttributesV1

    def display_title(self, attributes: dict[str, Any]) -> str | None:
        if attributes.get("product_title"):
            return attributes["product_title"]

        parts: list[str] = []
        mukhi = attributes.get("mukhi_type")
        if mukhi and mukhi != "OTHER":
            parts.append(humanize(mukhi))
        origin = attributes.get("origin")
        if origin and origin != "OTHER":
            parts.append(humanize(origin))
        parts.append("Rudraksha")
        category = attributes.get("product_category")
        if category in CATEGORY_LABELS:
            parts.append(CATEGORY_LABELS[category])
        return " ".join(parts)

    def derive_tags(self, attributes: dict[str, Any]) -> list[str]:
        tags: list[str] = list(self.default_tags)
        tags.append(MUKHI_TAGS.get(attributes.get("mukhi_type") or "", ""))
        tags.append(ORIGIN_TAGS.get(attributes.get("origin") or "", ""))
        tags.append(SHAPE_TAGS.get(attributes.get("rudraksha_shape") or "", ""))
        tags.extend(WEAR_TAGS.get(w, "") for w in attributes.get("intended_wear_types") or [])
        return uniq_tags(tags)

    def index_facets(self, attributes: dict[str, Any]) -> dict[str, str]:
        facets: dict[str, str] = {}
        if attributes.get("product_category"):
            facets["category"] = attributes["product_category"]
        if attributes.get("mukhi_type"):
            facets["mukhi"] = attributes["mukhi_type"]
        return facets
