import pytest
from pydantic import ValidationError

from app.domains.registry import get_domain_adapter, supported_domains


def test_registry_knows_three_domains():
    assert supported_domains() == ["gemstone-jewellery", "gemstones", "rudraksha"]
    assert get_domain_adapter(" Rudraksha ").key == "rudraksha"
    with pytest.raises(KeyError):
        get_domain_adapter("natural-diamonds")


def test_sku_prefixes():
    assert get_domain_adapter("rudraksha").sku_prefix == "8165RD"
    assert get_domain_adapter("gemstone-jewellery").sku_prefix == "8165GJ"
    assert get_domain_adapter("gemstones").sku_prefix == "8165GS"


def test_rudraksha_title_tags_and_facets():
    a = get_domain_adapter("rudraksha")
    attrs = a.parse_attributes(
        {
            "product_category": "RUDRAKSHA_MALA",
            "mukhi_type": "5_MUKHI",
            "origin": "NEPAL",
            "intended_wear_types": ["SPIRITUAL_JAPA"],
            "seller_note": "kept as is",
        }
    )
    assert attrs["seller_note"] == "kept as is"
    assert a.display_title(attrs) == "5 Mukhi Nepal Rudraksha Mala"
    assert a.derive_tags(attrs) == ["rudraksha", "5mukhi", "nepalrudraksha", "japa"]
    assert a.index_facets(attrs) == {"category": "RUDRAKSHA_MALA", "mukhi": "5_MUKHI"}
    assert a.missing_for_submit(attrs) == []
    assert a.missing_for_submit({}) == ["product_category", "mukhi_type"]


def test_rudraksha_rejects_inverted_bead_sizes():
    with pytest.raises(ValidationError):
        get_domain_adapter("rudraksha").parse_attributes({"bead_size_min_mm": 9, "bead_size_max_mm": 6})


def test_jewellery_titles():
    a = get_domain_adapter("gemstone-jewellery")
    assert a.display_title({"nature": "NATURAL", "type": "STRING", "stone_name": "amethyst"}) == "Natural Amethyst String"
    assert a.display_title({"nature": "ARTIFICIAL", "type": "NECKLACE", "look_name": "ruby look"}) == "Ruby Look Necklace"
    assert a.display_title({"nature": "NATURAL"}) is None


def test_jewellery_natural_needs_stone_name():
    a = get_domain_adapter("gemstone-jewellery")
    assert a.missing_for_submit({"nature": "NATURAL", "type": "RING"}) == ["stone_name"]
    assert a.missing_for_submit({"nature": "ARTIFICIAL", "type": "RING"}) == []


def test_jewellery_rejects_non_positive_sizes():
    with pytest.raises(ValidationError):
        get_domain_adapter("gemstone-jewellery").parse_attributes({"bead_size_mm": 0})


def test_gemstone_title_and_facets():
    a = get_domain_adapter("gemstones")
    attrs = a.parse_attributes(
        {"stone_type": "YELLOW_SAPPHIRE", "weight_carat": 5.25, "shape_cut": "OVAL", "origin": "Sri Lanka", "treatment_status": "NOT_DEFINED"}
    )
    assert a.display_title(attrs) == "5.25 ct Yellow Sapphire (Oval)"
    assert a.index_facets(attrs) == {"category": "YELLOW_SAPPHIRE", "shape": "OVAL", "origin": "Sri Lanka"}
    tags = a.derive_tags(attrs)
    assert tags[:2] == ["gemstone", "yellow_sapphire"]
    assert "sri-lanka" in tags
    assert "not_defined" not in tags
