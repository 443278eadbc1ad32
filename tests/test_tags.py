from app.services.tags import normalize_tag, uniq_tags


def test_normalize_tag():
    assert normalize_tag("  #Red Coral ") == "red-coral"
    assert normalize_tag("##5 Mukhi!!") == "5-mukhi"
    assert normalize_tag("daily_wear") == "daily_wear"
    assert normalize_tag("--Gift--Set--") == "gift-set"
    assert normalize_tag(None) == ""


def test_uniq_tags_keeps_first_occurrence():
    assert uniq_tags(["Red", "red", "#RED", "", "  ", "blue", "Red Coral"]) == ["red", "blue", "red-coral"]
