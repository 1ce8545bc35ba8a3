import pytest

from stroop_lab.catalog import Catalog, Category, catalog_from_dict


def test_catalog_lookups():
    catalog = catalog_from_dict(
        {
            "red": {"color": "#f43f5e", "key": "r"},
            "green": {"color": "#34d399", "key": "g"},
            "yellow": "#fbbf24",
        }
    )

    assert catalog.names == ["red", "green", "yellow"]
    assert catalog.colors == ["#f43f5e", "#34d399", "#fbbf24"]
    assert catalog.color_of("green") == "#34d399"
    assert catalog.category_for_color("#F43F5E").name == "red"
    assert catalog.category_for_color("#000000") is None
    assert catalog.category_for_key("G").name == "green"
    assert catalog.category_for_key("y") is None  # yellow has no key
    assert "red" in catalog
    assert "blue" not in catalog
    assert len(catalog) == 3

    with pytest.raises(KeyError):
        catalog.color_of("blue")


def test_catalog_validation():
    with pytest.raises(ValueError):
        Catalog(categories=(Category("red", "#ff0000"),))

    with pytest.raises(ValueError):
        Catalog(categories=(Category("red", "#ff0000"), Category("blue", "#ff0000")))

    with pytest.raises(ValueError):
        Catalog(
            categories=(
                Category("red", "#ff0000", key="x"),
                Category("blue", "#0000ff", key="x"),
            )
        )


def test_configured_keys_match_case_insensitive():
    catalog = catalog_from_dict(
        {
            "red": {"color": "#f43f5e", "key": "R"},
            "green": {"color": "#34d399", "key": "g"},
        }
    )

    assert catalog.get("red").key == "r"
    assert catalog.category_for_key("r").name == "red"
    assert catalog.category_for_key("R").name == "red"
