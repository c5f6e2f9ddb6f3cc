"""Tests for projecting catalog items into search documents."""

from datetime import date

import pytest

from catalog_search.config import Settings
from catalog_search.errors import MissingHierarchyData
from catalog_search.models import CatalogItem, Category, Classification, Image, ProductProperty
from catalog_search.projection import project_item, tokenize
from catalog_search.taxonomy import Taxonomy

CONFIG = Settings()


@pytest.fixture
def taxonomy():
    return Taxonomy(
        [
            Category(id=1, name="Categories", taxonomy="Categories", permalink="categories"),
            Category(id=2, name="Shoes", taxonomy="Categories", parent_id=1, permalink="categories/shoes"),
            Category(id=3, name="Bags", taxonomy="Categories", parent_id=1, permalink="categories/bags"),
            Category(id=4, name="Running", taxonomy="Categories", parent_id=2, permalink="categories/shoes/running"),
            Category(id=5, name="Hidden", taxonomy="Categories", parent_id=1, permalink="categories/hidden", visible=False),
            Category(id=6, name="Empty", taxonomy="Categories", parent_id=1, permalink=""),
            Category(id=10, name="Meta", taxonomy="Meta", permalink="meta"),
            Category(id=11, name="Featured", taxonomy="Meta", parent_id=10, permalink="meta/featured"),
        ]
    )


def _item(**overrides):
    fields = {
        "id": 42,
        "name": "Red Running Shoes",
        "description": "Lightweight trainers",
        "price": 59.9,
        "sku": "RRS-1",
        "slug": "red-running-shoes",
        "available_on": date(2024, 1, 2),
        "images": [
            Image(urls={"clp_small": "/s/1.jpg", "mini": "/m/1.jpg"}),
            Image(urls={"clp_small": "/s/2.jpg", "mini": "/m/2.jpg"}, hover=True),
        ],
    }
    fields.update(overrides)
    return CatalogItem(**fields)


def test_tokenize_stops_one_word_short():
    """Growing phrases never include the complete name."""

    assert tokenize("Red Running Shoes") == ["Red", "Running", "Shoes", "Red Running"]
    assert tokenize("Big Red Running Shoes") == [
        "Big",
        "Red",
        "Running",
        "Shoes",
        "Big Red",
        "Big Red Running",
    ]


def test_tokenize_short_names():
    assert tokenize("Shoes") == ["Shoes"]
    assert tokenize("Red Shoes") == ["Red", "Shoes"]
    assert tokenize("") == []
    assert tokenize(None) == []


def test_tokenize_splits_on_non_word_runs():
    assert tokenize("T-Shirt,  blue") == ["T", "Shirt", "blue", "T Shirt"]


def test_identity_and_media_fields(taxonomy):
    document = project_item(_item(), taxonomy, config=CONFIG)

    assert document["id"] == 42
    assert document["sku"] == "RRS-1"
    assert document["slug"] == "red-running-shoes"
    assert document["price"] == 59.9
    assert document["available_on"] == "2024-01-02"
    assert document["primary_image_url"] == "/s/1.jpg"
    assert document["hover_image_url"] == "/s/2.jpg"


def test_media_without_images(taxonomy):
    document = project_item(_item(images=[]), taxonomy, config=CONFIG)

    assert "primary_image_url" not in document
    assert document["hover_image_url"] == ""


def test_no_hover_image_is_empty_string(taxonomy):
    document = project_item(_item(images=[Image(urls={"clp_small": "/s/1.jpg"})]), taxonomy, config=CONFIG)

    assert document["hover_image_url"] == ""


def test_property_tokens_keep_order_and_duplicates(taxonomy):
    properties = [
        ProductProperty(name="color", value="red"),
        ProductProperty(name="size", value="M"),
        ProductProperty(name="color", value="red"),
    ]
    document = project_item(_item(properties=properties), taxonomy, config=CONFIG)

    assert document["property_tokens"] == ["color||red", "size||M", "color||red"]


def test_no_properties_omits_tokens(taxonomy):
    document = project_item(_item(), taxonomy, config=CONFIG)

    assert "property_tokens" not in document


def test_category_closure_counts_shared_ancestor_once(taxonomy):
    item = _item(classifications=[Classification(category_id=2), Classification(category_id=3)])
    document = project_item(item, taxonomy, config=CONFIG)

    assert document["category_ids"] == [1, 2, 3]
    assert document["category_names"] == "Shoes Categories Bags"


def test_category_closure_walks_to_root(taxonomy):
    item = _item(classifications=[Classification(category_id=4)])

    assert project_item(item, taxonomy, config=CONFIG)["category_ids"] == [1, 2, 4]


def test_no_classifications_omits_category_ids(taxonomy):
    document = project_item(_item(), taxonomy, config=CONFIG)

    assert "category_ids" not in document
    assert "category_names" not in document


def test_unknown_category_rejects_item(taxonomy):
    item = _item(classifications=[Classification(category_id=99)])

    with pytest.raises(MissingHierarchyData) as excinfo:
        project_item(item, taxonomy, config=CONFIG)
    assert excinfo.value.category_id == 99


def test_name_suggest_for_eligible_item(taxonomy):
    item = _item(
        meta_keywords="trainers, jogging",
        classifications=[Classification(position=1, category_id=2), Classification(position=2, category_id=11)],
    )
    suggest = project_item(item, taxonomy, config=CONFIG)["name_suggest"]

    assert suggest["input"] == ["Red", "Running", "Shoes", "Red Running", ["trainers", "jogging"]]
    assert suggest["output"] == "Red Running Shoes"
    assert suggest["payload"] == {
        "id": 42,
        "name": "Red Running Shoes",
        "available_on": "2024-01-02",
        "thumbnail_url": "/m/1.jpg",
        "categories": [{"name": "shoes", "id": 2}],
    }


def test_name_suggest_keywords_entry_is_empty_without_keywords(taxonomy):
    item = _item(classifications=[Classification(category_id=3)])
    suggest = project_item(item, taxonomy, config=CONFIG)["name_suggest"]

    assert suggest["input"][-1] == []


def test_ineligible_items_have_no_suggest_block(taxonomy):
    """Deep, hidden, meta and permalink-less categories do not qualify."""

    for category_id in (1, 4, 5, 6, 11):
        item = _item(meta_keywords="shoes", classifications=[Classification(category_id=category_id)])
        document = project_item(item, taxonomy, config=CONFIG)
        assert "name_suggest" not in document
        assert document["name"] == "Red Running Shoes"


def test_meta_taxonomy_name_is_case_insensitive(taxonomy):
    config = Settings(meta_taxonomy="META")
    item = _item(classifications=[Classification(category_id=11)])

    assert "name_suggest" not in project_item(item, taxonomy, config=config)


def test_variants_are_projected(taxonomy):
    item = _item(
        variants=[{"sku": "RRS-1-M", "option_values": [{"name": "m", "presentation": "Medium"}]}],
    )
    document = project_item(item, taxonomy, config=CONFIG)

    assert document["variants"] == [
        {"sku": "RRS-1-M", "option_values": [{"name": "m", "presentation": "Medium"}]}
    ]


def test_projection_does_not_mutate_item(taxonomy):
    item = _item(classifications=[Classification(category_id=4)])
    before = item.model_dump()
    project_item(item, taxonomy, config=CONFIG)

    assert item.model_dump() == before
