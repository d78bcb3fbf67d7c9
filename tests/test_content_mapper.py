"""
Tests for the CaaSMapper component.
"""

import logging
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from caas_graph_engine.core.reference_resolver.config import RemoteProjectConfig
from caas_graph_engine.core.reference_resolver.content_mapper import CaaSMapper
from caas_graph_engine.core.reference_resolver.errors import ImageMapValueError, UnknownBodyContentError
from caas_graph_engine.core.reference_resolver.models import (
    CatalogPage,
    CustomMapperContext,
    Dataset,
    File,
    GCAPage,
    Image,
    ImageMap,
    ImageMapAreaCircle,
    ImageMapAreaRect,
    Link,
    Option,
    Page,
    Permission,
    ProjectProperties,
    Reference,
    Section,
)
from caas_graph_engine.core.reference_resolver.reference_registry import ReferenceRegistry


@pytest.fixture
def registry():
    return ReferenceRegistry("en_GB", [RemoteProjectConfig(id="media-hub", locale="de_DE")])


@pytest.fixture
def mapper(registry):
    return CaaSMapper(registry, "en_GB")


def text(value):
    return {"fsType": "CMS_INPUT_TEXT", "name": "text", "value": value}


class TestSimpleDataEntries:
    """Data entries that map to plain values or options."""

    def test_text_and_number_pass_through(self, mapper):
        assert mapper.map_data_entry(text("Hello"), ["x"]) == "Hello"
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_NUMBER", "value": 42}, ["x"]) == 42

    def test_combobox(self, mapper):
        entry = {"fsType": "CMS_INPUT_COMBOBOX", "value": {"identifier": "red", "label": "Red"}}
        assert mapper.map_data_entry(entry, ["x"]) == Option(key="red", value="Red")
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_COMBOBOX", "value": None}, ["x"]) is None

    def test_radiobutton_keeps_raw_value(self, mapper):
        value = {"identifier": "left", "label": "Left", "fsType": "Option"}
        option = mapper.map_data_entry({"fsType": "CMS_INPUT_RADIOBUTTON", "value": value}, ["x"])

        assert option.key == "left"
        assert option.value == "Left"
        assert option.extra == value

    def test_option(self, mapper):
        assert mapper.map_data_entry({"fsType": "Option", "identifier": "a", "label": "A"}, ["x"]) == Option("a", "A")

    def test_date(self, mapper):
        entry = {"fsType": "CMS_INPUT_DATE", "value": "2023-05-01T10:00:00Z"}
        assert mapper.map_data_entry(entry, ["x"]) == datetime(2023, 5, 1, 10, 0, tzinfo=timezone.utc)

    def test_invalid_date_is_logged(self, mapper, caplog):
        with caplog.at_level(logging.WARNING):
            assert mapper.map_data_entry({"fsType": "CMS_INPUT_DATE", "value": "yesterday"}, ["x"]) is None
        assert "Could not parse date" in caplog.text

    def test_toggle_defaults_to_false(self, mapper):
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_TOGGLE", "value": None}, ["x"]) is False
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_TOGGLE", "value": True}, ["x"]) is True

    def test_unknown_kind_passes_through(self, mapper):
        entry = {"fsType": "CMS_INPUT_FANCY", "value": {"anything": 1}}
        assert mapper.map_data_entry(entry, ["x"]) is entry

    def test_non_dict_entries_pass_through(self, mapper):
        assert mapper.map_data_entry(None, ["x"]) is None
        assert mapper.map_data_entry("plain", ["x"]) == "plain"

    def test_permission_groups(self, mapper):
        entry = {
            "fsType": "CMS_INPUT_PERMISSION",
            "name": "visibility",
            "value": [
                {
                    "allowed": [{"groupName": "Editors", "groupPath": "/Groups/Editors"}],
                    "forbidden": [{"groupName": "Guests", "groupPath": "/Groups/External/Guests"}],
                }
            ],
        }
        permission = mapper.map_data_entry(entry, ["x"])

        assert isinstance(permission, Permission)
        assert permission.value[0].allowed[0].group_id == "Editors"
        assert permission.value[0].forbidden[0].group_id == "Guests"
        assert permission.value[0].forbidden[0].group_path == "/Groups/External/Guests"

    def test_entries_keep_key_order(self, mapper):
        mapped = mapper.map_data_entries({"b": text("2"), "a": text("1"), "c": text("3")}, ["x"])
        assert list(mapped) == ["b", "a", "c"]


class TestReferenceEntries:
    """Entries that register references instead of recursing into them."""

    def test_media_reference_registers_placeholder(self, mapper, registry, media_ref):
        token = mapper.map_data_entry(media_ref("m1"), ["p1.en_GB", "data", "image"])

        assert token == "[REFERENCED-ITEM-m1.en_GB]"
        assert registry.paths("m1.en_GB") == [["p1.en_GB", "data", "image"]]

    def test_media_reference_with_remote_project(self, mapper, media_ref):
        token = mapper.map_data_entry(media_ref("m1", remote_project="media-hub"), ["x"])
        assert token == "[REFERENCED-REMOTE-ITEM-media-hub#m1.de_DE]"

    def test_media_reference_inherits_owner_remote_project(self, mapper, media_ref):
        token = mapper.map_data_entry(media_ref("m1"), ["x"], "de_DE", "media-hub")
        assert token == "[REFERENCED-REMOTE-ITEM-media-hub#m1.de_DE]"

    def test_page_reference_is_an_edge_descriptor(self, mapper, registry):
        entry = {"fsType": "FS_REFERENCE", "value": {"fsType": "PageRef", "identifier": "p2", "section": "s1"}}
        reference = mapper.map_data_entry(entry, ["x"])

        assert reference == Reference(reference_id="p2", reference_type="PageRef", section="s1")
        assert len(registry) == 0

    def test_empty_reference(self, mapper):
        assert mapper.map_data_entry({"fsType": "FS_REFERENCE", "value": None}, ["x"]) is None

    def test_dataset_reference(self, mapper, registry, dataset_ref):
        token = mapper.map_data_entry(dataset_ref("d1"), ["p1.en_GB", "data", "related"])

        assert token == "[REFERENCED-ITEM-d1.en_GB]"
        assert registry.referenced_ids() == ["d1.en_GB"]

    def test_dataset_list(self, mapper):
        entry = {"fsType": "FS_DATASET", "value": [text("a"), text("b")]}
        assert mapper.map_data_entry(entry, ["x"]) == ["a", "b"]

    def test_index_skips_records_without_identifier(self, mapper, registry):
        entry = {
            "fsType": "FS_INDEX",
            "dapType": "DatasetDataAccessPlugin",
            "value": [
                {"value": {"target": {"identifier": "d1"}}},
                {"value": {}},
                {"value": {"target": {"identifier": "d3"}}},
            ],
        }
        tokens = mapper.map_data_entry(entry, ["p", "index"])

        assert tokens == ["[REFERENCED-ITEM-d1.en_GB]", "[REFERENCED-ITEM-d3.en_GB]"]
        assert registry.paths("d3.en_GB") == [["p", "index", 2]]

    def test_index_of_other_plugins_passes_through(self, mapper):
        entry = {"fsType": "FS_INDEX", "dapType": "SomethingElse", "value": []}
        assert mapper.map_data_entry(entry, ["x"]) is entry

    def test_list_children_get_indexed_paths(self, mapper, registry, media_ref):
        entry = {"fsType": "CMS_INPUT_LIST", "value": [text("a"), media_ref("m1")]}
        mapped = mapper.map_data_entry(entry, ["p", "items"])

        assert mapped == ["a", "[REFERENCED-ITEM-m1.en_GB]"]
        assert registry.paths("m1.en_GB") == [["p", "items", 1]]


class TestLinksAndCatalogs:
    """Links, catalogs and rich text."""

    def test_link(self, mapper):
        entry = {
            "fsType": "CMS_INPUT_LINK",
            "value": {
                "template": {"uid": "internal_link"},
                "formData": {"lt_text": text("Go")},
                "metaFormData": {},
            },
        }
        assert mapper.map_data_entry(entry, ["x"]) == Link(template="internal_link", data={"lt_text": "Go"}, meta={})

    def test_catalog_cards(self, mapper, registry, media_ref):
        entry = {
            "fsType": "FS_CATALOG",
            "value": [
                {
                    "identifier": "card1",
                    "template": {"fsType": "SectionTemplate", "uid": "teaser", "name": "Teaser"},
                    "formData": {"st_image": media_ref("m1")},
                },
                {
                    "identifier": "card2",
                    "template": {"fsType": "PageTemplate", "uid": "landing"},
                    "formData": {"pt_title": text("Title")},
                },
                {"identifier": "card3", "template": {"fsType": "Other"}},
            ],
        }
        cards = mapper.map_data_entry(entry, ["p", "cards"])

        assert isinstance(cards[0], Section)
        assert cards[0].section_type == "teaser"
        assert cards[0].data == {"st_image": "[REFERENCED-ITEM-m1.en_GB]"}
        assert registry.paths("m1.en_GB") == [["p", "cards", 0, "data", "st_image"]]
        assert cards[1] == CatalogPage(id="card2", preview_id="card2.en_GB", template="landing", data={"pt_title": "Title"})
        assert cards[2] == entry["value"][2]

    def test_rich_text_links_are_mapped(self, mapper, registry):
        markup = (
            '<div>Hello <link type="internal_link" data=\'{"lt_text": {"fsType": "CMS_INPUT_TEXT", "value": "Go"}, '
            '"lt_media": {"fsType": "FS_REFERENCE", "value": {"fsType": "Media", "identifier": "m9"}}}\'>click</link></div>'
        )
        elements = mapper.map_data_entry({"fsType": "CMS_INPUT_DOM", "value": markup}, ["p", "text"])

        link = elements[0].content[1]
        assert link.type == "link"
        assert link.data == Link(
            template="internal_link",
            data={"lt_text": "Go", "lt_media": "[REFERENCED-ITEM-m9.en_GB]"},
            meta={},
        )
        assert registry.paths("m9.en_GB") == [["p", "text", 0, "content", 1, "data", "data", "lt_media"]]

    def test_empty_rich_text(self, mapper):
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_DOMTABLE", "value": ""}, ["x"]) == []


class TestImageMaps:
    """Image-map entries."""

    @pytest.fixture
    def image_map_entry(self):
        return {
            "fsType": "CMS_INPUT_IMAGEMAP",
            "value": {
                "media": {"identifier": "m1"},
                "resolution": {"uid": "teaser"},
                "areas": [
                    {
                        "areaType": "RECT",
                        "leftTop": {"x": 0, "y": 0},
                        "rightBottom": {"x": 10, "y": 10},
                        "link": {"template": {"uid": "area_link"}, "formData": {"lt_text": text("Go")}},
                    },
                    {"areaType": "CIRCLE", "center": {"x": 5, "y": 5}, "radius": 3},
                    {"areaType": "TRIANGLE"},
                ],
            },
        }

    def test_image_map(self, mapper, registry, image_map_entry):
        image_map = mapper.map_data_entry(image_map_entry, ["p", "map"])

        assert isinstance(image_map, ImageMap)
        assert image_map.media == "IMAGEMAP___teaser___m1.en_GB"
        assert registry.paths("m1.en_GB") == [["p", "map", "media"]]
        assert len(image_map.areas) == 2
        assert isinstance(image_map.areas[0], ImageMapAreaRect)
        assert image_map.areas[0].link.data == {"lt_text": "Go"}
        assert isinstance(image_map.areas[1], ImageMapAreaCircle)
        assert image_map.areas[1].link is None

    def test_empty_image_map_entry(self, mapper):
        assert mapper.map_data_entry({"fsType": "CMS_INPUT_IMAGEMAP", "value": None}, ["x"]) is None

    def test_image_map_without_value_raises(self, mapper):
        with pytest.raises(ImageMapValueError, match="ImageMap value is null"):
            mapper.map_image_map({"fsType": "CMS_INPUT_IMAGEMAP", "value": None}, ["x"])


class TestCustomMapper:
    """The custom mapping hook."""

    def test_hook_result_wins(self, registry):
        hook = Mock(side_effect=lambda entry, path, context: "custom" if entry["fsType"] == "CMS_INPUT_TEXT" else None)
        mapper = CaaSMapper(registry, "en_GB", custom_mapper=hook)

        mapped = mapper.map_data_entries({"a": text("x"), "b": {"fsType": "CMS_INPUT_NUMBER", "value": 1}}, ["p"])

        assert mapped == {"a": "custom", "b": 1}
        assert hook.call_count == 2
        entry, path, context = hook.call_args_list[0].args
        assert path == ["p", "a"]
        assert isinstance(context, CustomMapperContext)

    def test_hook_can_register_references(self, registry):
        def hook(entry, path, context):
            if entry.get("fsType") == "CUSTOM_MEDIA":
                return context.register_referenced_item(entry["value"], path)
            return None

        mapper = CaaSMapper(registry, "en_GB", custom_mapper=hook)
        assert mapper.map_data_entry({"fsType": "CUSTOM_MEDIA", "value": "m5"}, ["p"]) == "[REFERENCED-ITEM-m5.en_GB]"


class TestEntities:
    """Top-level entities and page bodies."""

    def test_page_ref(self, mapper, registry, make_page_ref, media_ref):
        section = {
            "fsType": "Section",
            "identifier": "s1",
            "template": {"uid": "text_image"},
            "displayed": True,
            "formData": {"st_image": media_ref("m1")},
        }
        raw = make_page_ref("p1", form_data={"pt_title": text("Home")}, sections=[section])

        page = mapper.map_item(raw)

        assert isinstance(page, Page)
        assert page.id == "page-p1"
        assert page.ref_id == "p1"
        assert page.preview_id == "p1.en_GB"
        assert page.layout == "standard"
        assert page.data == {"pt_title": "Home"}
        assert page.meta_page_ref is None
        assert page.children[0].name == "content"
        assert page.children[0].children[0].displayed is True
        assert page.children[0].children[0].data == {"st_image": "[REFERENCED-ITEM-m1.en_GB]"}
        assert registry.paths("m1.en_GB") == [["p1.en_GB", "children", 0, "children", 0, "data", "st_image"]]

    def test_page_ref_meta(self, mapper, make_page_ref):
        raw = make_page_ref("p1", meta_page_ref={"md_robots": text("noindex")})
        assert mapper.map_item(raw).meta_page_ref == {"md_robots": "noindex"}

    def test_content2section(self, mapper, make_page_ref):
        content2section = {
            "fsType": "Content2Section",
            "identifier": "c2s",
            "template": {"uid": "products_list"},
            "entityType": "product",
            "schema": "products",
            "query": "all",
            "recordCountPerPage": 10,
        }
        page = mapper.map_item(make_page_ref("p1", sections=[content2section]))
        section = page.children[0].children[0]

        assert section.section_type == "products_list"
        assert section.data["entityType"] == "product"
        assert section.data["recordCountPerPage"] == 10

    def test_unknown_body_content_raises(self, mapper, make_page_ref):
        with pytest.raises(UnknownBodyContentError, match=r"fsType=\[Mystery\]"):
            mapper.map_item(make_page_ref("p1", sections=[{"fsType": "Mystery"}]))

    def test_dataset(self, mapper, make_dataset):
        dataset = mapper.map_item(make_dataset("d1", form_data={"tt_name": text("Chair")}))

        assert isinstance(dataset, Dataset)
        assert dataset.preview_id == "d1.en_GB"
        assert dataset.locale == "en_GB"
        assert dataset.entity_type == "product"
        assert dataset.template == "product"
        assert dataset.data == {"tt_name": "Chair"}

    def test_remote_dataset_references_stay_remote(self, mapper, registry, make_dataset, media_ref):
        raw = make_dataset("d1", form_data={"tt_image": media_ref("m1")}, locale="de_DE")
        dataset = mapper.map_item(raw, "de_DE", "media-hub")

        assert dataset.preview_id == "d1.de_DE"
        assert dataset.remote_project_id == "media-hub"
        assert dataset.data["tt_image"] == "[REFERENCED-REMOTE-ITEM-media-hub#m1.de_DE]"
        assert registry.paths("media-hub#m1.de_DE") == [["media-hub#d1.de_DE", "data", "tt_image"]]

    def test_gca_page(self, mapper):
        raw = {
            "fsType": "GCAPage",
            "identifier": "g1",
            "name": "footer",
            "template": {"uid": "footer"},
            "formData": {"gc_text": text("Imprint")},
            "metaFormData": {},
            "children": [],
        }
        gca_page = mapper.map_item(raw)

        assert isinstance(gca_page, GCAPage)
        assert gca_page.layout == "footer"
        assert gca_page.data == {"gc_text": "Imprint"}

    def test_project_properties(self, mapper):
        raw = {
            "fsType": "ProjectProperties",
            "identifier": "pp",
            "name": "props",
            "template": {"uid": "project_settings"},
            "formData": {"ps_title": text("Site")},
        }
        properties = mapper.map_item(raw)

        assert isinstance(properties, ProjectProperties)
        assert properties.data == {"ps_title": "Site"}

    def test_unknown_top_level_item_passes_through(self, mapper, caplog):
        raw = {"fsType": "Navigation", "identifier": "nav"}
        with caplog.at_level(logging.WARNING):
            assert mapper.map_item(raw, index=3) is raw
        assert "could not be mapped" in caplog.text


class TestMedia:
    """Media items and URL building."""

    def test_picture_in_release_mode(self, mapper, make_picture):
        raw = make_picture("m1")
        image = mapper.map_item(raw)

        assert isinstance(image, Image)
        assert image.preview_id == "m1.en_GB"
        assert image.resolutions["ORIGINAL"]["url"] == "https://media.example.com/m1/ORIGINAL"
        assert image.resolutions["ORIGINAL"]["width"] == 800

    def test_picture_in_preview_mode_adds_revision(self, registry, make_picture):
        mapper = CaaSMapper(registry, "en_GB", content_mode="preview")
        raw = make_picture("m1", revision=7)

        image = mapper.map_item(raw)

        assert image.resolutions["teaser"]["url"] == "https://media.example.com/m1/teaser?rev=7"
        assert raw["resolutionsMetaData"]["teaser"]["url"] == "https://media.example.com/m1/teaser"

    def test_build_media_url_appends_to_existing_query(self, registry):
        mapper = CaaSMapper(registry, "en_GB", content_mode="preview")
        assert mapper.build_media_url("https://x/y?w=1", 2) == "https://x/y?w=1&rev=2"

    def test_file(self, mapper):
        raw = {
            "fsType": "Media",
            "mediaType": "FILE",
            "identifier": "f1",
            "fileName": "brochure.pdf",
            "fileMetaData": {"size": 1024},
            "url": "https://media.example.com/f1",
        }
        media_file = mapper.map_item(raw)

        assert isinstance(media_file, File)
        assert media_file.file_name == "brochure.pdf"
        assert media_file.file_meta_data == {"size": 1024}

    def test_other_media_types_pass_through(self, mapper):
        raw = {"fsType": "Media", "mediaType": "VIDEO", "identifier": "v1"}
        assert mapper.map_item(raw) is raw
