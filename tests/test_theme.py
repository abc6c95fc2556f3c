"""Unit tests for theme document decoding and file providers."""

from __future__ import annotations

import typing as typ

import pytest

from storefront_pages.theme import (
    DirectoryThemeFileProvider,
    MappingThemeFileProvider,
    Theme,
    ThemeDocumentError,
    ThemeFiles,
    decode_json_document,
    parse_json_template,
    parse_section_instance,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_decode_strips_leading_comment() -> None:
    """Generated theme files start with a block comment that must be ignored."""
    document = decode_json_document('/* auto-generated */\n{"order": []}')
    assert document == {"order": []}


@pytest.mark.parametrize("text", ["", "   ", "{not json"])
def test_decode_rejects_invalid_documents(text: str) -> None:
    with pytest.raises(ThemeDocumentError):
        decode_json_document(text)


def test_parse_json_template_defaults_order_to_section_keys() -> None:
    template = parse_json_template(
        "index",
        {"sections": {"b": {"type": "banner"}, "a": {"type": "hero"}}},
    )
    assert template.order == ["b", "a"], "order should follow key order"
    assert template.layout is None
    assert template.wrapper is None


def test_parse_json_template_keeps_layout_false_and_wrapper() -> None:
    template = parse_json_template(
        "product",
        {"sections": {}, "order": [], "layout": False, "wrapper": "main.page"},
    )
    assert template.layout is False, "layout false disables the layout"
    assert template.wrapper == "main.page"


def test_parse_json_template_rejects_non_objects() -> None:
    with pytest.raises(ThemeDocumentError):
        parse_json_template("index", ["hero"])


def test_parse_section_instance_keeps_extra_keys_and_block_order() -> None:
    instance = parse_section_instance(
        "hero",
        {
            "type": "hero",
            "title": "Flat title",
            "blocks": [{"id": "x", "type": "text"}, {"type": "image"}],
            "disabled": True,
        },
    )
    assert instance.extra == {"title": "Flat title"}
    assert instance.block_order == ["x", "1"], "list blocks use id or position"
    assert instance.blocks["1"].type == "image"
    assert instance.disabled


def test_section_instance_without_type() -> None:
    assert parse_section_instance("ghost", {"settings": {}}).type is None


def test_mapping_provider_scopes_files_per_theme() -> None:
    """Theme-specific entries shadow shared files and stay private."""
    provider = MappingThemeFileProvider(
        {"templates/index.liquid": "shared"},
        themes={("s1", "t1"): {"templates/index.liquid": "own"}},
    )
    assert provider.read("s1", "t1", "templates/index.liquid") == b"own"
    assert provider.read("s2", "t1", "templates/index.liquid") == b"shared"
    assert provider.read("s1", "t1", "../secrets") is None
    assert not provider.exists("s1", "t1", "templates/missing.liquid")


def test_mapping_provider_lists_direct_children() -> None:
    provider = MappingThemeFileProvider(
        {
            "locales/en.json": "{}",
            "locales/en/sections/hero.json": "{}",
            "templates/index.json": "{}",
        }
    )
    assert provider.list("s", "t", "locales") == ["locales/en.json"]


def test_directory_provider_reads_store_theme_tree(tmp_path: Path) -> None:
    """Files live under ``<root>/<store>/<theme>/``."""
    theme_dir = tmp_path / "s1" / "t1" / "sections"
    theme_dir.mkdir(parents=True)
    (theme_dir / "hero.liquid").write_text("<h1>Hi</h1>", encoding="utf-8")
    (tmp_path / "outside.txt").write_text("secret", encoding="utf-8")

    provider = DirectoryThemeFileProvider(tmp_path)
    files = ThemeFiles(provider, Theme("s1", "t1"))
    assert files.read_text("sections/hero.liquid") == "<h1>Hi</h1>"
    assert files.exists("sections/hero.liquid")
    assert files.list("sections") == ["sections/hero.liquid"]
    assert files.read_text("../../outside.txt") is None, "paths must stay in the theme"
    assert files.read_text("sections/absent.liquid") is None
