"""Unit tests for render scopes and the recursion depth guard."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront_pages.config import EngineConfig
from storefront_pages.rendering.blocks import BlockCollection
from storefront_pages.rendering.context import (
    RenderContext,
    build_page_context,
    create_child_scope,
)
from storefront_pages.rendering.errors import RecursionLimitExceeded
from storefront_pages.rendering.guard import RenderDepthGuard, current_depth
from storefront_pages.storefront import PageRequest, RenderedPage, StorefrontRenderer
from storefront_pages.theme import MISSING, MappingThemeFileProvider, Theme


def test_child_scope_reads_through_and_writes_locally() -> None:
    parent = RenderContext({"shop": {"name": "Acme"}, "settings": {"a": 1}})
    parent.registers["settings"] = {"a": 1}
    child = create_child_scope(parent, {"settings": {"a": 2}})
    child.set("local", True)
    child.registers["settings"] = {"a": 2}

    assert child.get("shop") == {"name": "Acme"}
    assert child.get("settings") == {"a": 2}
    assert parent.get("settings") == {"a": 1}, "child bindings must not leak"
    assert "local" not in parent
    assert parent.registers["settings"] == {"a": 1}, "registers are copied"


def test_sibling_scopes_are_isolated() -> None:
    parent = RenderContext({"x": 0})
    first = create_child_scope(parent, {"section": "a"})
    second = create_child_scope(parent, {})
    assert second.get("section") is None
    assert first.get("section") == "a"


def test_resolve_dotted_paths() -> None:
    blocks = BlockCollection([{"id": "b1", "type": "text"}, {"id": "b2", "type": "image"}])
    context = RenderContext({"section": {"blocks": blocks, "items": ["zero", "one"]}})
    assert context.resolve("section.items.1") == "one"
    assert context.resolve("section.blocks.size") == 2
    assert context.resolve("section.blocks.0.id") == "b1"
    assert context.resolve("section.blocks.1.type") == "image"
    assert context.resolve("section.blocks.5") is MISSING
    assert context.resolve("section.blocks.b1") == {"id": "b1", "type": "text"}
    assert context.resolve("section.nothing") is MISSING
    assert context.resolve("absent") is MISSING


def test_build_page_context_binds_storefront_variables() -> None:
    theme = Theme("s1", "t1", name="Dawn", store_name="Loja", store_domain="loja.example")
    context = build_page_context(
        theme, path="/products/shirt", template_name="product", locale="en"
    )
    assert context.resolve("shop.name") == "Loja"
    assert context.resolve("shop.url") == "https://loja.example"
    assert context.resolve("theme.name") == "Dawn"
    assert context.resolve("request.page_type") == "product"
    assert context.resolve("template.name") == "product"
    assert context.registers["theme_ref"] is theme


def test_guard_counts_depth_and_resets() -> None:
    guard = RenderDepthGuard(limit=2)
    with guard.enter("outer"):
        assert current_depth() == 1
        with guard.enter("inner"):
            assert current_depth() == 2
        assert current_depth() == 1
    assert current_depth() == 0


def test_guard_refuses_to_exceed_limit() -> None:
    guard = RenderDepthGuard(limit=1)
    with guard.enter("page"), pytest.raises(RecursionLimitExceeded) as excinfo:
        with guard.enter("section"):
            pass  # pragma: no cover - never entered
    assert excinfo.value.diagnostic() == (
        "<!-- Maximum template rendering depth (1) exceeded -->"
    )
    assert current_depth() == 0


def test_guard_resets_after_exceptions() -> None:
    guard = RenderDepthGuard()
    with pytest.raises(RuntimeError), guard.enter("boom"):
        raise RuntimeError
    assert current_depth() == 0


RECURSIVE_THEME = {
    "templates/index.json": '{"sections": {"main": {"type": "main"}}}',
    "sections/main.liquid": "{{ rendezvous() }}{% render 'again' %}",
    "snippets/again.liquid": "<i></i>{% render 'again' %}",
}
CALM_THEME = {
    "templates/index.json": '{"sections": {"main": {"type": "main"}}}',
    "sections/main.liquid": "{{ rendezvous() }}{% render 'leaf' %}",
    "snippets/leaf.liquid": "<b>calm</b>",
}
DEPTH_DIAGNOSTIC = "<!-- Maximum template rendering depth (10) exceeded -->"


def _concurrent_renderer(barrier: threading.Barrier) -> StorefrontRenderer:
    provider = MappingThemeFileProvider(
        themes={("s1", "loop"): RECURSIVE_THEME, ("s1", "calm"): CALM_THEME}
    )
    renderer = StorefrontRenderer(provider, EngineConfig(environment="development"))

    def rendezvous() -> str:
        barrier.wait(timeout=5)
        return ""

    renderer.engine.register_global("rendezvous", rendezvous)
    return renderer


def _assert_isolated(recursive: str, calm: str) -> None:
    assert recursive.count(DEPTH_DIAGNOSTIC) == 1
    assert DEPTH_DIAGNOSTIC not in calm, "depth must not leak between renders"
    assert "<b>calm</b>" in calm


def test_depth_is_isolated_between_threads() -> None:
    """A render hitting the limit never affects a render running beside it."""
    renderer = _concurrent_renderer(threading.Barrier(2))
    with ThreadPoolExecutor(max_workers=2) as pool:
        recursive = pool.submit(renderer.render, Theme("s1", "loop"), PageRequest())
        calm = pool.submit(renderer.render, Theme("s1", "calm"), PageRequest())
        _assert_isolated(recursive.result().html, calm.result().html)
    assert current_depth() == 0


def test_depth_is_isolated_between_asyncio_tasks() -> None:
    renderer = _concurrent_renderer(threading.Barrier(2))

    async def render_both() -> list[RenderedPage]:
        return await asyncio.gather(
            asyncio.to_thread(renderer.render, Theme("s1", "loop"), PageRequest()),
            asyncio.to_thread(renderer.render, Theme("s1", "calm"), PageRequest()),
        )

    recursive, calm = asyncio.run(render_both())
    _assert_isolated(recursive.html, calm.html)
    assert current_depth() == 0
