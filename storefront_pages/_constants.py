"""Common literal values used across storefront_pages.

These constants keep theme directory names, slot variables, and wrapper
markup centralized so the renderers, the CLI, and tests can import the same
values without drifting. Intended for internal use within the storefront_pages
package.

Examples
--------
>>> from storefront_pages import _constants
>>> _constants.SECTION_ID_TEMPLATE.format(id="main-product")
'shopify-section-main-product'
>>> _constants.BLOCK_EDITOR_ATTRIBUTE.format(id="x1")
'data-shopify-editor-block="x1"'
"""

TEMPLATES_DIR = "templates"
SECTIONS_DIR = "sections"
SNIPPETS_DIR = "snippets"
LAYOUT_DIR = "layout"
LOCALES_DIR = "locales"
ASSETS_DIR = "assets"
SETTINGS_SCHEMA_PATH = "config/settings_schema.json"
SETTINGS_DATA_PATH = "config/settings_data.json"

CONTENT_TYPE = "text/html; charset=UTF-8"
CONTENT_SLOT = "content_for_layout"
HEADER_SLOT = "content_for_header"

SECTION_ID_TEMPLATE = "shopify-section-{id}"
BLOCK_EDITOR_ATTRIBUTE = 'data-shopify-editor-block="{id}"'

FALLBACK_LAYOUT = (
    "<!doctype html><html><head>{{ content_for_header }}</head>"
    "<body>{{ content_for_layout }}</body></html>"
)
NOT_FOUND_MARKUP = (
    '<div class="page-not-found"><h1>Page not found</h1>'
    "<p>The page you were looking for does not exist.</p></div>"
)
UNDER_CONSTRUCTION_MARKUP = (
    '<div class="page-under-construction"><h1>Page under construction</h1>'
    "<p>New content will be available here soon.</p></div>"
)
