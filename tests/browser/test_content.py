import pytest

from browser_fakes import FakePage

from webpilot.browser.content import (
    MAIN_CONTENT_LIMIT,
    ContentOptions,
    extract_structured_content,
    format_content,
    shape_content,
)


def _raw(**overrides):
    raw = {
        "title": "Example Domain",
        "url": "https://example.com/docs",
        "origin": "https://example.com",
        "metadata": {"description": "An example"},
        "headings": [
            {"level": 1, "tag": "h1", "text": "Example", "id": "top"},
            {"level": 2, "tag": "h2", "text": "Usage", "id": None},
            {"level": 3, "tag": "h3", "text": "   ", "id": None},
        ],
        "paragraphs": ["Short intro.", "Short intro.", "  "],
        "lists": [{"type": "ul", "items": ["one", " ", "two"]}],
        "links": [
            {"text": "Guide", "url": "https://example.com/guide", "inNavigation": False},
            {"text": "Other", "url": "https://other.org/", "inNavigation": False},
            {"text": "Relative", "url": "/about", "inNavigation": False},
        ],
        "mainContentText": "  Body text  ",
    }
    raw.update(overrides)
    return raw


def test_overlong_paragraphs_are_dropped_not_truncated():
    raw = _raw(paragraphs=["x" * 50, "short one"])

    content = shape_content(raw, ContentOptions(max_paragraph_length=10))

    assert content["paragraphs"] == ["short one"]


def test_duplicate_paragraphs_are_removed_only_when_requested():
    deduped = shape_content(_raw(), ContentOptions())
    kept = shape_content(_raw(), ContentOptions(deduplicate_content=False))

    assert deduped["paragraphs"] == ["Short intro."]
    assert kept["paragraphs"] == ["Short intro.", "Short intro."]


def test_headings_without_text_are_skipped():
    content = shape_content(_raw(), ContentOptions())

    assert [heading["text"] for heading in content["headings"]] == ["Example", "Usage"]
    assert content["headings"][0] == {"level": 1, "tag": "h1", "text": "Example", "id": "top"}


def test_lists_are_capped_and_blank_items_removed():
    many_items = [f"item {i}" for i in range(30)]
    raw = _raw(
        lists=[
            {"type": "ol", "items": many_items},
            {"type": "ul", "items": ["a"]},
            {"type": "ul", "items": ["  "]},
        ]
    )

    content = shape_content(raw, ContentOptions(max_list_items=1))

    assert len(content["lists"]) == 1
    assert content["lists"][0]["type"] == "ol"
    assert len(content["lists"][0]["items"]) == 20


def test_link_filtering_rules():
    raw = _raw(
        links=[
            {"text": "Guide", "url": "https://example.com/guide", "inNavigation": False},
            {"text": "Guide again", "url": "https://example.com/guide", "inNavigation": False},
            {"text": "Home", "url": "https://example.com/", "inNavigation": True},
            {"text": "Script", "url": "javascript:void(0)", "inNavigation": False},
            {"text": "", "url": "https://example.com/empty", "inNavigation": False},
            {"text": "x" * 250, "url": "https://example.com/long", "inNavigation": False},
            {"text": "Mail", "url": "mailto:me@example.com", "inNavigation": False},
            {"text": "Partner", "url": "https://partner.net/", "inNavigation": False},
        ]
    )

    content = shape_content(raw, ContentOptions())

    assert content["links"] == [
        {"text": "Guide", "url": "https://example.com/guide", "isExternal": False},
        {"text": "Partner", "url": "https://partner.net/", "isExternal": True},
    ]


def test_link_count_is_capped():
    links = [
        {"text": f"L{i}", "url": f"https://example.com/{i}", "inNavigation": False}
        for i in range(10)
    ]

    content = shape_content(_raw(links=links), ContentOptions(max_links=3))

    assert [link["text"] for link in content["links"]] == ["L0", "L1", "L2"]


def test_main_content_is_trimmed_and_truncated():
    content = shape_content(_raw(mainContentText="  " + "a" * 5000), ContentOptions())

    assert content["mainContentText"] == "a" * MAIN_CONTENT_LIMIT


def test_empty_sections_are_filtered_by_default():
    raw = _raw(paragraphs=[], lists=[], links=[])

    filtered = shape_content(raw, ContentOptions())
    unfiltered = shape_content(raw, ContentOptions(filter_empty_content=False))

    assert "paragraphs" not in filtered
    assert "lists" not in filtered
    assert "links" not in filtered
    assert unfiltered["paragraphs"] == []
    assert unfiltered["lists"] == []


def test_metadata_is_omitted_when_not_requested():
    content = shape_content(_raw(), ContentOptions(include_metadata=False))

    assert content["metadata"] == {}


@pytest.mark.asyncio
async def test_extract_passes_metadata_flag_to_page_script():
    page = FakePage("https://example.com/docs", "Example Domain")
    page.evaluate_result = _raw()

    content = await extract_structured_content(page, ContentOptions(include_metadata=False))

    assert page.evaluate_args == [{"includeMetadata": False}]
    assert content["title"] == "Example Domain"
    assert content["mainContentText"] == "Body text"


@pytest.mark.asyncio
async def test_extract_tolerates_non_mapping_script_result():
    page = FakePage("https://example.com/", "Example")
    page.evaluate_result = None

    content = await extract_structured_content(page)

    assert content["title"] == ""
    assert "headings" not in content


def test_format_content_renders_sections():
    content = shape_content(_raw(), ContentOptions())

    text = format_content(content)

    assert text.startswith("# Example Domain\n\n**URL:** https://example.com/docs\n")
    assert "## Headings\n- Example\n  - Usage\n" in text
    assert "## Main Content\nBody text\n" in text
    assert "## Key Paragraphs\n- Short intro.\n" in text
    assert "### List 1 (ul)\n- one\n- two\n" in text
    assert "- [Guide](https://example.com/guide)\n" in text
    assert "- [Other](https://other.org/) (external)" in text
    assert "- [Relative](/about)" in text
    assert "- [Relative](/about) (external)" not in text
    assert text.endswith("\n")


def test_format_content_limits_paragraphs():
    paragraphs = [f"Paragraph {i}" for i in range(8)]
    content = shape_content(_raw(paragraphs=paragraphs), ContentOptions())

    text = format_content(content)

    assert "- Paragraph 4" in text
    assert "- Paragraph 5" not in text


def test_text_coercion_handles_none_and_non_strings():
    from webpilot.browser.common import _as_text

    assert _as_text(None) == ""
    assert _as_text(42) == "42"
    assert _as_text("Example") == "Example"
