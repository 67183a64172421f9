import random

import pytest

from browser_fakes import FakeElement, FakePage, FixedRng

from webpilot.browser.click_resolver import AmbiguousClickResolver


def _page_with(selector, *elements):
    page = FakePage("https://shop.test/", "Shop")
    page.add_elements(selector, *elements)
    return page


@pytest.mark.asyncio
async def test_no_matches_reports_element_not_found():
    page = FakePage("https://shop.test/", "Shop")
    result = await AmbiguousClickResolver(page).click(".buy")

    assert result.is_error
    assert result.error_code == "element_not_found"
    assert result.text == "No elements found matching selector: .buy"


@pytest.mark.asyncio
@pytest.mark.parametrize("nth", [3, 5, -1])
async def test_out_of_range_nth_fails_without_clicking(nth):
    elements = [FakeElement(), FakeElement(), FakeElement()]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page).click(".item", nth=nth)

    assert result.is_error
    assert result.text == (
        f"Invalid nth value: {nth}. Must be between 0 and 2 (found 3 elements)"
    )
    assert page.clicked == []


@pytest.mark.asyncio
async def test_out_of_range_nth_is_rejected_for_single_match():
    page = _page_with(".item", FakeElement())

    result = await AmbiguousClickResolver(page).click(".item", nth=1)

    assert result.is_error
    assert "Must be between 0 and 0" in result.text
    assert page.clicked == []


@pytest.mark.asyncio
async def test_single_match_is_clicked_directly():
    element = FakeElement()
    page = _page_with("#go", element)

    result = await AmbiguousClickResolver(page, element_timeout_ms=1234).click("#go")

    assert not result.is_error
    assert result.text == "Clicked on #go (element 0 of 1)"
    assert result.payload == {"index": 0, "count": 1, "selection": "single"}
    assert element.clicks == 1
    assert page.waited_for[0] == ("#go", None, 1234)


@pytest.mark.asyncio
async def test_single_hidden_match_is_not_interactable():
    page = _page_with("#go", FakeElement(visible=False))

    result = await AmbiguousClickResolver(page).click("#go")

    assert result.is_error
    assert result.error_code == "element_not_interactable"
    assert page.clicked == []


@pytest.mark.asyncio
async def test_explicit_nth_clicks_exactly_that_element():
    elements = [FakeElement(), FakeElement(), FakeElement()]
    page = _page_with(".item", *elements)
    rng = FixedRng(0)

    result = await AmbiguousClickResolver(page, rng=rng).click(".item", nth=1)

    assert not result.is_error
    assert page.clicked == [(".item", 1)]
    assert result.payload["selection"] == "explicit"
    assert "specified nth=1" in result.text
    assert rng.calls == []


@pytest.mark.asyncio
async def test_explicit_nth_not_clickable_is_never_substituted():
    elements = [FakeElement(), FakeElement(enabled=False), FakeElement()]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page).click(".item", nth=1)

    assert result.is_error
    assert result.error_code == "element_not_interactable"
    assert page.clicked == []


@pytest.mark.asyncio
async def test_random_choice_clicks_selected_element():
    elements = [FakeElement(), FakeElement(), FakeElement()]
    page = _page_with(".item", *elements)
    rng = FixedRng(2)

    result = await AmbiguousClickResolver(page, rng=rng).click(".item")

    assert not result.is_error
    assert rng.calls == [3]
    assert page.clicked == [(".item", 2)]
    assert result.payload == {"index": 2, "count": 3, "selection": "random"}
    assert "randomly selected (2 of 3)" in result.text


@pytest.mark.asyncio
async def test_random_choice_always_stays_within_match_count():
    elements = [FakeElement() for _ in range(4)]
    page = _page_with(".item", *elements)
    resolver = AmbiguousClickResolver(page, rng=random.Random(7))

    for _ in range(25):
        result = await resolver.click(".item")
        assert not result.is_error
        assert 0 <= result.payload["index"] < 4

    assert sum(element.clicks for element in elements) == 25


@pytest.mark.asyncio
async def test_hidden_random_choice_falls_back_to_first_clickable():
    elements = [FakeElement(visible=False), FakeElement(enabled=False), FakeElement()]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page, rng=FixedRng(0)).click(".item")

    assert not result.is_error
    assert page.clicked == [(".item", 2)]
    assert result.payload["selection"] == "fallback"


@pytest.mark.asyncio
async def test_no_clickable_matches_is_ambiguous():
    elements = [FakeElement(visible=False), FakeElement(visible=False)]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page, rng=FixedRng(1)).click(".item")

    assert result.is_error
    assert result.error_code == "ambiguous_match"
    assert result.text == "No clickable elements found among 2 matches for .item"


@pytest.mark.asyncio
async def test_failing_random_choice_falls_back_to_first_match():
    elements = [FakeElement(), FakeElement(wait_error=TimeoutError("detached"))]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page, rng=FixedRng(1)).click(".item")

    assert not result.is_error
    assert page.clicked == [(".item", 0)]
    assert result.payload == {"index": 0, "count": 2, "selection": "fallback"}


@pytest.mark.asyncio
async def test_both_random_and_first_failing_reports_both_errors():
    elements = [
        FakeElement(click_error=RuntimeError("covered")),
        FakeElement(wait_error=TimeoutError("detached")),
    ]
    page = _page_with(".item", *elements)

    result = await AmbiguousClickResolver(page, rng=FixedRng(1)).click(".item")

    assert result.is_error
    assert "Random target error: detached" in result.text
    assert "Fallback error: covered" in result.text


@pytest.mark.asyncio
async def test_strict_mode_violation_suggests_nth():
    violation = Exception("strict mode violation: locator('a') resolved to 4 elements")
    page = _page_with("a", FakeElement(click_error=violation))

    result = await AmbiguousClickResolver(page).click("a")

    assert result.is_error
    assert result.error_code == "ambiguous_match"
    assert "Found 4 matching elements" in result.text
    assert "nth=0" in result.text


@pytest.mark.asyncio
async def test_nth_zero_on_single_match_reports_explicit_selection():
    element = FakeElement()
    page = _page_with("#go", element)

    result = await AmbiguousClickResolver(page).click("#go", nth=0)

    assert not result.is_error
    assert result.text == "Clicked on #go (element 0 of 1 - specified nth=0)"
    assert result.payload == {"index": 0, "count": 1, "selection": "explicit"}
    assert element.clicks == 1
