import pytest

from browser_fakes import FakeElement, FakePage

from webpilot.browser.search_resolver import (
    CONTENT_UPDATE_WAIT_MS,
    NO_BUTTON_METHOD,
    RETRY_BACKOFF_MS,
    SearchOptions,
    SearchResolver,
    SearchState,
)
from webpilot.browser.selectors import SEARCH_RESULT_SELECTOR


def _search_page():
    return FakePage("https://wiki.test/", "Wiki")


def _navigate_on_enter(page):
    page.key_handlers["Enter"] = lambda p: p.set_location("https://wiki.test/?q=python", "Results")


@pytest.mark.asyncio
async def test_enter_submission_with_navigation_completes():
    page = _search_page()
    box = FakeElement(value="old query")
    page.add_elements('input[name="q"]', box)
    _navigate_on_enter(page)

    outcome = await SearchResolver(page).run("python")

    assert outcome.state is SearchState.DONE
    assert outcome.used_selector == 'input[name="q"]'
    assert outcome.submit_method == "Enter key"
    assert outcome.url_changed
    assert outcome.final_url == "https://wiki.test/?q=python"
    assert box.value == "python"
    assert box.typed == [("python", 50)]
    assert page.key_presses == ["Backspace", "Enter"]
    assert outcome.report().startswith("Search completed successfully!\n")
    assert 'Search text: "python"' in outcome.report()
    assert "URL changed: Yes" in outcome.report()
    assert outcome.transitions == [
        ("finding_input", "typing"),
        ("typing", "submit_enter"),
        ("submit_enter", "done"),
    ]


@pytest.mark.asyncio
async def test_higher_ranked_selector_wins():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())
    page.add_elements('input[type="search"]', FakeElement())
    _navigate_on_enter(page)

    outcome = await SearchResolver(page).run("python")

    assert outcome.used_selector == 'input[type="search"]'


@pytest.mark.asyncio
async def test_keeps_existing_text_when_clearing_is_disabled():
    page = _search_page()
    box = FakeElement(value="py")
    page.add_elements('input[name="q"]', box)
    _navigate_on_enter(page)

    outcome = await SearchResolver(page, SearchOptions(clear_existing=False)).run("thon")

    # The typed text no longer equals the field value, so verification fails.
    assert outcome.state is SearchState.FAILED
    assert "Backspace" not in page.key_presses
    assert any("Text verification failed" in error for error in outcome.errors)


@pytest.mark.asyncio
async def test_verification_mismatch_moves_on_to_next_candidate():
    page = _search_page()
    dropping = FakeElement(type_transform=lambda text: text[:-1])
    page.add_elements('input[type="search"]', dropping)
    page.add_elements('input[name="q"]', FakeElement())
    _navigate_on_enter(page)

    outcome = await SearchResolver(page).run("python")

    assert outcome.succeeded
    assert outcome.used_selector == 'input[name="q"]'
    assert any(
        error == 'Text verification failed for input[type="search"]. Expected: "python", Got: "pytho"'
        for error in outcome.errors
    )
    assert ("typing", "finding_input") in outcome.transitions


@pytest.mark.asyncio
async def test_hidden_input_is_recorded_and_skipped():
    page = _search_page()
    page.add_elements('input[type="search"]', FakeElement(visible=False))
    page.add_elements("#search", FakeElement())
    _navigate_on_enter(page)

    outcome = await SearchResolver(page).run("python")

    assert outcome.used_selector == "#search"
    assert (
        'Element not interactable: input[type="search"] - visible: False, enabled: True'
        in outcome.errors
    )


@pytest.mark.asyncio
async def test_results_on_same_url_count_as_success():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())
    page.add_elements(SEARCH_RESULT_SELECTOR, FakeElement())

    outcome = await SearchResolver(page).run("python")

    assert outcome.succeeded
    assert outcome.submit_method == "Enter key"
    assert not outcome.url_changed
    assert outcome.has_results
    assert "Has search results: Yes" in outcome.report()


@pytest.mark.asyncio
async def test_falls_back_to_submit_button_when_enter_changes_nothing():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())
    button = FakeElement(on_click=lambda p: p.set_location("https://wiki.test/search", "Results"))
    page.add_elements('button[type="submit"]', button)

    outcome = await SearchResolver(page).run("python")

    assert outcome.succeeded
    assert button.clicks == 1
    assert outcome.submit_method == 'button: button[type="submit"]'
    assert outcome.url_changed
    assert outcome.report().startswith("Search completed!\n")
    assert ("submit_enter", "submit_button_fallback") in outcome.transitions


@pytest.mark.asyncio
async def test_completes_without_button_when_none_is_found():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())

    outcome = await SearchResolver(page, SearchOptions(timeout_ms=100)).run("python")

    assert outcome.state is SearchState.DONE
    assert outcome.submit_method == NO_BUTTON_METHOD
    assert not outcome.url_changed
    assert "URL changed: No" in outcome.report()


@pytest.mark.asyncio
async def test_content_update_wait_when_navigation_is_not_awaited():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())
    _navigate_on_enter(page)

    outcome = await SearchResolver(page, SearchOptions(wait_for_navigation=False)).run("python")

    assert outcome.succeeded
    assert CONTENT_UPDATE_WAIT_MS in page.waits
    assert page.load_states == []


@pytest.mark.asyncio
async def test_network_idle_timeout_falls_back_to_fixed_wait():
    page = _search_page()
    page.add_elements('input[name="q"]', FakeElement())
    page.load_state_error = TimeoutError("networkidle")
    _navigate_on_enter(page)

    outcome = await SearchResolver(page).run("python")

    assert outcome.succeeded
    assert page.load_states == [("networkidle", 10_000)]
    assert CONTENT_UPDATE_WAIT_MS in page.waits


@pytest.mark.asyncio
async def test_exhausted_candidates_fail_with_recent_errors():
    page = _search_page()

    outcome = await SearchResolver(page, SearchOptions(retry_attempts=2)).run("python")

    assert outcome.state is SearchState.FAILED
    assert not outcome.succeeded
    assert page.waits.count(RETRY_BACKOFF_MS) == 1
    report = outcome.report()
    assert report.startswith("Failed to find accessible search bar. Errors: ")
    reported = report[len("Failed to find accessible search bar. Errors: "):].split("; ")
    assert len(reported) == 5
    assert reported == outcome.errors[-5:]
    assert page.key_presses == []
