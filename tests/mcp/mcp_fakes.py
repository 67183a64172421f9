from webpilot.browser.results import ToolResult


class FakeActions:
    """Records tool invocations and answers each with a canned result."""

    def __init__(self, results=None, errors=None):
        self.calls = []
        self.results = dict(results or {})
        self.errors = dict(errors or {})

    def _operation(self, name):
        async def run(**kwargs):
            self.calls.append((name, kwargs))
            if name in self.errors:
                raise self.errors[name]
            return self.results.get(name, ToolResult.ok(f"{name} done"))

        return run

    def operations(self):
        names = [
            "navigate",
            "open_new_tab",
            "reload_page",
            "go_back",
            "go_forward",
            "switch_tab",
            "get_page_content",
            "get_html",
            "take_screenshot",
            "search",
            "fill",
            "select",
            "hover",
            "click",
        ]
        return {name: self._operation(name) for name in names}
