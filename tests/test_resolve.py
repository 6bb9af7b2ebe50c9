import pytest

from xray_crawler.document import load_document
from xray_crawler.errors import ConfigurationError
from xray_crawler.resolve import resolve
from xray_crawler.selector import FilterCall, parse_selector
from xray_crawler.utils import MISSING


HTML = """
<html><body>
  <h1>Title</h1>
  <h3> Tags </h3>
  <a href="/x" class="link primary">first</a>
  <a href="/y">second</a>
  <div class="greeting"><p>Привет, мир</p></div>
  <ul class="items"><li>one</li><li>two</li></ul>
  <ul class="items"><li>three</li></ul>
</body></html>
"""

FILTERS = {
    "trim": lambda value: value.strip(),
    "reverse": lambda value: value[::-1],
    "slice": lambda value, n: value[:int(n)],
    "upper": lambda value: value.upper(),
}


class TestSelector:
    """Test suite for the literal selector grammar."""

    def test_plain_selector(self):
        parsed = parse_selector("h1")
        assert parsed.selector == "h1"
        assert parsed.attribute is None
        assert parsed.filters == ()

    def test_attribute_and_filters(self):
        parsed = parse_selector("a.next@href | trim | slice:2,4")
        assert parsed.selector == "a.next"
        assert parsed.attribute == "href"
        assert parsed.filters == (FilterCall("trim"), FilterCall("slice", ("2", "4")))

    def test_attribute_only(self):
        parsed = parse_selector("@data-id")
        assert parsed.selector == ""
        assert parsed.attribute == "data-id"

    def test_attribute_operator_is_not_a_filter(self):
        parsed = parse_selector('[lang|="en"]')
        assert parsed.selector == '[lang|="en"]'
        assert parsed.filters == ()


class TestResolve:
    """Test suite for the leaf resolver."""

    def setup_method(self):
        self.document = load_document(HTML)

    def test_text(self):
        assert resolve(self.document, None, "h1") == "Title"

    def test_attribute(self):
        assert resolve(self.document, None, "a@href") == "/x"

    def test_multi_valued_attribute(self):
        assert resolve(self.document, None, "a@class") == "link primary"

    def test_html_keeps_non_latin_text(self):
        assert resolve(self.document, None, ".greeting@html") == "<p>Привет, мир</p>"

    def test_missing_element(self):
        assert resolve(self.document, None, ".nope") is MISSING

    def test_missing_attribute(self):
        assert resolve(self.document, None, "h1@href") is MISSING

    def test_list_form(self):
        assert resolve(self.document, None, ["li"]) == ["one", "two", "three"]

    def test_list_form_with_scope(self):
        assert resolve(self.document, "ul.items", ["li"]) == ["one", "two", "three"]

    def test_scope_limits_single_form(self):
        assert resolve(self.document, ".greeting", "p") == "Привет, мир"

    def test_attribute_of_scope_element(self):
        assert resolve(self.document, "a", "@href") == "/x"

    def test_filter_chain_left_to_right(self):
        assert resolve(self.document, None, "h3 | trim | reverse | slice:4", FILTERS) == "sgaT"

    def test_filters_apply_to_each_list_item(self):
        assert resolve(self.document, None, ["li | upper"], FILTERS) == ["ONE", "TWO", "THREE"]

    def test_filters_skip_missing_values(self):
        assert resolve(self.document, None, ".nope | upper", FILTERS) is MISSING

    def test_unknown_filter(self):
        with pytest.raises(ConfigurationError, match="Invalid filter: shout"):
            resolve(self.document, None, "h1 | shout", FILTERS)

    def test_invalid_css(self):
        with pytest.raises(ConfigurationError):
            resolve(self.document, None, "h1[")
