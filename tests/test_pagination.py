import pytest

from xray_crawler.document import load_document
from xray_crawler.errors import FetchError
from xray_crawler.pagination import (
    Completion, PageState, PaginationController, PaginationState,
)
from xray_crawler.resolve import resolve
from xray_crawler.sinks import PageWriter


class RecordingWriter(PageWriter):
    """Writer remembering every event it receives."""

    def __init__(self):
        self.events = []

    async def page(self, data):
        self.events.append(("page", data))

    async def end(self, data):
        self.events.append(("end", data))

    async def fail(self, error):
        self.events.append(("fail", error))


class TestPagination:
    """Test suite for following next-page links."""

    @pytest.mark.asyncio
    async def test_limit(self, x, site):
        result = await x("https://example.com/1", "li", [".name"]).paginate(".next@href").limit(3)
        assert result == ["a", "b", "c", "d", "e"]
        assert site.calls == [
            "https://example.com/1",
            "https://example.com/2",
            "https://example.com/3",
        ]

    @pytest.mark.asyncio
    async def test_limit_of_one_walks_first_page_only(self, x, site):
        result = await x("https://example.com/1", [".name"]).paginate(".next@href").limit(1)
        assert result == ["a", "b"]
        assert site.calls == ["https://example.com/1"]

    @pytest.mark.asyncio
    async def test_stops_without_next_link(self, x, site):
        result = await x("https://example.com/3", [".name"]).paginate(".next@href")
        assert result == ["e", "f"]
        assert site.calls == ["https://example.com/3", "https://example.com/4"]

    @pytest.mark.asyncio
    async def test_abort_predicate(self, x, site):
        seen = []

        def abort(result, next_url):
            seen.append((list(result), next_url))
            return next_url.endswith("/3")

        result = await x("https://example.com/1", [".name"]).paginate(".next@href").abort(abort)
        assert result == ["a", "b", "c", "d"]
        assert site.calls == ["https://example.com/1", "https://example.com/2"]
        assert seen == [
            (["a", "b"], "https://example.com/2"),
            (["a", "b", "c", "d"], "https://example.com/3"),
        ]

    @pytest.mark.asyncio
    async def test_abort_before_limit(self, x, site):
        result = await x("https://example.com/1", [".name"]) \
            .paginate(".next@href").limit(3).abort(lambda result, next_url: len(result) >= 4)
        assert result == ["a", "b", "c", "d"]
        assert len(site.calls) == 2

    @pytest.mark.asyncio
    async def test_starting_from_html(self, x, site):
        html = '<ul><li class="name">z</li></ul><a class="next" href="https://example.com/4">next</a>'
        result = await x(html, [".name"]).paginate(".next@href")
        assert result == ["z", "f"]
        assert site.calls == ["https://example.com/4"]

    @pytest.mark.asyncio
    async def test_non_collection_reports_latest_page(self, x, site):
        result = await x("https://example.com/1", {"first": ".name"}).paginate(".next@href").limit(2)
        assert result == {"first": "c"}

    @pytest.mark.asyncio
    async def test_fetch_error_on_later_page(self, x, site):
        site.failing.add("https://example.com/2")
        calls = []

        await x("https://example.com/1", [".name"]).paginate(".next@href").run(
            lambda error, result: calls.append((error, result))
        )

        assert len(calls) == 1
        error, result = calls[0]
        assert isinstance(error, FetchError)
        assert error.status == 500
        assert result is None

    @pytest.mark.asyncio
    async def test_fetch_error_on_last_allowed_page(self, x, site):
        site.failing.add("https://example.com/2")
        calls = []

        node = x("https://example.com/1", [".name"]).paginate(".next@href").limit(2)
        await node.run(lambda error, result: calls.append((error, result)))

        assert len(calls) == 1
        assert isinstance(calls[0][0], FetchError)
        assert site.calls == ["https://example.com/1", "https://example.com/2"]

    @pytest.mark.asyncio
    async def test_run_reports_result(self, x):
        calls = []
        await x("https://example.com/4", {"title": "h1"}).run(lambda error, result: calls.append((error, result)))
        assert calls == [(None, {"title": "Page"})]

    @pytest.mark.asyncio
    async def test_unresolved_scope_url_walks_empty_document(self, x, site):
        result = await x("<p>no links</p>", "a@href", {"title": "h1"})
        assert result == {}
        assert site.calls == []


class TestPaginationController:
    """Test suite for the controller state machine."""

    @pytest.mark.asyncio
    async def test_writer_sees_pages_then_end(self):
        pages = {
            "https://example.com/1": '<li>a</li><a class="next" href="/2">next</a>',
            "https://example.com/2": "<li>b</li>",
        }

        async def walk(document):
            return resolve(document, None, ["li"])

        async def fetch(url):
            return load_document(pages[url], url)

        async def first():
            return load_document(pages["https://example.com/1"], "https://example.com/1")

        writer = RecordingWriter()
        controller = PaginationController(
            walk=walk,
            fetch=fetch,
            state=PaginationState(paginate=".next@href"),
            collection=True,
            writer=writer,
        )

        result = await controller.run(first)
        assert result == ["a", "b"]
        assert writer.events == [("page", ["a"]), ("end", ["b"])]
        assert controller.stats.pages_fetched == 1
        assert controller.stats.stop_reason == "MISSING is not a url"
        assert controller.status == PageState.ABORTED

    @pytest.mark.asyncio
    async def test_error_is_reported_once(self):
        async def walk(document):
            raise FetchError("boom")

        writer = RecordingWriter()
        controller = PaginationController(walk=walk, fetch=None, state=PaginationState(), writer=writer)

        async def first():
            return "first"

        with pytest.raises(FetchError):
            await controller.run(first)
        assert [kind for kind, _ in writer.events] == ["fail"]
        assert controller.status == PageState.ABORTED
        assert controller.completion.done

    @pytest.mark.asyncio
    async def test_fetch_error_with_limit_reports_once(self):
        pages = {"https://example.com/1": '<li>a</li><a class="next" href="/2">next</a>'}

        async def walk(document):
            return resolve(document, None, ["li"])

        async def fetch(url):
            raise FetchError(f"Failed to fetch {url}: HTTP 500", url=url, status=500)

        async def first():
            return load_document(pages["https://example.com/1"], "https://example.com/1")

        writer = RecordingWriter()
        controller = PaginationController(
            walk=walk,
            fetch=fetch,
            state=PaginationState(paginate=".next@href", remaining_limit=2),
            collection=True,
            writer=writer,
        )

        with pytest.raises(FetchError):
            await controller.run(first)
        assert [kind for kind, _ in writer.events] == ["page", "fail"]
        assert controller.status == PageState.ABORTED

    @pytest.mark.asyncio
    async def test_failing_end_is_reported(self):
        class FailingEndWriter(RecordingWriter):
            async def end(self, data):
                raise TypeError("not serializable")

        async def walk(document):
            return {"title": "x"}

        async def first():
            return "first"

        writer = FailingEndWriter()
        controller = PaginationController(walk=walk, fetch=None, state=PaginationState(), writer=writer)

        with pytest.raises(TypeError):
            await controller.run(first)
        assert [kind for kind, _ in writer.events] == ["fail"]
        assert controller.status == PageState.ABORTED

    @pytest.mark.asyncio
    async def test_without_pagination_is_done(self):
        async def walk(document):
            return {"title": "x"}

        controller = PaginationController(walk=walk, fetch=None, state=PaginationState())

        async def first():
            return "first"

        assert await controller.run(first) == {"title": "x"}
        assert controller.status == PageState.DONE
        assert controller.state.pages == []
        assert controller.stats.pages_walked == 1


class TestCompletion:
    """Test suite for the completion token."""

    def test_claim_once(self):
        completion = Completion()
        assert not completion.done
        assert completion.claim()
        assert completion.done
        assert not completion.claim()
