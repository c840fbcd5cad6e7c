#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

import asyncio
import unittest

from arm.common.pager import ItemIterator, PageIterator, PagerResult, PagerState


class _Page:
    def __init__(self, items: list[str], continuation: str | None = None) -> None:
        self._items = items
        self._continuation = continuation

    def items(self) -> list[str]:
        return list(self._items)

    def continuation(self) -> str | None:
        return self._continuation


class _FakeService:
    """Serves pages keyed by continuation cursor. The first page is keyed by None."""

    def __init__(self, pages: dict[str | None, _Page | Exception]) -> None:
        self.pages = pages
        self.requested: list[str | None] = []

    async def make_request(self, state: PagerState) -> PagerResult[_Page]:
        self.requested.append(state.continuation)
        page = self.pages[state.continuation]
        if isinstance(page, Exception):
            raise page
        return PagerResult.from_page(page)


class TestPagerResult(unittest.TestCase):
    def test_from_page(self) -> None:
        page = _Page(["a"], "next")
        self.assertEqual(PagerResult.more(page, "next"), PagerResult.from_page(page))

    def test_from_page_without_continuation(self) -> None:
        page = _Page(["a"])
        result = PagerResult.from_page(page)
        self.assertEqual(PagerResult.done(page), result)
        self.assertTrue(result.is_done)

    def test_from_page_with_empty_continuation(self) -> None:
        self.assertTrue(PagerResult.from_page(_Page(["a"], "")).is_done)

    def test_from_response_header(self) -> None:
        page = _Page(["a"])
        result = PagerResult.from_response_header(page, {"x-ms-continuation": "abc"}, "x-ms-continuation")
        self.assertEqual("abc", result.continuation)
        self.assertFalse(result.is_done)

    def test_from_missing_response_header(self) -> None:
        result = PagerResult.from_response_header(_Page(["a"]), {}, "x-ms-continuation")
        self.assertTrue(result.is_done)


class TestPagerState(unittest.TestCase):
    def test_initial(self) -> None:
        self.assertTrue(PagerState.initial().is_initial)
        self.assertIsNone(PagerState.initial().continuation)

    def test_more(self) -> None:
        state = PagerState.more("abc")
        self.assertFalse(state.is_initial)
        self.assertEqual("abc", state.continuation)


class TestPageIterator(unittest.IsolatedAsyncioTestCase):
    async def test_single_page(self) -> None:
        service = _FakeService({None: _Page(["a", "b"])})
        pages = PageIterator.from_callback(service.make_request)

        page = await anext(pages)
        self.assertEqual(["a", "b"], page.items())
        self.assertTrue(pages.exhausted)

        with self.assertRaises(StopAsyncIteration):
            await anext(pages)
        self.assertEqual([None], service.requested)

    async def test_multiple_pages_in_order(self) -> None:
        service = _FakeService(
            {
                None: _Page(["a", "b"], "page-2"),
                "page-2": _Page([], "page-3"),
                "page-3": _Page(["c"], "page-4"),
                "page-4": _Page(["d"]),
            }
        )
        items = [item async for page in PageIterator.from_callback(service.make_request) for item in page.items()]
        self.assertEqual(["a", "b", "c", "d"], items)
        self.assertEqual([None, "page-2", "page-3", "page-4"], service.requested)

    async def test_no_prefetch(self) -> None:
        service = _FakeService({None: _Page(["a"], "page-2"), "page-2": _Page(["b"])})
        pages = PageIterator.from_callback(service.make_request)
        self.assertEqual([], service.requested)

        await anext(pages)
        self.assertEqual([None], service.requested)

    async def test_failure_on_first_page(self) -> None:
        service = _FakeService({None: RuntimeError("first page failed")})
        pages = PageIterator.from_callback(service.make_request)

        with self.assertRaises(RuntimeError):
            await anext(pages)
        self.assertTrue(pages.failed)

        with self.assertRaises(StopAsyncIteration):
            await anext(pages)
        self.assertEqual([None], service.requested)

    async def test_failure_is_terminal(self) -> None:
        service = _FakeService(
            {None: _Page(["a", "b"], "page-2"), "page-2": RuntimeError("boom"), "page-3": _Page(["c"])}
        )
        pages = PageIterator.from_callback(service.make_request)

        self.assertEqual(["a", "b"], (await anext(pages)).items())
        with self.assertRaises(RuntimeError):
            await anext(pages)
        with self.assertRaises(StopAsyncIteration):
            await anext(pages)
        self.assertIsNone(pages.continuation_token)
        self.assertEqual([None, "page-2"], service.requested)

    async def test_cancellation_keeps_state(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()
        requested: list[str | None] = []

        async def make_request(state: PagerState) -> PagerResult[_Page]:
            requested.append(state.continuation)
            if state.continuation == "page-2" and len(requested) == 2:
                started.set()
                await release.wait()
            return PagerResult.from_page(_Page([state.continuation or "first"], None if state.continuation else "page-2"))

        pages = PageIterator.from_callback(make_request)
        await anext(pages)

        task = asyncio.create_task(anext(pages))
        await started.wait()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        self.assertFalse(pages.failed)
        self.assertEqual("page-2", pages.continuation_token)
        self.assertEqual(["page-2"], (await anext(pages)).items())
        self.assertEqual([None, "page-2", "page-2"], requested)

    async def test_overlapping_advances_are_rejected(self) -> None:
        requested: list[str | None] = []

        async def make_request(state: PagerState) -> PagerResult[_Page]:
            requested.append(state.continuation)
            await asyncio.sleep(0)
            return PagerResult.from_page(_Page(["a"], "page-2") if state.is_initial else _Page(["b"]))

        pages = PageIterator.from_callback(make_request)
        first, second = await asyncio.gather(anext(pages), anext(pages), return_exceptions=True)

        self.assertEqual(["a"], first.items())
        self.assertIsInstance(second, RuntimeError)
        self.assertEqual([None], requested)
        self.assertFalse(pages.failed)

        self.assertEqual(["b"], (await anext(pages)).items())
        self.assertEqual([None, "page-2"], requested)

    async def test_continuation_token(self) -> None:
        service = _FakeService({None: _Page(["a"], "page-2"), "page-2": _Page(["b"])})
        pages = PageIterator.from_callback(service.make_request)
        self.assertIsNone(pages.continuation_token)

        await anext(pages)
        self.assertEqual("page-2", pages.continuation_token)

        await anext(pages)
        self.assertIsNone(pages.continuation_token)

    async def test_with_continuation_token(self) -> None:
        service = _FakeService({None: _Page(["a"], "page-2"), "page-2": _Page(["b"], "page-3"), "page-3": _Page(["c"])})
        first = PageIterator.from_callback(service.make_request)
        await anext(first)
        token = first.continuation_token

        resumed = first.with_continuation_token(token)
        self.assertEqual(["b", "c"], [item async for page in resumed for item in page.items()])
        self.assertEqual([None, "page-2", "page-3"], service.requested)


class TestItemIterator(unittest.IsolatedAsyncioTestCase):
    async def test_flattens_pages(self) -> None:
        service = _FakeService(
            {None: _Page(["a", "b"], "page-2"), "page-2": _Page([], "page-3"), "page-3": _Page(["c"])}
        )
        items = ItemIterator(PageIterator.from_callback(service.make_request))
        self.assertEqual(["a", "b", "c"], [item async for item in items])

    async def test_fetches_on_demand(self) -> None:
        service = _FakeService({None: _Page(["a", "b"], "page-2"), "page-2": _Page(["c"])})
        items = ItemIterator(PageIterator.from_callback(service.make_request))

        self.assertEqual("a", await anext(items))
        self.assertEqual("b", await anext(items))
        self.assertEqual([None], service.requested)
        self.assertEqual("c", await anext(items))
        self.assertEqual([None, "page-2"], service.requested)

    async def test_error_after_items(self) -> None:
        service = _FakeService({None: _Page(["a", "b"], "page-2"), "page-2": PermissionError("denied")})
        items = ItemIterator(PageIterator.from_callback(service.make_request))
        seen = []
        with self.assertRaises(PermissionError):
            async for item in items:
                seen.append(item)
        self.assertEqual(["a", "b"], seen)

    async def test_by_page(self) -> None:
        service = _FakeService({None: _Page(["a"], "page-2"), "page-2": _Page(["b"])})
        items = ItemIterator(PageIterator.from_callback(service.make_request))
        pages = items.by_page()
        self.assertEqual([["a"], ["b"]], [page.items() async for page in pages])
