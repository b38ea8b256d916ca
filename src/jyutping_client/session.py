"""Search session controller: query and pagination state across searches."""

from __future__ import annotations

from dataclasses import replace
import inspect
import logging
from typing import Awaitable, Protocol, Union

from jyutping_client.models import (
    DEFAULT_PAGE_SIZE,
    SessionState,
    SessionView,
    ViewStatus,
)
from jyutping_client.protocol import decode_search_response
from jyutping_client.reporting.result_html import render_page
from jyutping_client.url_state import QUERY_PARAM, debug_enabled, get_param, remove_param, set_param

logger = logging.getLogger(__name__)


class SearchEngine(Protocol):
    """External dictionary engine built from the downloaded blob."""

    def search(self, prefix: str, limit: int) -> Union[str, Awaitable[str]]:
        """Return up to ``limit`` matches for ``prefix`` as JSON text."""


class SearchSession:
    """Drive searches for one search box and its shareable URL.

    The session owns a ``SessionState`` and the current URL. A new non-empty
    query resets the page size; "load more" doubles it. Clearing the input
    returns to the idle panel and drops the ``q`` URL parameter.

    ``state`` always describes the page on screen: a search commits its state
    only once its response has been decoded and rendered, so a failed or
    superseded search leaves the previous state in place.

    Every search takes a fresh request id. When a search completes after a newer
    one was issued (or the input was cleared meanwhile), its response is
    discarded and the transition returns ``None``.

    A session without an engine is unavailable: every transition returns an
    ``UNAVAILABLE`` view carrying the failure message.
    """

    def __init__(
        self,
        engine: SearchEngine | None,
        url: str = "",
        page_size: int = DEFAULT_PAGE_SIZE,
        unavailable_message: str = "",
    ) -> None:
        self.engine = engine
        self.url = url
        self.page_size = page_size
        self.debug = debug_enabled(url)
        self.state = SessionState(current_query="", current_max_results=page_size)
        self._message = unavailable_message
        self._request_id = 0
        self._pending_query: str | None = None
        if engine is None:
            self.view = self._unavailable_view()
        else:
            self.view = SessionView(status=ViewStatus.IDLE, state=self.state, url=self.url)

    @classmethod
    def unavailable(
        cls, message: str, url: str = "", page_size: int = DEFAULT_PAGE_SIZE
    ) -> "SearchSession":
        """Build a session whose search is disabled, explaining why."""

        return cls(engine=None, url=url, page_size=page_size, unavailable_message=message)

    @property
    def available(self) -> bool:
        return self.engine is not None

    def _unavailable_view(self) -> SessionView:
        return SessionView(
            status=ViewStatus.UNAVAILABLE,
            state=self.state,
            url=self.url,
            message=self._message,
        )

    async def start(self) -> SessionView | None:
        """Run the query carried by the URL's ``q`` parameter, if any."""

        query = get_param(self.url, QUERY_PARAM)
        if query:
            return await self.on_input(query)
        return self.view

    async def on_input(self, text: str) -> SessionView | None:
        """Handle the search box changing to ``text``.

        Args:
            text: Full current input value.

        Returns:
            The new view, or ``None`` if the search was superseded.

        Raises:
            ProtocolError: If the engine response cannot be decoded.
        """

        if not self.available:
            return self.view

        if not text:
            self._request_id += 1
            self._pending_query = None
            self.state = SessionState(current_query="", current_max_results=self.page_size)
            self.url = remove_param(self.url, QUERY_PARAM)
            self.view = SessionView(status=ViewStatus.IDLE, state=self.state, url=self.url)
            return self.view

        state = self.state
        if text != state.current_query:
            state = SessionState(current_query=text, current_max_results=self.page_size)
        return await self._search(state, update_url=True)

    async def load_more(self) -> SessionView | None:
        """Double the page size and re-run the current query.

        Only acts when the page on screen came back full and no search for a
        different query is pending; otherwise the current view is returned
        unchanged. The URL is not touched.
        """

        if not self.available:
            return self.view
        if not self.view.can_load_more:
            logger.debug("Load more ignored: last page was not full")
            return self.view

        pending = self._pending_query
        if pending is not None and pending != self.state.current_query:
            logger.debug("Load more ignored: search for %r is pending", pending)
            return self.view

        state = replace(self.state, current_max_results=self.state.current_max_results * 2)
        return await self._search(state, update_url=False)

    async def _search(self, state: SessionState, update_url: bool) -> SessionView | None:
        self._request_id += 1
        request_id = self._request_id
        self._pending_query = state.current_query

        try:
            payload = self.engine.search(state.current_query, state.current_max_results)
            if inspect.isawaitable(payload):
                payload = await payload
        finally:
            if request_id == self._request_id:
                self._pending_query = None

        if request_id != self._request_id:
            logger.debug(
                "Discarding stale response %d for %r (latest request is %d)",
                request_id,
                state.current_query,
                self._request_id,
            )
            return None

        page = decode_search_response(payload)
        html = render_page(page, state.current_max_results, debug=self.debug)
        if update_url:
            self.url = set_param(self.url, QUERY_PARAM, state.current_query)

        self.state = state
        self.view = SessionView(
            status=ViewStatus.RESULTS,
            state=state,
            url=self.url,
            page=page,
            html=html,
            can_load_more=len(page.results) == state.current_max_results,
        )
        return self.view
