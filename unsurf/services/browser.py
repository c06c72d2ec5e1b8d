"""
unsurf/services/browser.py

Browser automation used by discovery.

Contains:
- AbstractBrowser: navigate / capture / screenshot, scoped as an async context manager
- CDPBrowser: drives a fresh Chrome tab over the DevTools Protocol
- StaticBrowser: replays canned network events (tests, offline captures)

A browser is acquired for exactly one discovery call; close() runs on every
exit path, including errors and cancellation.
"""

import asyncio
import base64
import json
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Self

import requests
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from unsurf.config import Config
from unsurf.data_models.network_event import NetworkEvent
from unsurf.utils.exceptions import AutomationError
from unsurf.utils.logger import get_logger

logger = get_logger(name=__name__)

# DevTools resource types whose response bodies are worth fetching
_BODY_RESOURCE_TYPES = {"XHR", "Fetch"}


class AbstractBrowser(ABC):
    """
    Interface for a scoped browsing session.

    Usage:
        async with browser_factory() as browser:
            await browser.navigate(url)
            events = await browser.get_network_events()
            png = await browser.screenshot()
    """

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying browser/page."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying browser/page. Must not raise."""
        ...

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Load a URL and wait for its traffic to settle."""
        ...

    @abstractmethod
    async def get_network_events(self) -> list[NetworkEvent]:
        """All exchanges captured since the session opened, in request order."""
        ...

    @abstractmethod
    async def screenshot(self) -> bytes:
        """PNG screenshot of the current page."""
        ...


class StaticBrowser(AbstractBrowser):
    """
    In-memory browser that returns a fixed capture.
    """

    def __init__(
        self,
        events: Sequence[NetworkEvent] = (),
        screenshot: bytes = b"",
        fail_with: AutomationError | None = None,
    ) -> None:
        self._events = list(events)
        self._screenshot = screenshot
        self._fail_with = fail_with
        self.navigated: list[str] = []
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def navigate(self, url: str) -> None:
        self.navigated.append(url)
        if self._fail_with is not None:
            raise self._fail_with

    async def get_network_events(self) -> list[NetworkEvent]:
        return [event.model_copy(deep=True) for event in self._events]

    async def screenshot(self) -> bytes:
        return self._screenshot


class CDPBrowser(AbstractBrowser):
    """
    Chrome DevTools Protocol session on a fresh tab.

    The tab is created through the DevTools HTTP endpoint and driven over
    its page WebSocket. Network events are collected from the moment the
    session opens.
    """

    def __init__(
        self,
        cdp_url: str | None = None,
        navigation_timeout: float | None = None,
        network_idle: float | None = None,
        command_timeout: float = 15.0,
    ) -> None:
        """
        Initialize the browser.

        Args:
            cdp_url: DevTools HTTP endpoint, e.g. http://127.0.0.1:9222.
            navigation_timeout: Seconds to wait for the page load event.
            network_idle: Seconds without network activity that ends capture.
            command_timeout: Seconds to wait for a single CDP command reply.
        """
        self._cdp_url = (cdp_url or Config.CDP_URL).rstrip("/")
        self._navigation_timeout = navigation_timeout if navigation_timeout is not None else Config.NAVIGATION_TIMEOUT
        self._network_idle = network_idle if network_idle is not None else Config.NETWORK_IDLE
        self._command_timeout = command_timeout

        self._target_id: str | None = None
        self._ws: ClientConnection | None = None
        self._reader: asyncio.Task | None = None
        self._seq = 0
        self._pending: dict[int, asyncio.Future] = {}
        self._loaded = asyncio.Event()
        self._last_activity = 0.0
        self._in_flight: set[str] = set()

        # request_id -> partially assembled exchange
        self._exchanges: dict[str, dict[str, Any]] = {}

    # Session lifecycle ___________________________________________________________________________

    def _create_target(self) -> dict[str, Any]:
        response = requests.put(f"{self._cdp_url}/json/new?about:blank", timeout=10)
        response.raise_for_status()
        return response.json()

    def _close_target(self, target_id: str) -> None:
        requests.get(f"{self._cdp_url}/json/close/{target_id}", timeout=5)

    async def open(self) -> None:
        try:
            target = await asyncio.to_thread(self._create_target)
        except (requests.RequestException, ValueError) as e:
            raise AutomationError(f"Could not create browser tab via {self._cdp_url}: {e}") from e

        self._target_id = target.get("id")
        # __aexit__ does not run when __aenter__ raises, so release the tab here
        try:
            await self._attach(target.get("webSocketDebuggerUrl"))
        except BaseException:
            await self.close()
            raise
        logger.info("Opened CDP tab %s", self._target_id)

    async def _attach(self, ws_url: str | None) -> None:
        if not ws_url:
            raise AutomationError(f"DevTools did not return a WebSocket URL for tab {self._target_id}")

        try:
            self._ws = await connect(ws_url, max_size=None)
        except (OSError, InvalidHandshake, InvalidURI) as e:
            raise AutomationError(f"Could not connect to DevTools WebSocket {ws_url}: {e}") from e

        self._reader = asyncio.create_task(self._read_loop())
        self._last_activity = asyncio.get_running_loop().time()
        await self._send("Network.enable")
        await self._send("Page.enable")

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None

        if self._ws is not None:
            try:
                await self._ws.close()
            except Exception as e:
                logger.warning("Error closing DevTools WebSocket: %s", e)
            self._ws = None

        if self._target_id is not None:
            try:
                await asyncio.to_thread(self._close_target, self._target_id)
            except requests.RequestException as e:
                logger.warning("Error closing tab %s: %s", self._target_id, e)
            logger.info("Closed CDP tab %s", self._target_id)
            self._target_id = None

    # CDP messaging _______________________________________________________________________________

    async def _send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a command and wait for its reply; returns the reply's result."""
        if self._ws is None:
            raise AutomationError(f"Cannot send {method}: browser session is not open")

        self._seq += 1
        msg_id = self._seq
        future = asyncio.get_running_loop().create_future()
        self._pending[msg_id] = future
        try:
            await self._ws.send(json.dumps({"id": msg_id, "method": method, "params": params or {}}))
            reply = await asyncio.wait_for(future, timeout=self._command_timeout)
        except TimeoutError as e:
            raise AutomationError(f"Timed out waiting for {method}") from e
        except ConnectionClosed as e:
            raise AutomationError(f"DevTools connection closed during {method}: {e}") from e
        finally:
            self._pending.pop(msg_id, None)

        if "error" in reply:
            raise AutomationError(f"{method} failed: {reply['error']}")
        return reply.get("result", {})

    async def _read_loop(self) -> None:
        assert self._ws is not None
        try:
            async for raw in self._ws:
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignoring malformed CDP message")
                    continue
                if "id" in msg:
                    future = self._pending.get(msg["id"])
                    if future is not None and not future.done():
                        future.set_result(msg)
                elif "method" in msg:
                    self._handle_event(msg["method"], msg.get("params", {}))
        except ConnectionClosed as e:
            logger.warning("DevTools connection closed: %s", e)
        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(AutomationError("DevTools connection closed"))

    def _handle_event(self, method: str, params: dict[str, Any]) -> None:
        request_id = params.get("requestId")
        if method.startswith("Network."):
            self._last_activity = asyncio.get_running_loop().time()

        if method == "Network.requestWillBeSent" and request_id:
            request = params.get("request", {})
            self._exchanges[request_id] = {
                "url": request.get("url", ""),
                "method": request.get("method", "GET"),
                "resource_type": params.get("type", ""),
                "request_headers": {k: str(v) for k, v in request.get("headers", {}).items()},
                "request_body": request.get("postData"),
                "timestamp": params.get("wallTime", 0.0),
            }
            self._in_flight.add(request_id)
        elif method == "Network.responseReceived" and request_id in self._exchanges:
            response = params.get("response", {})
            exchange = self._exchanges[request_id]
            exchange["response_status"] = response.get("status", 0)
            exchange["response_headers"] = {k: str(v) for k, v in response.get("headers", {}).items()}
            exchange["resource_type"] = params.get("type", exchange["resource_type"])
        elif method == "Network.loadingFinished" and request_id in self._exchanges:
            self._exchanges[request_id]["finished"] = True
            self._in_flight.discard(request_id)
        elif method == "Network.loadingFailed" and request_id in self._exchanges:
            self._exchanges[request_id]["failed"] = True
            self._in_flight.discard(request_id)
        elif method == "Page.loadEventFired":
            self._loaded.set()

    # Automation __________________________________________________________________________________

    async def _try_screenshot(self) -> bytes | None:
        try:
            return await self.screenshot()
        except AutomationError:
            return None

    async def _wait_for_network_idle(self, deadline: float) -> None:
        loop = asyncio.get_running_loop()
        while loop.time() < deadline:
            quiet_for = loop.time() - self._last_activity
            if not self._in_flight and quiet_for >= self._network_idle:
                return
            await asyncio.sleep(min(0.1, max(0.0, deadline - loop.time())))
        logger.info("Network did not go idle before deadline (%d requests in flight)", len(self._in_flight))

    async def navigate(self, url: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._navigation_timeout
        self._loaded.clear()

        result = await self._send("Page.navigate", {"url": url})
        if result.get("errorText"):
            raise AutomationError(
                f"Navigation to {url} failed: {result['errorText']}",
                screenshot=await self._try_screenshot(),
            )

        try:
            await asyncio.wait_for(self._loaded.wait(), timeout=max(0.0, deadline - loop.time()))
        except TimeoutError as e:
            raise AutomationError(
                f"Timed out loading {url} after {self._navigation_timeout:.0f}s",
                screenshot=await self._try_screenshot(),
            ) from e

        await self._wait_for_network_idle(deadline)
        logger.info("Navigated to %s (%d requests captured)", url, len(self._exchanges))

    async def _fetch_body(self, request_id: str) -> str | None:
        try:
            result = await self._send("Network.getResponseBody", {"requestId": request_id})
        except AutomationError as e:
            logger.debug("No body for request %s: %s", request_id, e)
            return None
        body = result.get("body")
        if body is None:
            return None
        if result.get("base64Encoded"):
            try:
                return base64.b64decode(body).decode("utf-8")
            except (ValueError, UnicodeDecodeError):
                return None
        return body

    async def get_network_events(self) -> list[NetworkEvent]:
        events: list[NetworkEvent] = []
        for request_id, exchange in list(self._exchanges.items()):
            if exchange.get("failed") or "response_status" not in exchange:
                continue

            response_body = None
            if exchange.get("finished") and exchange["resource_type"] in _BODY_RESOURCE_TYPES:
                response_body = await self._fetch_body(request_id)

            events.append(NetworkEvent(
                request_id=request_id,
                url=exchange["url"],
                method=exchange["method"],
                resource_type=exchange["resource_type"],
                request_headers=exchange["request_headers"],
                request_body=exchange["request_body"],
                response_status=exchange["response_status"],
                response_body=response_body,
                response_headers=exchange.get("response_headers", {}),
                timestamp=exchange["timestamp"],
            ))

        return events

    async def screenshot(self) -> bytes:
        result = await self._send("Page.captureScreenshot", {"format": "png"})
        try:
            return base64.b64decode(result["data"])
        except (KeyError, ValueError) as e:
            raise AutomationError(f"Invalid screenshot payload: {e}") from e
