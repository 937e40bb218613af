"""
In-memory stand-ins for the browser session used by the unit tests.

FakeSession implements the same surface as scorpio.core.session.BrowserSession
without a browser. Behaviour on submit / navigate is scripted with hooks.
"""

import inspect
from typing import Any, Callable, List, Optional


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


class FakeElement:
    """Input element handle"""

    def __init__(self, session: "FakeSession", visible: bool = True, html: str = '<input type="text">'):
        self.session = session
        self.visible = visible
        self.html = html
        self.value = ""
        self.fills: List[tuple] = []

    async def is_visible(self) -> bool:
        return self.visible

    async def fill(self, value: str, force: bool = False):
        self.value = value
        self.fills.append((value, force))
        self.session.last_filled = (self, value)

    async def evaluate(self, expression: str) -> Any:
        return self.html


class FakeDialog:
    """Page dialog"""

    def __init__(self, message: str, type: str = "alert"):
        self.message = message
        self.type = type
        self.dismissed = False

    async def dismiss(self):
        self.dismissed = True


class FakeResponse:
    """Network response"""

    def __init__(self, url: str, body: str = ""):
        self.url = url
        self.body = body

    async def text(self) -> str:
        return self.body


class FakeChannel:
    """Protocol channel"""

    def __init__(self):
        self.sent: List[str] = []
        self.handlers: dict = {}
        self.detached = False

    async def send(self, method: str, params: Optional[dict] = None):
        self.sent.append(method)

    def on(self, event: str, handler: Callable):
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Callable):
        self.handlers.get(event, []).remove(handler)

    async def detach(self):
        self.detached = True

    def emit(self, event: str, payload: dict):
        for handler in list(self.handlers.get(event, [])):
            handler(payload)


class FakeSession:
    """
    Scriptable browser session.

    Hooks:
        on_submit(session, element, value): called when Enter is pressed
        on_navigate(session, url): called after every navigate()
    """

    def __init__(self, url: str = "http://target.test/"):
        self.url = url
        self.history: List[str] = []
        self.inputs: List[FakeElement] = []
        self.dialog_handlers: List[Callable] = []
        self.responses: List[Optional[FakeResponse]] = []
        self.channels: List[FakeChannel] = []
        self.evaluate_result: Any = None
        self.evaluate_error: Optional[Exception] = None
        self.query_error: Optional[Exception] = None

        self.on_submit: Optional[Callable] = None
        self.on_navigate: Optional[Callable] = None

        self.last_filled: Optional[tuple] = None
        self.keys: List[str] = []
        self.waits: List[float] = []
        self.navigations: List[str] = []
        self.back_count = 0
        self.response_timeouts: List[float] = []

        # Lifecycle
        self.launched = False
        self.closed = False

    def add_input(self, visible: bool = True, html: str = '<input type="text">') -> FakeElement:
        element = FakeElement(self, visible=visible, html=html)
        self.inputs.append(element)
        return element

    @property
    def current_url(self) -> str:
        return self.url

    async def launch(self):
        self.launched = True

    async def close(self):
        self.closed = True

    async def navigate(self, url: str, wait_until: Optional[str] = None):
        self.navigations.append(url)
        self.history.append(self.url)
        self.url = url
        if self.on_navigate:
            await _maybe_await(self.on_navigate(self, url))

    async def go_back(self):
        self.back_count += 1
        if self.history:
            self.url = self.history.pop()

    async def query_all(self, selector: str) -> List[FakeElement]:
        if self.query_error:
            raise self.query_error
        return list(self.inputs)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if self.evaluate_error:
            raise self.evaluate_error
        return self.evaluate_result

    async def press_key(self, key: str):
        self.keys.append(key)
        if self.on_submit and self.last_filled:
            element, value = self.last_filled
            await _maybe_await(self.on_submit(self, element, value))

    async def wait_for_timeout(self, timeout_ms: float):
        self.waits.append(timeout_ms)

    def on_dialog(self, handler: Callable):
        self.dialog_handlers.append(handler)

    def off_dialog(self, handler: Callable):
        self.dialog_handlers.remove(handler)

    async def fire_dialog(self, message: str) -> FakeDialog:
        dialog = FakeDialog(message)
        for handler in list(self.dialog_handlers):
            await _maybe_await(handler(dialog))
        return dialog

    async def wait_for_response(self, predicate, timeout_ms: float, action=None):
        self.response_timeouts.append(timeout_ms)
        if action is not None:
            await action()
        response = self.responses.pop(0) if self.responses else None
        if response is not None and predicate(response):
            return response
        return None

    async def open_protocol_channel(self) -> FakeChannel:
        channel = FakeChannel()
        self.channels.append(channel)
        return channel
