"""
Base Module - Shared result record and state for all detection modules.

Modules do not inherit from a common base class. Each concrete module holds
a ModuleState (name, logger, result) and satisfies the DetectionModule
protocol by exposing `name`, `result` and `async run(session)`.

Contract:
1. One ModuleResult per module instance, created at construction
2. `positive` only ever goes from False to True
3. run() never raises; failures are logged and the result is left as is
"""

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel, Field
import structlog


class ModuleResult(BaseModel):
    """
    Outcome of one detection module.

    This is the record the orchestrator collects and reports.
    """

    name: str = Field(frozen=True)
    positive: bool = False
    result: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return self.model_dump(mode="json")


@dataclass
class ModuleState:
    """
    Name, log channels and result owned by one module instance.

    The logger is bound with the module name; use its info(), warning()
    and critical() methods as the module's three log channels.
    """

    name: str
    result: ModuleResult = field(init=False)
    logger: Any = field(init=False, repr=False)

    def __post_init__(self):
        self.result = ModuleResult(name=self.name)
        self.logger = structlog.get_logger(__name__).bind(module=self.name)

    @property
    def positive(self) -> bool:
        return self.result.positive

    def mark_positive(self):
        """Flag the detection criterion as fired (never reset)"""
        self.result.positive = True

    def record(self, payload: Any):
        self.result.result = payload


@runtime_checkable
class DetectionModule(Protocol):
    """Capability every detection module provides"""

    name: str
    result: ModuleResult

    async def run(self, session) -> None:
        ...


async def iter_visible_inputs(
    session,
    state: ModuleState,
    include_hidden: bool = False,
) -> AsyncIterator[Tuple[int, Any, str]]:
    """
    Yield (index, element, outerHTML) for every input on the page worth testing.

    Invisible inputs are logged and skipped unless include_hidden is set.
    Stops as soon as the module has a confirmed finding.

    Args:
        session: Browser session
        state: State of the calling module
        include_hidden: Also yield inputs that are not visible
    """
    inputs = await session.query_all("input")
    state.logger.info("inputs_found", count=len(inputs))

    for index in range(len(inputs)):
        if state.positive:
            break

        # Earlier submissions may have replaced the document
        element = await requery_input(session, index)
        if element is None:
            state.logger.warning("input_vanished", index=index)
            break

        serialized = await element.evaluate("el => el.outerHTML")
        if not await element.is_visible():
            if not include_hidden:
                state.logger.info("input_not_visible", index=index, element=serialized)
                continue
            state.logger.info("testing_hidden_input", index=index, element=serialized)

        yield index, element, serialized


async def restore_page(session, state: ModuleState, url: str) -> bool:
    """
    Go back if the last submission navigated away from url.

    Returns:
        True if the page had to be restored
    """
    if session.current_url == url:
        return False

    state.logger.info("page_navigated", from_url=url, to_url=session.current_url)
    await session.go_back()
    return True


async def requery_input(session, index: int) -> Optional[Any]:
    """Resolve the index-th input again after the document was replaced"""
    inputs = await session.query_all("input")
    if index < len(inputs):
        return inputs[index]
    return None
