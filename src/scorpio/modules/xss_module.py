"""
XSS Module - Reflected Cross-Site Scripting detection through page dialogs.

Every payload opens a dialog carrying the module name, so a dialog raised
while the payloads are being submitted can be attributed to this module and
not to alerts the page shows on its own.

Flow per visible input:
1. Fill the payload (force=True skips actionability checks)
2. Submit with Enter
3. Wait the settle interval for scripts to run
4. Go back if the submission navigated away
"""

from typing import Any, Dict, Optional, Tuple

from ..core.session import dialog_listener
from .base_module import (
    ModuleResult,
    ModuleState,
    iter_visible_inputs,
    requery_input,
    restore_page,
)


class XssModule:
    """
    Reflected XSS detector.

    Example:
        >>> module = XssModule()
        >>> await module.run(session)
        >>> module.result.positive
        False
    """

    NAME = "XssModule"

    PAYLOAD_TEMPLATES: Tuple[str, ...] = (
        "<script>alert('{name}')</script>",
        "<img src=\"x\" onerror=\"alert('{name}')\">",
        "<svg onload=\"alert('{name}')\"></svg>",
        "<iframe src=\"javascript:alert('{name}')\"></iframe>",
    )

    def __init__(
        self,
        settle_interval_ms: int = 1000,
        test_hidden_inputs: bool = False,
        name: str = NAME,
    ):
        """
        Initialize XSS module.

        Args:
            settle_interval_ms: Wait after each submission for scripts to run
            test_hidden_inputs: Also inject into inputs that are not visible
            name: Module name, embedded in every payload
        """
        self.state = ModuleState(name)
        self.settle_interval_ms = settle_interval_ms
        self.test_hidden_inputs = test_hidden_inputs
        self.payloads: Tuple[str, ...] = tuple(
            template.format(name=name) for template in self.PAYLOAD_TEMPLATES
        )

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def result(self) -> ModuleResult:
        return self.state.result

    async def run(self, session) -> None:
        logger = self.state.logger
        evidence: Optional[Dict[str, Any]] = None

        try:
            async with dialog_listener(session, self._handle_dialog):
                async for index, element, serialized in iter_visible_inputs(
                    session, self.state, include_hidden=self.test_hidden_inputs
                ):
                    for payload in self.payloads:
                        if self.state.positive:
                            break

                        url = session.current_url
                        logger.info("testing_payload", payload=payload, index=index)

                        # Provisional, overwritten by each attempt
                        evidence = {"url": url, "payload": payload, "element": serialized}
                        self.state.record(evidence)

                        await element.fill(payload, force=True)
                        await session.press_key("Enter")
                        await session.wait_for_timeout(self.settle_interval_ms)

                        if self.state.positive:
                            break

                        await restore_page(session, self.state, url)

                        # The submission may have replaced the document
                        element = await requery_input(session, index)
                        if element is None:
                            logger.warning("input_lost_after_submit", index=index)
                            break

        except Exception as e:
            logger.error("module_failed", error=str(e), exc_info=True)

        finally:
            if self.state.positive:
                logger.critical("xss_confirmed", evidence=evidence)

    async def _handle_dialog(self, dialog):
        """Flag dialogs raised by our payloads and dismiss every dialog"""
        message = dialog.message
        if self.name in message:
            self.state.mark_positive()
            self.state.logger.info("dialog_matched", message=message, type=dialog.type)
        else:
            self.state.logger.info("dialog_ignored", message=message, type=dialog.type)

        await dialog.dismiss()
