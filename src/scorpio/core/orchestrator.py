"""
Orchestrator - Runs the detection modules against one target URL.

One browser session, one page, one module at a time. Before each module the
page is navigated to the target again, but state the previous module left
behind (filled inputs, cookies, history) is shared: modules must tolerate a
page that an earlier module already mutated.

Error handling:
1. Browser launch failure is fatal (SystemExit)
2. Any error from navigation or a module aborts the remaining modules
3. The session is always closed and partial results are kept
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog

from .config import ScanConfig
from .session import BrowserSession


class Orchestrator:
    """
    Sequential module runner.

    Example:
        >>> orchestrator = Orchestrator()
        >>> orchestrator.use(MyModule())
        >>> await orchestrator.attack("https://example.com")
        >>> report = orchestrator.get_report()
    """

    def __init__(
        self,
        modules: Optional[List[Any]] = None,
        config: Optional[ScanConfig] = None,
        session_factory: Callable[[ScanConfig], Any] = BrowserSession,
    ):
        """
        Initialize the orchestrator.

        Args:
            modules: Detection modules in run order (built from config if None)
            config: Scan configuration (uses defaults if None)
            session_factory: Callable returning an unlaunched browser session
        """
        self.config = config or ScanConfig()
        self.session_factory = session_factory

        if modules is None:
            from ..modules import build_modules

            modules = build_modules(self.config)
        self.modules: List[Any] = list(modules)

        # Run state
        self.is_running = False
        self.aborted = False
        self.target: Optional[str] = None
        self.scan_id: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.finished_at: Optional[datetime] = None

        self.logger = structlog.get_logger(__name__)

    def use(self, module):
        """
        Append a module to the run order.

        Raises:
            RuntimeError: If called while an attack is in progress
        """
        if self.is_running:
            raise RuntimeError("Cannot add modules while an attack is running")

        self.modules.append(module)
        self.logger.info("module_registered", module=module.name)

    @property
    def results(self) -> List[Any]:
        """ModuleResult of every registered module, in run order"""
        return [module.result for module in self.modules]

    async def attack(self, url: str):
        """
        Run every module against url.

        Args:
            url: Target URL

        Raises:
            SystemExit: If the browser session cannot be started
        """
        self.target = url
        self.scan_id = f"scan_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        self.started_at = datetime.now()
        self.finished_at = None
        self.aborted = False

        self.logger.info(
            "attack_started",
            scan_id=self.scan_id,
            target=url,
            modules=[module.name for module in self.modules],
        )

        session = self.session_factory(self.config)
        try:
            await session.launch()
        except Exception as e:
            self.logger.critical("session_launch_failed", error=str(e), exc_info=True)
            await session.close()
            raise SystemExit(1) from e

        self.is_running = True
        try:
            for module in self.modules:
                self.logger.info("module_started", module=module.name)
                await session.navigate(url, wait_until=self.config.wait_until)
                await module.run(session)
                self.logger.info(
                    "module_completed",
                    module=module.name,
                    positive=module.result.positive,
                )

        except Exception as e:
            self.aborted = True
            self.logger.error(
                "attack_failed",
                scan_id=self.scan_id,
                error=str(e),
                exc_info=True,
            )

        finally:
            await session.close()
            self.is_running = False
            self.finished_at = datetime.now()
            self.logger.info(
                "attack_completed",
                scan_id=self.scan_id,
                aborted=self.aborted,
                results=[result.to_dict() for result in self.results],
            )

    def get_report(self) -> Dict[str, Any]:
        """
        Get the results in structured format.

        Returns:
            Dictionary with run metadata and one entry per module
        """
        return {
            "scan_id": self.scan_id,
            "target": self.target,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "aborted": self.aborted,
            "results": [result.to_dict() for result in self.results],
        }

    def get_summary(self) -> Dict[str, Any]:
        """Counts of positive modules"""
        positives = [result.name for result in self.results if result.positive]
        return {
            "modules": len(self.modules),
            "positive": len(positives),
            "positive_modules": positives,
        }
