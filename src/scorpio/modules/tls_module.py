"""
TLS Certificate Module - Captures the server certificate seen by the browser.

Listens to Network.responseReceived on a DevTools protocol channel and keeps
the security details of the first response that carries them. The page is
reloaded so the document response is observed even though the orchestrator
navigated before the listener existed.
"""

from typing import Any, Dict, Optional

from ..core.session import channel_listener, protocol_channel
from .base_module import ModuleResult, ModuleState


RESPONSE_RECEIVED = "Network.responseReceived"


class TlsCertificateModule:
    """
    TLS certificate capture and analysis.

    The snapshot is the CDP SecurityDetails object (subjectName, sanList,
    issuer, protocol, validFrom, validTo, ...).
    """

    NAME = "TlsCertificateModule"

    def __init__(self, name: str = NAME):
        self.state = ModuleState(name)
        self.snapshot: Optional[Dict[str, Any]] = None

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def result(self) -> ModuleResult:
        return self.state.result

    async def run(self, session) -> None:
        try:
            async with protocol_channel(session) as channel:
                await channel.send("Network.enable")
                async with channel_listener(channel, RESPONSE_RECEIVED, self._on_response):
                    await session.navigate(session.current_url)
        except Exception as e:
            self.state.logger.error("module_failed", error=str(e), exc_info=True)

        self.analyze_certificate(self.snapshot)
        self.state.record(self.snapshot)

    def _on_response(self, event: Dict[str, Any]):
        """Keep the first security details seen, ignore the rest"""
        if self.snapshot is not None:
            return

        details = (event.get("response") or {}).get("securityDetails")
        if details:
            self.snapshot = details
            self.state.mark_positive()
            self.state.logger.info(
                "certificate_captured",
                url=event["response"].get("url"),
            )

    def analyze_certificate(self, certificate: Optional[Dict[str, Any]]):
        """Log the interesting parts of a certificate snapshot"""
        logger = self.state.logger

        if not certificate:
            logger.warning("no_certificate_found")
            return

        logger.info("certificate_found", certificate=certificate)

        sans = certificate.get("sanList") or []
        if sans:
            logger.info("certificate_domains", count=len(sans), domains=sans)

        subject = certificate.get("subjectName")
        if subject:
            logger.info("certificate_subject", subject=subject)

        logger.info(
            "certificate_details",
            issuer=certificate.get("issuer"),
            protocol=certificate.get("protocol"),
            valid_from=certificate.get("validFrom"),
            valid_to=certificate.get("validTo"),
        )
