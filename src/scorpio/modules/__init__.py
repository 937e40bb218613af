"""
Detection modules.

Each module holds a ModuleState and implements `async run(session)`.

Available modules:
- XssModule: Reflected XSS via page dialogs
- SqliModule: Error-based SQL injection
- TlsCertificateModule: Server certificate capture (CDP)
- UrlHarvesterModule: Inbound/outbound link harvesting
- DomFingerprintModule: Structural DOM hash
"""

from typing import Callable, Dict, Iterable, List

from .base_module import (
    DetectionModule,
    ModuleResult,
    ModuleState,
)
from .xss_module import XssModule
from .sqli_module import SqliModule, SQL_ERROR_SIGNATURES, match_sql_error
from .tls_module import TlsCertificateModule
from .url_harvester import UrlHarvesterModule, partition_urls
from .dom_fingerprint import DomFingerprintModule, fingerprint, serialize_structure


# Config key -> factory taking a ScanConfig
MODULE_REGISTRY: Dict[str, Callable[..., DetectionModule]] = {
    "xss": lambda config: XssModule(
        settle_interval_ms=config.settle_interval_ms,
        test_hidden_inputs=config.test_hidden_inputs,
    ),
    "sqli": lambda config: SqliModule(
        settle_interval_ms=config.settle_interval_ms,
        response_timeout_ms=config.response_timeout_ms,
        test_hidden_inputs=config.test_hidden_inputs,
    ),
    "tls": lambda config: TlsCertificateModule(),
    "urls": lambda config: UrlHarvesterModule(),
    "fingerprint": lambda config: DomFingerprintModule(),
}


def build_modules(config, names: Iterable[str] = None) -> List[DetectionModule]:
    """
    Instantiate modules in the given order.

    Args:
        config: ScanConfig supplying module settings
        names: Registry keys (defaults to config.modules)

    Returns:
        Fresh module instances
    """
    return [MODULE_REGISTRY[name](config) for name in (names or config.modules)]


__all__ = [
    # Contract
    "DetectionModule",
    "ModuleResult",
    "ModuleState",
    # Modules
    "XssModule",
    "SqliModule",
    "TlsCertificateModule",
    "UrlHarvesterModule",
    "DomFingerprintModule",
    # Helpers
    "MODULE_REGISTRY",
    "build_modules",
    "SQL_ERROR_SIGNATURES",
    "match_sql_error",
    "partition_urls",
    "fingerprint",
    "serialize_structure",
]
