"""
SQLi Module - Error-based SQL injection detection.

Each payload is submitted through a visible input and the next response for
the current page URL is checked against known database error signatures.
A response that never arrives within the timeout counts as no match.
"""

import re
from typing import Any, Dict, Optional, Pattern, Tuple

from playwright.async_api import Error as PlaywrightError

from .base_module import (
    ModuleResult,
    ModuleState,
    iter_visible_inputs,
    requery_input,
    restore_page,
)


EVIDENCE_BODY_LIMIT = 500

# Checked in order, first match wins
SQL_ERROR_SIGNATURES: Tuple[Tuple[Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), label)
    for pattern, label in (
        (r"you have an error in your sql syntax", "MySQL syntax error"),
        (r"SQL syntax.*MySQL", "MySQL syntax error"),
        (r"Warning.*mysql_", "MySQL warning"),
        (r"mysqli?_fetch_(array|assoc|row)", "MySQL fetch error"),
        (r"PostgreSQL.*ERROR", "PostgreSQL error"),
        (r"pg_query\(\).*failed", "PostgreSQL query failed"),
        (r"syntax error at or near", "PostgreSQL syntax error"),
        (r"ORA-\d{5}", "Oracle error"),
        (r"quoted string not properly terminated", "Oracle unterminated string"),
        (r"Unclosed quotation mark", "MSSQL unclosed quotation mark"),
        (r"Microsoft.*ODBC.*SQL Server", "MSSQL ODBC error"),
        (r"System\.Data\.SqlClient", "MSSQL .NET error"),
        (r"SQLite3?::SQLException", "SQLite error"),
        (r"sqlite3\.OperationalError", "SQLite error"),
        (r"SQLITE_ERROR", "SQLite error"),
        (r"unrecognized token", "SQLite unrecognized token"),
        (r"Unknown column '[^']+' in", "Unknown column"),
        (r"column \S+ does not exist", "Unknown column"),
        (r"no such column", "Unknown column"),
        (r"division by zero", "Division by zero"),
        (r"divide by zero", "Division by zero"),
        (r"Query execution was interrupted", "Interrupted query (sleep)"),
        (r"canceling statement due to statement timeout", "Statement timeout (sleep)"),
        (r"SQL syntax", "SQL syntax error"),
    )
)


def match_sql_error(body: str) -> Optional[str]:
    """
    Find the first database error signature in a response body.

    Args:
        body: Response body text

    Returns:
        Label of the first matching signature, or None
    """
    for pattern, label in SQL_ERROR_SIGNATURES:
        if pattern.search(body):
            return label
    return None


class SqliModule:
    """
    Error-based SQL injection detector.

    Example:
        >>> module = SqliModule(response_timeout_ms=5000)
        >>> await module.run(session)
        >>> module.result.positive
        False
    """

    NAME = "SqliModule"

    PAYLOADS: Tuple[str, ...] = (
        "1' OR '1' = '1",
        "'",
        "\"",
        "' OR 1=1--",
        "1' ORDER BY 100--",
        "1/0",
        "1' AND SLEEP(5)--",
        "'; WAITFOR DELAY '0:0:5'--",
    )

    def __init__(
        self,
        settle_interval_ms: int = 1000,
        response_timeout_ms: int = 5000,
        test_hidden_inputs: bool = False,
        name: str = NAME,
    ):
        """
        Initialize SQLi module.

        Args:
            settle_interval_ms: Pause between payload attempts
            response_timeout_ms: Maximum wait for the submission response
            test_hidden_inputs: Also inject into inputs that are not visible
            name: Module name
        """
        self.state = ModuleState(name)
        self.settle_interval_ms = settle_interval_ms
        self.response_timeout_ms = response_timeout_ms
        self.test_hidden_inputs = test_hidden_inputs
        self.payloads: Tuple[str, ...] = self.PAYLOADS

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def result(self) -> ModuleResult:
        return self.state.result

    async def run(self, session) -> None:
        logger = self.state.logger

        try:
            async for index, element, serialized in iter_visible_inputs(
                session, self.state, include_hidden=self.test_hidden_inputs
            ):
                for payload in self.payloads:
                    if self.state.positive:
                        break

                    url = session.current_url
                    logger.info("testing_payload", payload=payload, index=index)

                    await element.fill(payload, force=True)
                    response = await session.wait_for_response(
                        lambda response: response.url == url,
                        timeout_ms=self.response_timeout_ms,
                        action=lambda: session.press_key("Enter"),
                    )

                    if response is None:
                        logger.debug("no_response", payload=payload)
                    else:
                        try:
                            body = await response.text()
                        except PlaywrightError as e:
                            # Redirect responses carry no body
                            logger.debug("response_body_unavailable", payload=payload, error=str(e))
                            body = ""

                        signature = match_sql_error(body)
                        if signature:
                            evidence: Dict[str, Any] = {
                                "url": url,
                                "payload": payload,
                                "element": serialized,
                                "response": body[:EVIDENCE_BODY_LIMIT],
                            }
                            self.state.mark_positive()
                            self.state.record(evidence)
                            logger.critical(
                                "sqli_confirmed",
                                signature=signature,
                                evidence=evidence,
                            )
                            break

                    await session.wait_for_timeout(self.settle_interval_ms)

                    await restore_page(session, self.state, url)

                    # The submission may have replaced the document
                    element = await requery_input(session, index)
                    if element is None:
                        logger.warning("input_lost_after_submit", index=index)
                        break

        except Exception as e:
            logger.error("module_failed", error=str(e), exc_info=True)
