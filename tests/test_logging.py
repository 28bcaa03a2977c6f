from __future__ import annotations

import json
import logging

from asset_ledger.domain.errors import PartialWriteError
from asset_ledger.infra.logging_config import StructuredFormatter, get_logger


def test_structured_formatter_emits_extra_and_error_code() -> None:
    try:
        raise PartialWriteError("transfer_custody", "asset-1")
    except PartialWriteError as exc:
        record = logging.LogRecord(
            name="asset_ledger.services.ledger_facade",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="commit outcome unknown",
            args=(),
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    record.operation = "transfer_custody"

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert payload["message"] == "commit outcome unknown"
    assert payload["operation"] == "transfer_custody"
    assert payload["exc_code"] == "PARTIAL_WRITE"


def test_loggers_share_the_ledger_namespace() -> None:
    assert get_logger("services.ledger_facade").name == "asset_ledger.services.ledger_facade"
