import json
import logging

from schoolfees.core.logging import ServiceJsonFormatter


def test_json_formatter_adds_service_fields() -> None:
    formatter = ServiceJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    record = logging.LogRecord("schoolfees.test", logging.WARNING, __file__, 1, "Overpayment dropped", None, None)
    record.payment_id = "p-1"

    data = json.loads(formatter.format(record))

    assert data["message"] == "Overpayment dropped"
    assert data["level"] == "WARNING"
    assert data["service"] == "schoolfees"
    assert data["name"] == "schoolfees.test"
    assert data["payment_id"] == "p-1"
    assert data["timestamp"]
