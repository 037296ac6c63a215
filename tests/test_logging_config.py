import json
import logging
import sys

from formflow_builder.logging_config import StructuredFormatter, set_trace_id, setup_logging, trace_id_var


def make_record(**extra) -> logging.LogRecord:
    logger = logging.getLogger("formflow_builder.tests")
    return logger.makeRecord(
        logger.name, logging.INFO, __file__, 10, "Saved form schema", None, None, extra=extra
    )


def test_formatter_emits_json_with_extras():
    line = StructuredFormatter().format(make_record(instance_id=1001, step_count=3))
    payload = json.loads(line)

    assert payload["severity"] == "INFO"
    assert payload["message"] == "Saved form schema"
    assert payload["instance_id"] == 1001
    assert payload["step_count"] == 3
    assert payload["timestamp"].endswith("Z")


def test_formatter_includes_trace_id():
    token = trace_id_var.set(None)
    try:
        set_trace_id("projects/demo/traces/abc")
        payload = json.loads(StructuredFormatter().format(make_record()))
    finally:
        trace_id_var.reset(token)

    assert payload["logging.googleapis.com/trace"] == "projects/demo/traces/abc"


def test_formatter_includes_exceptions():
    try:
        raise ValueError("bad settings")
    except ValueError:
        record = logging.getLogger("formflow_builder.tests").makeRecord(
            "formflow_builder.tests", logging.ERROR, __file__, 1, "Field failed", None, sys.exc_info()
        )

    payload = json.loads(StructuredFormatter().format(record))

    assert "ValueError: bad settings" in payload["exception"]


def test_dev_logging_uses_structured_stdout_handler():
    setup_logging(environment="dev", use_cloud_logging=False)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(handler.formatter, StructuredFormatter) for handler in root.handlers)
