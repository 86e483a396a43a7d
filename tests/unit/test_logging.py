import json
import logging

import pytest
from libs.common.logging import JsonFormatter


def _record(**extra):
    record = logging.LogRecord(
        "services.attendance_service.desk",
        logging.WARNING,
        __file__,
        1,
        "Loading attendance for %s",
        ("batch-1@2024-03-15",),
        None,
    )
    record.__dict__.update(extra)
    return record


@pytest.mark.unit
def test_json_formatter_emits_one_object_per_line():
    line = JsonFormatter().format(_record())
    payload = json.loads(line)

    assert payload["service"] == "attendance-desk"
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Loading attendance for batch-1@2024-03-15"
    assert "\n" not in line


@pytest.mark.unit
def test_json_formatter_carries_desk_context():
    payload = json.loads(
        JsonFormatter().format(
            _record(draft_key="batch-1@2024-03-15", status_code=503, student_ids=["s2"])
        )
    )

    assert payload["draft_key"] == "batch-1@2024-03-15"
    assert payload["status_code"] == 503
    assert payload["student_ids"] == ["s2"]
