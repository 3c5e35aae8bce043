import json
import logging

import pytest

from interview_flow.core.logger import log_event


def test_log_event_redacts_free_text(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="interview_flow.events"):
        log_event(
            "adaptive_flow",
            "round_completed",
            "s-log",
            user_response="my secret answer",
            overall_score=7,
            context={"question": "Q?", "difficulty": 5},
        )

    record = json.loads(caplog.records[-1].getMessage())
    assert record["component"] == "adaptive_flow"
    assert record["session_id"] == "s-log"
    assert record["user_response"] == {"redacted": True, "length": 16}
    assert record["overall_score"] == 7
    assert record["context"] == {"question": {"redacted": True, "length": 2}, "difficulty": 5}
