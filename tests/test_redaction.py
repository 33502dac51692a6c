"""Tests for log redaction."""

import logging

from love_everyday.foundation.redaction import RedactingFilter, redact


class TestRedact:
    def test_connection_code(self) -> None:
        assert redact("Started monitoring for family 4821") == (
            "Started monitoring for family ****"
        )

    def test_email(self) -> None:
        assert redact("user kimsoon@example.com logged in") == "user ki***@example.com logged in"

    def test_long_identifier(self) -> None:
        assert redact("uid abcdefghijklmnopqrstuv") == "uid ***[abcd...]"

    def test_device_id(self) -> None:
        assert "***[REDACTED]" in redact("device_id: A1B2C3D4E5F6G7")

    def test_labelled_connection_codes(self) -> None:
        assert redact("family_code=4821") == "family_code=****"
        assert redact("connection code: 4821") == "connection code: ****"
        assert redact("Family 4821 entered critical status") == "Family **** entered critical status"

    def test_plain_text_untouched(self) -> None:
        assert redact("Stopped 3 monitor(s)") == "Stopped 3 monitor(s)"

    def test_unlabelled_four_digit_numbers_untouched(self) -> None:
        message = "Evaluated at 2026-02-13T14:00:00+00:00 after 1440 minutes"
        assert redact(message) == message

    def test_code_in_message_with_timestamp(self) -> None:
        assert redact("family 4821 last active 2026-02-13") == (
            "family **** last active 2026-02-13"
        )


class TestRedactingFilter:
    def test_masks_formatted_arguments(self) -> None:
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname=__file__, lineno=1,
            msg="Survival alert cleared for family %s", args=("4821",), exc_info=None,
        )
        assert RedactingFilter().filter(record) is True
        assert record.getMessage() == "Survival alert cleared for family ****"
        assert record.args is None
