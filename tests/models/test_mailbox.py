"""LIST 解析和阈值比较测试"""

import pytest

from pop3_check.lib.pop_client import POP3ParseError
from pop3_check.models.mailbox import (
    CheckResult,
    MailboxEntry,
    MailboxModel,
    MessageSizeWarning,
    QuotaWarning,
    is_entry_line,
    parse_list_line,
)

LIST_LINES = ["+OK 2 messages", "1 1024", "2 6000000", "."]


class TestParseListLine:
    """parse_list_line 测试"""

    def test_two_integers(self):
        assert parse_list_line("1 1024") == MailboxEntry(message_id=1, size=1024)

    def test_any_whitespace_between(self):
        assert parse_list_line("12\t  300") == MailboxEntry(message_id=12, size=300)

    @pytest.mark.parametrize(
        "line",
        ["not-a-number", "1", "1 2 3", "1 abc", "-1 5", "1 -5", "", "-ERR not allowed"],
    )
    def test_rejects_malformed_line(self, line):
        with pytest.raises(POP3ParseError) as exc_info:
            parse_list_line(line)

        assert exc_info.value.line == line
        assert exc_info.value.step == "list"


class TestIsEntryLine:
    """is_entry_line 测试"""

    def test_ok_and_terminator_are_not_entries(self):
        assert not is_entry_line("+OK 2 messages")
        assert not is_entry_line(".")

    def test_message_line_is_entry(self):
        assert is_entry_line("1 1024")


class TestMailboxModel:
    """MailboxModel 测试"""

    def test_oversized_message_warning(self):
        result = MailboxModel(warn_size=5_000_000, quota=10_000_000).evaluate(LIST_LINES)

        assert result.warnings == [MessageSizeWarning(message_id=2, size=6000000)]
        assert result.total_size == 1024 + 6000000
        assert result.entries == [MailboxEntry(1, 1024), MailboxEntry(2, 6000000)]

    def test_quota_exceeded(self):
        result = MailboxModel(warn_size=5_000_000, quota=6_000_000).evaluate(LIST_LINES)

        assert result.warnings[-1] == QuotaWarning(total_size=6001024)

    def test_quota_not_exceeded(self):
        result = MailboxModel(warn_size=5_000_000, quota=7_000_000).evaluate(LIST_LINES)

        assert all(not isinstance(item, QuotaWarning) for item in result.warnings)

    def test_quota_warning_comes_after_message_warnings(self):
        result = MailboxModel(warn_size=100, quota=100).evaluate(["+OK", "1 200", "2 300", "."])

        assert result.warnings == [
            MessageSizeWarning(1, 200),
            MessageSizeWarning(2, 300),
            QuotaWarning(500),
        ]

    def test_threshold_is_exclusive(self):
        result = MailboxModel(warn_size=500, quota=500).evaluate(["+OK", "1 500", "."])

        assert result.warnings == []
        assert result.total_size == 500

    def test_empty_mailbox(self):
        result = MailboxModel(warn_size=1, quota=1).evaluate(["+OK 0 messages", "."])

        assert result == CheckResult()

    def test_list_without_terminator(self):
        result = MailboxModel(warn_size=1000, quota=1000).evaluate(["+OK", "1 500"])

        assert result.total_size == 500

    def test_parse_error_stops_processing(self):
        model = MailboxModel(warn_size=1000, quota=1000)

        with pytest.raises(POP3ParseError):
            model.evaluate(["+OK", "1 100", "not-a-number", "3 100", "."])

        assert model.result.entries == [MailboxEntry(1, 100)]
        assert model.get_mail_number_and_size() == (1, 100)

    def test_get_mail_number_and_size(self):
        model = MailboxModel(warn_size=5_000_000, quota=10_000_000)
        model.evaluate(LIST_LINES)

        assert model.get_mail_number_and_size() == (2, 6001024)
