import re
from dataclasses import dataclass, field
from typing import ClassVar, List, Tuple

from pop3_check.basic import get_logger
from pop3_check.lib.pop_client import OK, TERMINATOR, POP3ParseError

logger = get_logger(__name__)

# LIST 响应中的一行: "<编号> <大小>"
LIST_LINE = re.compile(r'(\d+)\s+(\d+)', re.ASCII)


@dataclass(frozen=True)
class MailboxEntry:
    message_id: int
    size: int


@dataclass(frozen=True)
class MessageSizeWarning:
    """单封邮件超过告警大小"""
    kind: ClassVar[str] = 'MESSAGE_SIZE'

    message_id: int
    size: int


@dataclass(frozen=True)
class QuotaWarning:
    """邮箱中所有邮件的总大小超过配额告警大小"""
    kind: ClassVar[str] = 'QUOTA'

    total_size: int


@dataclass
class CheckResult:
    entries: List[MailboxEntry] = field(default_factory=list)
    warnings: list = field(default_factory=list)
    total_size: int = 0


def is_entry_line(line: str) -> bool:
    # +OK 是第一行, . 是结束行, 其他的都是邮件
    return not line.startswith(OK) and line != TERMINATOR


def parse_list_line(line: str) -> MailboxEntry:
    match = LIST_LINE.fullmatch(line)
    if match is None:
        logger.error('LIST line parse failure: %r', line)
        raise POP3ParseError(f'unable to parse LIST line: {line!r}', step='list', line=line)
    return MailboxEntry(message_id=int(match.group(1)), size=int(match.group(2)))


class IMailboxModel:
    def add_entry(self, entry: MailboxEntry):
        raise NotImplementedError()

    def get_mail_number_and_size(self) -> Tuple[int, int]:
        raise NotImplementedError()

    def evaluate(self, lines) -> CheckResult:
        raise NotImplementedError()


class MailboxModel(IMailboxModel):
    """累计 LIST 中每封邮件的大小, 并和两个阈值比较"""

    def __init__(self, warn_size: int, quota: int):
        self.warn_size = warn_size
        self.quota = quota
        self.result = CheckResult()

    def add_entry(self, entry: MailboxEntry):
        self.result.entries.append(entry)
        self.result.total_size += entry.size
        if entry.size > self.warn_size:
            self.result.warnings.append(MessageSizeWarning(entry.message_id, entry.size))

    def get_mail_number_and_size(self) -> Tuple[int, int]:
        return len(self.result.entries), self.result.total_size

    def evaluate(self, lines) -> CheckResult:
        # 任何一行解析失败都会中止, 后面的行不再处理
        for line in lines:
            if not is_entry_line(line):
                continue
            self.add_entry(parse_list_line(line))

        if self.result.total_size > self.quota:
            self.result.warnings.append(QuotaWarning(self.result.total_size))
        return self.result
