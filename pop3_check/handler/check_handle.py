from pop3_check.basic.logger import get_logger
from pop3_check.models.mailbox import MessageSizeWarning, QuotaWarning

logger = get_logger(__name__)


class LogWarnings:
    """把检查结果中的告警写入日志"""

    def __init__(self, log=None):
        self.log = log or logger

    def handle_MESSAGE_SIZE(self, warning: MessageSizeWarning):
        self.log.warning('Warning: Message %d has size %d', warning.message_id, warning.size)

    def handle_QUOTA(self, warning: QuotaWarning):
        self.log.warning('Warning: Mailbox has total used size: %d', warning.total_size)
