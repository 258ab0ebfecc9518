from pop3_check.models.check import CheckModel
from pop3_check.models.mailbox import CheckResult, MailboxEntry, MailboxModel, MessageSizeWarning, QuotaWarning
