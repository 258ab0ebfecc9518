from pop3_check.basic import get_logger, CheckConfig
from pop3_check.lib.pop_client import POP3
from pop3_check.models.mailbox import CheckResult, MailboxModel

logger = get_logger(__name__)


class CheckModel:
    """
    执行一次邮箱检查

    连接 -> 问候语 -> USER -> PASS -> LIST -> 解析并比较阈值 -> 断开.
    任何一步失败都会抛出 POP3Exception 并中止后面的步骤, 连接总是会被关闭.
    告警作为 CheckResult 返回, 不在这里输出.
    """

    def __init__(self, config: CheckConfig, client: POP3 = None):
        self._config = config
        if client is None:
            client = POP3(config.host, config.port, timeout=config.timeout, verbose=config.verbose)
        self._client = client

    def run(self) -> CheckResult:
        client = self._client
        try:
            client.connect()
            client.greeting()
            client.user(self._config.username)
            client.pass_(self._config.password)
            lines = client.list()
            result = MailboxModel(self._config.warn_size, self._config.quota).evaluate(lines)
        finally:
            client.close()

        if self._config.verbose:
            logger.info('Total size of mailbox: %d', result.total_size)
        return result
