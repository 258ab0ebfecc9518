from pop3_check.basic import get_logger, CheckConfig
from pop3_check.handler.check_handle import LogWarnings
from pop3_check.lib.pop_client import POP3Exception
from pop3_check.models.check import CheckModel
from pop3_check.models.mailbox import CheckResult

logger = get_logger(__name__)

MISSING = object()


def _call_handler_hook(handler, warning):
    """调用传入的 handler 中对应告警类型的方法"""
    hook = getattr(handler, 'handle_' + warning.kind, None)
    if hook is None:
        return MISSING
    return hook(warning)


def report(result: CheckResult, handler):
    for warning in result.warnings:
        if _call_handler_hook(handler, warning) is MISSING:
            logger.warning('No handler for %s warning: %r', warning.kind, warning)


def check_main(config: CheckConfig, handler=None, model=None) -> bool:
    """执行一次检查并输出告警, 返回是否成功"""
    model = model or CheckModel(config)
    try:
        result = model.run()
    except POP3Exception as error:
        logger.error('Mailbox check of %s failed: %s', config.address, error)
        return False
    report(result, handler or LogWarnings())
    return True
