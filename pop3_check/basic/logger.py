import logging
import pathlib

from logging.handlers import TimedRotatingFileHandler

from pop3_check.basic.config import ConfigError

# 所有模块的 logger 都挂在这个 logger 下面, handler 只配置在这里
LOGGER_NAME = 'pop3_check'
LOG_FILE_NAME = 'pop3_check.log'

FORMATTER = logging.Formatter('[%(asctime)s][%(filename)s:%(lineno)d][%(levelname)s][%(thread)d] - %(message)s')


def _default_log_dir() -> pathlib.Path:
    path = pathlib.Path(__file__).parent.parent.parent
    return pathlib.Path.joinpath(path, 'log')


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    # 导入时只挂一个输出到终端的 handler, 不读取配置也不创建日志目录
    if not logger.handlers:
        handler_stream = logging.StreamHandler()
        handler_stream.setLevel(logging.DEBUG)
        handler_stream.setFormatter(FORMATTER)
        logger.addHandler(handler_stream)
        logger.setLevel(level=logging.INFO)
    return logger


def get_logger(name) -> logging.Logger:
    _package_logger()
    return logging.getLogger(name)


def setup_logging(config: dict) -> logging.Logger:
    """按照配置文件中的 LOG_LEVEL 和 LOG_DIR 重新配置日志, 可以重复调用"""
    logger = _package_logger()

    level = str(config.get('LOG_LEVEL') or 'INFO').upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f'Invalid LOG_LEVEL: {level}')

    log_dir = config.get('LOG_DIR')
    path = pathlib.Path(log_dir) if log_dir else _default_log_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f'Unable to create log directory {path}: {exc}') from exc

    for handler in list(logger.handlers):
        if isinstance(handler, TimedRotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    handler_file = TimedRotatingFileHandler(
        pathlib.Path.joinpath(path, LOG_FILE_NAME), when='D', interval=1, backupCount=15,
        encoding='UTF-8', delay=True, utc=False,
    )
    handler_file.setLevel(logging.INFO)
    handler_file.setFormatter(FORMATTER)
    logger.addHandler(handler_file)
    logger.setLevel(level=level)
    return logger
