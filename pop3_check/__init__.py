import argparse
import sys

from pop3_check.basic import get_logger, setup_logging, Config, CheckConfig, ConfigError
from pop3_check.basic.config import DEFAULT_QUOTA, DEFAULT_WARN_SIZE, read_password_file
from pop3_check.handler import check_main

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pop3-check',
        description='Warn about oversized messages in a POP3 mailbox.',
    )
    parser.add_argument('--host', help='POP3 server host')
    parser.add_argument('--user', help='POP3 username')
    parser.add_argument('--password-file', help='POP3 password can be found in this file')
    parser.add_argument('--size', type=int,
                        help=f'Message size (bytes) above which to warn. (default {DEFAULT_WARN_SIZE})')
    parser.add_argument('--quota', type=int,
                        help='Size in bytes to above which to warn if the total size of all messages in the '
                             'mailbox exceeds. This is to warn if we begin to reach quota due to many smaller '
                             f'messages. (default {DEFAULT_QUOTA})')
    parser.add_argument('--verbose', action='store_true', default=None, help='Verbose output or not.')
    parser.add_argument('--config', help='YAML config file with default values')
    return parser


def _int_option(value, name) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f'{name} must be an integer: {value!r}')


def load_file_config(args) -> dict:
    """读取配置文件, 指定了 --config 时文件必须存在"""
    if args.config:
        Config.reset()
        return Config.get_instance(args.config)
    return Config.get_instance()


def load_config(args, file_config) -> CheckConfig:
    """合并命令行参数和配置文件, 命令行参数优先"""
    host = args.host or file_config.get('HOST') or ''
    if not host:
        raise ConfigError('You must provide a host.')
    user = args.user or file_config.get('USER') or ''
    if not user:
        raise ConfigError('You must provide a username.')
    password_file = args.password_file or file_config.get('PASSWORD_FILE')
    if not password_file:
        raise ConfigError('You must provide a password file.')
    try:
        password = read_password_file(password_file)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f'Unable to read password file: {exc}')

    size = args.size if args.size is not None else file_config.get('SIZE', DEFAULT_WARN_SIZE)
    quota = args.quota if args.quota is not None else file_config.get('QUOTA', DEFAULT_QUOTA)
    verbose = args.verbose if args.verbose is not None else bool(file_config.get('VERBOSE', False))

    return CheckConfig(
        host=host,
        username=user,
        password=password,
        warn_size=_int_option(size, 'size'),
        quota=_int_option(quota, 'quota'),
        verbose=verbose,
    )


def run_check(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        file_config = load_file_config(args)
        setup_logging(file_config)
        config = load_config(args, file_config)
    except ConfigError as error:
        logger.error('%s', error)
        parser.print_help(sys.stderr)
        return 1

    if check_main(config):
        return 0
    return 1
