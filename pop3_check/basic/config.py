import os
import pathlib
import threading
from dataclasses import dataclass

import yaml

# POP3 的标准端口
POP3_PORT = 110

# 每读取一行的超时时间 (秒)
READ_TIMEOUT = 5

# 单封邮件超过这个大小时告警 (5 MiB)
DEFAULT_WARN_SIZE = 5 * 1024 * 1024

# 邮箱总大小超过这个大小时告警 (10 MiB)
DEFAULT_QUOTA = 10 * 1024 * 1024

CONFIG_ENV = 'POP3_CHECK_CONFIG'


class ConfigError(ValueError):
    """配置缺失或者不合法"""
    pass


class Config:
    _config = None
    _instance_lock = threading.Lock()

    @classmethod
    def default_path(cls) -> pathlib.Path:
        env_path = os.environ.get(CONFIG_ENV)
        if env_path:
            return pathlib.Path(env_path)
        path = pathlib.Path(__file__).parent.parent.parent
        return pathlib.Path.joinpath(path, 'config.yaml')

    @classmethod
    def get_instance(cls, path=None):
        if cls._config is None:
            with cls._instance_lock:
                if cls._config is None:
                    if path is None:
                        cls._config = cls._load(cls.default_path())
                    else:
                        cls._config = cls._load(path, required=True)

        return cls._config

    @classmethod
    def reset(cls):
        with cls._instance_lock:
            cls._config = None

    @staticmethod
    def _load(path, required=False) -> dict:
        path = pathlib.Path(path)
        # 默认位置的配置文件是可选的, 没有时全部使用命令行参数
        if not path.is_file():
            if required:
                raise ConfigError(f'{path}: config file not found')
            return {}

        try:
            with open(str(path), 'rb') as f:
                config = yaml.safe_load(f.read())
        except yaml.YAMLError as exc:
            raise ConfigError(f'{path}: {exc}') from exc
        except OSError as exc:
            raise ConfigError(f'{path}: {exc}') from exc

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f'{path}: top level must be a mapping')
        return config


def read_password_file(path) -> str:
    """逐行读取密码文件, 去掉每行首尾的空白后拼接起来"""
    if not path:
        raise ConfigError('invalid path')
    contents = ''
    with open(path, 'r', encoding='UTF-8') as f:
        for line in f:
            contents += line.strip()
    return contents


@dataclass(frozen=True)
class CheckConfig:
    """
    一次邮箱检查所需的全部配置

    Attributes:
        host: POP3 服务器地址
        username: 登录用户名
        password: 登录密码
        warn_size: 单封邮件大小告警阈值 (字节)
        quota: 邮箱总大小告警阈值 (字节)
        verbose: 是否输出详细日志
        port: POP3 服务器端口, 固定为 110
        timeout: 每读取一行的超时时间 (秒)
    """

    host: str
    username: str
    password: str
    warn_size: int = DEFAULT_WARN_SIZE
    quota: int = DEFAULT_QUOTA
    verbose: bool = False
    port: int = POP3_PORT
    timeout: float = READ_TIMEOUT

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not self.host or not self.host.strip():
            raise ConfigError('You must provide a host.')
        if not self.username:
            raise ConfigError('You must provide a username.')
        if not self.password:
            raise ConfigError('You must provide a password.')
        if self.warn_size <= 0:
            raise ConfigError('You must provide a size larger than zero.')
        if self.quota <= 0:
            raise ConfigError('You must provide a quota larger than zero.')
        if not 1 <= self.port <= 65535:
            raise ConfigError(f'Invalid port number: {self.port}')
        if self.timeout <= 0:
            raise ConfigError('Read timeout must be larger than zero.')

    @property
    def address(self) -> str:
        return f'{self.host}:{self.port}'
