"""测试公共 fixture"""

import logging
import socket
from logging.handlers import TimedRotatingFileHandler

import pytest

from pop3_check.basic.config import Config, CONFIG_ENV, CheckConfig
from pop3_check.basic.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """每个测试都使用不存在的配置文件, 避免读取仓库根目录的 config.yaml"""
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "missing.yaml"))
    Config.reset()
    yield
    Config.reset()
    # setup_logging 挂上的文件 handler 和日志级别不能影响下一个测试
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, TimedRotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.INFO)


@pytest.fixture
def socket_pair():
    """(client, server) 一对已连接的 socket"""
    client, server = socket.socketpair()
    yield client, server
    for sock in (client, server):
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def check_config():
    return CheckConfig(
        host="pop.example.com",
        username="bob",
        password="secret",
        warn_size=1000,
        quota=1000,
        timeout=0.2,
    )


def serve(server, *lines):
    """把服务器的全部响应提前写入 socket"""
    server.sendall(b"".join(line.encode("ascii") + b"\r\n" for line in lines))


def received(server) -> bytes:
    """客户端关闭连接后, 读取客户端发送的全部数据"""
    server.settimeout(1)
    chunks = []
    while True:
        data = server.recv(4096)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)
