# Imports
import socket
import time
from enum import Enum

from pop3_check.basic import get_logger
from pop3_check.basic.config import POP3_PORT, READ_TIMEOUT

__all__ = ['POP3Exception', 'POP3ConnectError', 'POP3Timeout', 'POP3ConnectionClosed',
           'POP3ReadError', 'POP3WriteError', 'POP3FlushError', 'POP3ProtocolError',
           'POP3AuthenticationError', 'POP3ParseError',
           'EndCheck', 'LineSession', 'POP3']

logger = get_logger(__name__)

# 定义行结束符 (为了接受出 CRLF 的结束符, 所以分开定义)
CR = b'\r'
LF = b'\n'
CRLF = CR + LF

# 定义调用 read_line() 时可以读取的最大的字符数
# RFC 1939 中限制 POP3 一行最多包含 512 个字符, 包括 CRLF
# 我们选择 2048 作为一个安全的取值
_MAX_LINE = 2048

# 每次 recv 读取的字节数
_RECV_SIZE = 4096

# 成功响应的前缀
OK = '+OK'
# 多行响应的结束行
TERMINATOR = '.'


# 定义本模块需要的异常
class POP3Exception(OSError):
    """本模块所有异常的基类

    step 记录异常发生在哪一步 (connect, greeting, user, pass, list)
    """

    def __init__(self, msg, step=None):
        super().__init__(msg)
        self.msg = msg
        self.step = step

    def __str__(self):
        if self.step:
            return f'[{self.step}] {self.msg}'
        return self.msg


class POP3ConnectError(POP3Exception):
    """无法建立到服务器的连接时抛出的异常"""
    pass


class POP3Timeout(POP3Exception):
    """在超时时间内没有读到完整的一行"""
    pass


class POP3ConnectionClosed(POP3Exception):
    """服务器关闭了连接 (读到 EOF)"""
    pass


class POP3ReadError(POP3Exception):
    """除超时和 EOF 以外的读取错误"""
    pass


class POP3WriteError(POP3Exception):
    """写入命令失败"""
    pass


class POP3FlushError(POP3Exception):
    """写入后刷新缓冲区失败"""
    pass


class POP3ProtocolError(POP3Exception):
    """服务器的响应不符合协议 (例如问候语不是 +OK)"""
    pass


class POP3AuthenticationError(POP3Exception):
    """USER 或者 PASS 没有得到 +OK 响应"""
    pass


class POP3ParseError(POP3Exception):
    """LIST 响应中的某一行不是两个整数

    比 POP3Exception 多出了 line 属性
    """

    def __init__(self, msg, step=None, line=None):
        super().__init__(msg, step)
        self.line = line


class EndKind(Enum):
    PREFIX = 'prefix'
    EXACT = 'exact'


class EndCheck:
    """多行读取的结束条件

    读到满足条件的行时立即返回, 不必等待超时.
    无论使用哪种条件, 超时和连接关闭都视为读取正常结束.
    """

    def __init__(self, kind: EndKind, text: str):
        self.kind = kind
        self.text = text

    @classmethod
    def prefix(cls, text):
        return cls(EndKind.PREFIX, text)

    @classmethod
    def exact(cls, text):
        return cls(EndKind.EXACT, text)

    def __call__(self, line: str) -> bool:
        if self.kind is EndKind.PREFIX:
            return line.startswith(self.text)
        return line == self.text

    def __repr__(self):
        return f'EndCheck.{self.kind.value}({self.text!r})'


def _mask(line):
    # 详细日志中不输出密码
    if line[:5].upper() == 'PASS ':
        return line[:5] + '****'
    return line


class LineSession:
    """在已经建立的 socket 上按行读写

    每次 read_line() 都会重新计算超时时间, 而不是从会话开始累计.
    """
    encoding = 'UTF-8'

    def __init__(self, sock, timeout=READ_TIMEOUT, verbose=False):
        self.sock = sock
        self.timeout = timeout
        self.verbose = verbose
        self._buffer = bytearray()
        self._writer = sock.makefile('wb')

    def _fill(self, deadline):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise POP3Timeout(f'no line received within {self.timeout} seconds')
        self.sock.settimeout(remaining)
        try:
            data = self.sock.recv(_RECV_SIZE)
        except socket.timeout:
            raise POP3Timeout(f'no line received within {self.timeout} seconds')
        except OSError as exc:
            raise POP3ReadError(f'read failure: {exc}') from exc
        if not data:
            # 没有行结束符的残余数据直接丢弃
            self._buffer.clear()
            raise POP3ConnectionClosed('connection closed by server')
        self._buffer += data

    def read_line(self) -> str:
        """读取一行, 剔除行结束符和首尾空白"""
        if self.sock is None:
            raise POP3ReadError('session is closed')
        deadline = time.monotonic() + self.timeout
        while True:
            i = self._buffer.find(LF)
            if i >= 0:
                break
            if len(self._buffer) > _MAX_LINE:
                raise POP3ReadError('line too long')
            self._fill(deadline)

        line = bytes(self._buffer[:i + 1])
        del self._buffer[:i + 1]
        if len(line) > _MAX_LINE:
            raise POP3ReadError('line too long')
        return line.decode(self.encoding, 'replace').strip()

    def read_lines(self, end_check) -> list:
        """读取多行, 直到某一行满足 end_check, 或者超时/连接关闭

        超时和连接关闭返回已经读到的行, 其他读取错误直接抛出.
        """
        lines = []
        while True:
            try:
                line = self.read_line()
            except (POP3Timeout, POP3ConnectionClosed) as exc:
                # 服务器发送完最后一行后我们还在读, 所以超时是正常的
                if self.verbose:
                    logger.info('Read finished after %d lines: %s', len(lines), exc)
                break
            except POP3ReadError as exc:
                logger.error('Read error: %s', exc)
                raise
            lines.append(line)
            if end_check(line):
                return lines
        return lines

    def write_line(self, line):
        """写入一行并加上 CRLF, 然后立即刷新缓冲区"""
        if self.verbose:
            logger.info('Writing line [%s]', _mask(line))
        if self.sock is None:
            raise POP3WriteError('session is closed')
        data = bytes(line, self.encoding) + CRLF
        # 上一次读取可能把 socket 的超时改得很短
        self.sock.settimeout(self.timeout)
        try:
            self._writer.write(data)
        except OSError as exc:
            logger.error('Failure writing: %s', exc)
            raise POP3WriteError(f'write failure: {exc}') from exc
        try:
            self._writer.flush()
        except OSError as exc:
            logger.error('Flush error: %s', exc)
            raise POP3FlushError(f'flush failure: {exc}') from exc

    def close(self):
        """关闭连接, 可以重复调用, 不抛出异常"""
        writer = self._writer
        self._writer = None
        sock = self.sock
        self.sock = None
        if writer is not None:
            try:
                writer.close()
            except OSError:
                pass
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            try:
                sock.close()
            except OSError:
                pass


class POP3:
    """只实现邮箱检查需要的命令: USER, PASS, LIST"""

    def __init__(self, host, port=POP3_PORT, timeout=READ_TIMEOUT, verbose=False):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.verbose = verbose
        self.session = None
        self.welcome = None

    @property
    def host_port(self):
        return f'{self.host}:{self.port}'

    def _create_socket(self):
        return socket.create_connection((self.host, self.port), self.timeout)

    def _get_session(self, step):
        if self.session is None:
            raise POP3ConnectError('not connected', step=step)
        return self.session

    # 发送 POP3 命令, 写入失败时不再继续读取
    def _put_cmd(self, line, step):
        try:
            self._get_session(step).write_line(line)
        except POP3Exception as exc:
            exc.step = exc.step or step
            logger.error('Failed to send %s command: %s', step.upper(), exc)
            raise

    # 读取响应直到 end_check 满足或者超时
    def _get_lines(self, end_check, step):
        try:
            return self._get_session(step).read_lines(end_check)
        except POP3Exception as exc:
            exc.step = exc.step or step
            logger.error('Error reading lines: %s', exc)
            raise

    # 单行响应必须恰好是一行 +OK, 不接受超时作为结束
    def _get_ok(self, step):
        lines = self._get_lines(EndCheck.prefix(OK), step)
        if len(lines) != 1 or not lines[0].startswith(OK):
            logger.error('Unexpected %s response: expected one %s line, got %r',
                         step.upper(), OK, lines)
            raise POP3AuthenticationError(f'unexpected {step.upper()} response', step=step)
        return lines[0]

    # 以下为公开方法

    def connect(self):
        if self.verbose:
            logger.info('Connecting to %s...', self.host)
        try:
            sock = self._create_socket()
        except OSError as exc:
            logger.error('Failed to connect to [%s]: %s', self.host_port, exc)
            raise POP3ConnectError(f'failed to connect to {self.host_port}: {exc}',
                                   step='connect') from exc
        if self.verbose:
            logger.info('Connected to [%s] (%s)', self.host_port, _peer_name(sock))
        self.session = LineSession(sock, timeout=self.timeout, verbose=self.verbose)
        return self.session

    def greeting(self):
        """读取服务器的问候语, 必须是唯一的一行 '+OK ...'"""
        lines = self._get_lines(EndCheck.prefix(OK), 'greeting')
        if len(lines) != 1:
            logger.error('Unexpected number of lines: %d', len(lines))
            raise POP3ProtocolError('unexpected line count', step='greeting')
        if not lines[0].startswith(OK + ' '):
            logger.error('Greeting line is not OK: %s', lines[0])
            raise POP3ProtocolError('invalid greeting', step='greeting')
        self.welcome = lines[0]
        return self.welcome

    # 发送用户名
    def user(self, user):
        self._put_cmd(f'USER {user}', 'user')
        return self._get_ok('user')

    # 发送密码
    def pass_(self, password):
        self._put_cmd(f'PASS {password}', 'pass')
        return self._get_ok('pass')

    # 得到邮件列表, 包括开头的 +OK 行和结尾的 '.'
    def list(self):
        self._put_cmd('LIST', 'list')
        lines = self._get_lines(EndCheck.exact(TERMINATOR), 'list')
        if self.verbose:
            for line in lines:
                logger.info('Read LIST line: %s', line)
        return lines

    # 在不做任何准备的情况下关闭连接
    def close(self):
        session = self.session
        self.session = None
        if session is not None:
            session.close()


def _peer_name(sock):
    try:
        return sock.getpeername()
    except OSError:
        return 'unknown'
