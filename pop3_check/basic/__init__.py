from pop3_check.basic.config import Config, CheckConfig, ConfigError
from pop3_check.basic.logger import get_logger, setup_logging
