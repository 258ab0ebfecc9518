from pop3_check.lib.pop_client import EndCheck, LineSession, POP3, POP3Exception
