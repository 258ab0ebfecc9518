import sys

from pop3_check import run_check

if __name__ == '__main__':
    sys.exit(run_check())
