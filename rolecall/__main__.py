import sys

from rolecall.main import run

sys.exit(run())
