"""Allow ``python -m shoebox``."""
import sys

from .cli import main

sys.exit(main())
