"""Allow ``python -m animpath``."""

import sys

from .cli import main

sys.exit(main())
