"""Allow running as python -m tfscore."""

import sys

from tfscore.cli import main

sys.exit(main())
