import sys

from gbts.cli import main

sys.exit(main())
