import sys

from bf_prefilter.cli import main

sys.exit(main())
