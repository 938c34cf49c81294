import sys

from covermap.precompute.cli import main

sys.exit(main())
