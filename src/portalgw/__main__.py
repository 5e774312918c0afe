import sys

from portalgw.cli import main

sys.exit(main())
