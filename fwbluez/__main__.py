import sys

from fwbluez.cli import main

sys.exit(main())
