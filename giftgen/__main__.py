import sys

from giftgen.cli import main

sys.exit(main())
