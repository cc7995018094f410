import sys

from teslapoll.cli import main

sys.exit(main())
