import sys

from exbn.cli import main

sys.exit(main())
