import sys

from gitlet.cli import main

sys.exit(main())
