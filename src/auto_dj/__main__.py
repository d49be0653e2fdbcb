import sys

from auto_dj.cli import main

sys.exit(main())
