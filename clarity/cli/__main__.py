import sys

from clarity.cli.chat import main

sys.exit(main())
