import sys

from .consumer import main

sys.exit(main())
