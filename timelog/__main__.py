import sys

from timelog.main import main

sys.exit(main())
