import sys

from log_tailer.main import main

sys.exit(main())
