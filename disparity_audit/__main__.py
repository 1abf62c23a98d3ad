import sys

from disparity_audit.cli import main

sys.exit(main())
