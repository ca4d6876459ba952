import sys

from stock_api.cli import main

sys.exit(main())
