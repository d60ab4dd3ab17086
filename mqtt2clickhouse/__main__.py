import sys

from mqtt2clickhouse.cli import main

sys.exit(main())
