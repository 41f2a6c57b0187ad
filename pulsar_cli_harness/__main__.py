import sys

from pulsar_cli_harness.run import main

sys.exit(main())
