import sys

from network_relay.main import main

sys.exit(main())
