import sys

from consul_governance.cli import main

sys.exit(main())
