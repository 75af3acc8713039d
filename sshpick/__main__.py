import sys

from sshpick.tui import main

sys.exit(main())
