import sys

from sqs_ui.main import main

sys.exit(main())
