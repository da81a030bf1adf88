import sys

from src.qrviewer.cli import main

sys.exit(main())
