import sys

from src.dem_viewer.cli import main

sys.exit(main())
