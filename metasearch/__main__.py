import sys

from metasearch.main import main

sys.exit(main())
