import sys

from generate_assets.main import main

sys.exit(main())
