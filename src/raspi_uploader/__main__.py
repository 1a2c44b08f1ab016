import sys

from raspi_uploader.run_upload import main

sys.exit(main())
