import sys

from minirt.main import main

if __name__ == "__main__":
    sys.exit(main())
