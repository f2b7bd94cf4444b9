"""Allow ``python -m ccmeta``."""

from ccmeta.cli.main import main

if __name__ == "__main__":
    main()
