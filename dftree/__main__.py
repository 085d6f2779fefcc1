"""Allow ``python -m dftree``."""

from dftree.cli import main

if __name__ == "__main__":
    main()
