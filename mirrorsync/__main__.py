"""
Run the CLI with ``python -m mirrorsync``.
"""

from .main import main

if __name__ == "__main__":
    main()
