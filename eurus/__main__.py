"""
Allow running the package directly with `python -m eurus`.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

from eurus.cli import main

if __name__ == "__main__":
    main()
