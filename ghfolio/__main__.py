"""Module entrypoint for `python -m ghfolio`.

Forwards to the same main() function as the `ghfolio` console script.
"""

from .cli import main

if __name__ == "__main__":
    main()
